"""Local filesystem executor for file actions."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Iterable, Optional, Sequence

from .models import ActionKind, ExecutionResult, FileAction
from .paths import resolve_actual_destination

LOGGER = logging.getLogger(__name__)


class LocalFileExecutor:
    """Apply file actions to the local filesystem.

    Moves and copies never overwrite an existing destination, folder creation
    is idempotent, and folder deletion only removes empty folders.
    """

    def __init__(
        self,
        allowed_roots: Optional[Iterable[Path]] = None,
        *,
        dry_run: bool = False,
    ) -> None:
        """Initialise the executor.

        Args:
            allowed_roots: Directories actions may touch; ``None`` allows any path.
            dry_run: When true, validate actions without changing the filesystem.
        """

        self._allowed_roots = (
            [Path(root).expanduser().resolve() for root in allowed_roots]
            if allowed_roots is not None
            else None
        )
        self._dry_run = dry_run

    @property
    def dry_run(self) -> bool:
        """Return whether the executor only validates actions."""
        return self._dry_run

    def execute(self, action: FileAction) -> ExecutionResult:
        """Apply ``action`` and report the outcome.

        Filesystem and permission failures are reported in the result rather
        than raised.

        Args:
            action: Action to apply.

        Returns:
            ExecutionResult: Success flag and error description.
        """

        try:
            self._check_permission(action)
            handler = getattr(self, f"_{_HANDLERS[action.kind]}")
            handler(action)
        except (OSError, ValueError) as exc:
            LOGGER.warning("Action %s (%s) failed: %s", action.id, action.kind.value, exc)
            return ExecutionResult(action_id=action.id, success=False, error=str(exc))

        LOGGER.info(
            "%s %s", "Validated" if self._dry_run else "Executed", action.description or action.id
        )
        return ExecutionResult(action_id=action.id, success=True)

    def execute_all(self, actions: Sequence[FileAction]) -> list[ExecutionResult]:
        """Apply ``actions`` in order, continuing past failures."""

        return [self.execute(action) for action in actions]

    # ------------------------------------------------------------------ #
    # Operations                                                         #
    # ------------------------------------------------------------------ #

    def _move(self, action: FileAction) -> None:
        source, target = self._transfer_paths(action)
        if self._dry_run:
            return
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(source), str(target))

    def _copy(self, action: FileAction) -> None:
        source, target = self._transfer_paths(action)
        if self._dry_run:
            return
        target.parent.mkdir(parents=True, exist_ok=True)
        if source.is_dir():
            shutil.copytree(source, target)
        else:
            shutil.copy2(source, target)

    def _rename(self, action: FileAction) -> None:
        source = _existing(action.source_path)
        target = Path(str(action.destination_path))
        if target.exists() and target != source:
            raise FileExistsError(f"Destination already exists: {target}")
        if self._dry_run:
            return
        target.parent.mkdir(parents=True, exist_ok=True)
        source.rename(target)

    def _delete(self, action: FileAction) -> None:
        source = _existing(action.source_path)
        if self._dry_run:
            return
        if source.is_dir() and not source.is_symlink():
            shutil.rmtree(source)
        else:
            source.unlink()

    def _create_folder(self, action: FileAction) -> None:
        folder = Path(str(action.destination_path))
        if folder.exists() and not folder.is_dir():
            raise FileExistsError(f"Destination already exists: {folder}")
        if self._dry_run:
            return
        folder.mkdir(parents=True, exist_ok=True)

    def _delete_folder(self, action: FileAction) -> None:
        folder = _existing(action.source_path)
        if not folder.is_dir():
            raise NotADirectoryError(f"Not a folder: {folder}")
        if any(folder.iterdir()):
            raise OSError(f"Folder is not empty: {folder}")
        if self._dry_run:
            return
        folder.rmdir()

    # ------------------------------------------------------------------ #
    # Helpers                                                            #
    # ------------------------------------------------------------------ #

    def _transfer_paths(self, action: FileAction) -> tuple[Path, Path]:
        source = _existing(action.source_path)
        target = Path(resolve_actual_destination(str(source), str(action.destination_path)))
        if target.exists():
            raise FileExistsError(f"Destination already exists: {target}")
        return source, target

    def _check_permission(self, action: FileAction) -> None:
        if self._allowed_roots is None:
            return
        touched = [action.permission_scope, action.source_path, action.destination_path]
        for value in touched:
            if not value:
                continue
            candidate = Path(value).expanduser().resolve()
            if not any(
                root == candidate or root in candidate.parents for root in self._allowed_roots
            ):
                raise PermissionError(f"{candidate} is outside the authorized directories")


_HANDLERS = {
    ActionKind.MOVE: "move",
    ActionKind.COPY: "copy",
    ActionKind.RENAME: "rename",
    ActionKind.DELETE: "delete",
    ActionKind.CREATE_FOLDER: "create_folder",
    ActionKind.DELETE_FOLDER: "delete_folder",
}


def _existing(value: Optional[str]) -> Path:
    path = Path(str(value))
    if not path.exists() and not path.is_symlink():
        raise FileNotFoundError(f"Source path is missing: {path}")
    return path


__all__ = ["LocalFileExecutor"]
