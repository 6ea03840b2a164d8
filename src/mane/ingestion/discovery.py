"""File discovery utilities."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Iterator

from .models import PendingFile

LOGGER = logging.getLogger(__name__)


def _is_hidden(path: Path) -> bool:
    return any(part.startswith(".") for part in path.parts if part not in (".", ".."))


class DirectoryScanner:
    """Discover files under a root, honoring recursion, hidden-file, and size filters."""

    def __init__(
        self,
        *,
        recursive: bool,
        include_hidden: bool,
        follow_symlinks: bool,
        max_size_bytes: int | None,
    ) -> None:
        self.recursive = recursive
        self.include_hidden = include_hidden
        self.follow_symlinks = follow_symlinks
        self.max_size_bytes = max_size_bytes

    def scan(self, root: Path) -> Iterator[PendingFile]:
        """Yield files discovered under ``root`` in sorted order."""
        root = root.expanduser().resolve()
        if not root.exists():
            LOGGER.warning("Skipping missing path %s", root)
            return

        for path in sorted(self._iter_paths(root)):
            if path.is_symlink() and not self.follow_symlinks:
                continue
            if not path.is_file():
                continue
            relative = path.relative_to(root) if path != root else Path(path.name)
            if not self.include_hidden and _is_hidden(relative):
                continue
            try:
                stat = path.stat()
            except OSError as exc:
                LOGGER.debug("Cannot stat %s: %s", path, exc)
                continue

            locked = False
            try:
                with path.open("rb"):
                    pass
            except PermissionError:
                locked = True

            yield PendingFile(
                path=path,
                size_bytes=stat.st_size,
                modified_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                locked=locked,
                oversized=(
                    self.max_size_bytes is not None and stat.st_size > self.max_size_bytes
                ),
            )

    def _iter_paths(self, root: Path) -> Iterable[Path]:
        if root.is_file():
            yield root
            return
        if self.recursive:
            yield from root.rglob("*")
        else:
            yield from root.iterdir()


__all__ = ["DirectoryScanner"]
