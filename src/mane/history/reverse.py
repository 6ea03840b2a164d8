"""Derivation of the actions that undo executed file actions."""

from __future__ import annotations

import logging
from pathlib import PurePath
from typing import Optional

from mane.organization.models import ActionKind, FileAction, new_action_id
from mane.organization.paths import parent_directory, resolve_actual_destination

LOGGER = logging.getLogger(__name__)


def derive_reverse_action(action: FileAction) -> Optional[FileAction]:
    """Return the action that undoes ``action``, or ``None`` when it cannot be undone.

    * ``move(src, dst)`` reverses to ``move(actual, src)`` where ``actual`` is
      :func:`~mane.organization.paths.resolve_actual_destination` of the move.
    * ``copy(src, dst)`` reverses to ``delete(actual)``.
    * ``rename(src, dst)`` reverses to ``rename(dst, src)``.
    * ``createFolder(dst)`` reverses to ``deleteFolder(dst)``.
    * ``delete`` and ``deleteFolder`` have no reverse.

    Args:
        action: A successfully executed action.

    Returns:
        Optional[FileAction]: The reverse action, if one exists.
    """

    source = action.source_path
    destination = action.destination_path

    if action.kind is ActionKind.MOVE and source and destination:
        actual = resolve_actual_destination(source, destination)
        origin_folder = parent_directory(source)
        return FileAction(
            id=new_action_id("undo"),
            kind=ActionKind.MOVE,
            source_path=actual,
            destination_path=source,
            permission_scope=origin_folder,
            description=f'Undo: Move "{PurePath(actual).name}" back to {origin_folder}',
        )

    if action.kind is ActionKind.COPY and source and destination:
        actual = resolve_actual_destination(source, destination)
        return FileAction(
            id=new_action_id("undo"),
            kind=ActionKind.DELETE,
            source_path=actual,
            permission_scope=parent_directory(actual),
            description=f'Undo: Delete copied file "{PurePath(actual).name}"',
        )

    if action.kind is ActionKind.RENAME and source and destination:
        return FileAction(
            id=new_action_id("undo"),
            kind=ActionKind.RENAME,
            source_path=destination,
            destination_path=source,
            permission_scope=parent_directory(destination),
            description=f'Undo: Rename back to "{PurePath(source).name}"',
        )

    if action.kind is ActionKind.CREATE_FOLDER and destination:
        return FileAction(
            id=new_action_id("undo"),
            kind=ActionKind.DELETE_FOLDER,
            source_path=destination,
            permission_scope=parent_directory(destination),
            description=f'Undo: Remove folder "{PurePath(destination).name}"',
        )

    if action.kind is ActionKind.DELETE:
        LOGGER.debug("Delete of %s cannot be undone", source)
    return None


__all__ = ["derive_reverse_action"]
