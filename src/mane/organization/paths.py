"""Path rules shared by plan execution and undo."""

from __future__ import annotations

import re
from pathlib import PurePath

_UNSAFE_SLUG_CHARS = re.compile(r"[^a-z0-9_]")


def resolve_actual_destination(source: str, destination: str) -> str:
    """Return where a moved or copied file actually lands.

    A destination whose last segment has no extension is treated as a folder
    when the source name has one, so ``move("/x/a.txt", "/y")`` lands at
    ``/y/a.txt``. Otherwise the destination is the final path itself.

    Args:
        source: Path of the file being moved or copied.
        destination: Destination given by the action.

    Returns:
        str: Path of the file after the operation.
    """

    source_name = PurePath(source).name
    destination_name = PurePath(destination).name
    if "." in source_name and "." not in destination_name:
        return str(PurePath(destination) / source_name)
    return destination


def parent_directory(path: str) -> str:
    """Return the directory containing ``path``."""

    return str(PurePath(path).parent)


def slugify_folder_name(label: str) -> str:
    """Convert ``label`` to a folder slug of lowercase alphanumerics and underscores.

    Every other character, including spaces and punctuation, becomes ``_``:
    ``"Tax Documents 2023!"`` becomes ``"tax_documents_2023_"``.
    """

    return _UNSAFE_SLUG_CHARS.sub("_", label.strip().lower())


def numbered_name(name: str, counter: int) -> str:
    """Return ``name`` with ``-counter`` inserted before its extension."""

    path = PurePath(name)
    return f"{path.stem}-{counter}{path.suffix}"


__all__ = [
    "numbered_name",
    "parent_directory",
    "resolve_actual_destination",
    "slugify_folder_name",
]
