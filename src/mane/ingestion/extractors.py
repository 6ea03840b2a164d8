"""Content and metadata extraction helpers."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from PIL import ExifTags, Image, UnidentifiedImageError

from mane.search.text import normalize_search_text

LOGGER = logging.getLogger(__name__)


class ContentExtractor:
    """Read text samples and structured attributes from files."""

    def __init__(self, text_sample_chars: int = 8_192) -> None:
        self.text_sample_chars = text_sample_chars

    def read_text(self, path: Path) -> str:
        """Return the normalized leading text of ``path``.

        Args:
            path: File to read; undecodable bytes are replaced.

        Returns:
            str: Normalized text capped at ``text_sample_chars`` characters.

        Raises:
            OSError: If the file cannot be read.
        """
        with path.open("r", encoding="utf-8", errors="replace") as fh:
            sample = fh.read(self.text_sample_chars)
        return normalize_search_text(sample, limit=self.text_sample_chars)

    def attributes(self, path: Path, mime_type: str) -> Dict[str, Any]:
        """Return metadata stored alongside the record.

        Args:
            path: File being indexed.
            mime_type: MIME type detected for the file.

        Returns:
            Dict[str, Any]: Size, modification time, MIME type, and image details.
        """
        stat = path.stat()
        attributes: Dict[str, Any] = {
            "size_bytes": stat.st_size,
            "modified_at": datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc).isoformat(),
            "mime_type": mime_type,
        }
        if mime_type.startswith("image/"):
            attributes.update(self.image_attributes(path))
        return attributes

    def image_attributes(self, path: Path) -> Dict[str, Any]:
        """Return image dimensions, mode, and EXIF orientation when readable."""
        try:
            with Image.open(path) as img:
                width, height = img.size
                details: Dict[str, Any] = {
                    "image_width": width,
                    "image_height": height,
                    "image_mode": img.mode,
                }
                orientation = img.getexif().get(ExifTags.Base.Orientation)
                if orientation is not None:
                    details["image_orientation"] = int(orientation)
                return details
        except (OSError, UnidentifiedImageError) as exc:
            LOGGER.debug("Could not read image metadata from %s: %s", path, exc)
            return {}


__all__ = ["ContentExtractor"]
