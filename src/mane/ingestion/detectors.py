"""Media class detection."""

from __future__ import annotations

import mimetypes
from pathlib import Path

from mane.store.models import MediaClass

IMAGE_EXTENSIONS = frozenset({".png", ".jpg", ".jpeg", ".gif", ".webp"})
AUDIO_EXTENSIONS = frozenset({".mp3", ".wav", ".m4a", ".flac", ".ogg"})
VIDEO_EXTENSIONS = frozenset({".mp4", ".mov", ".mkv", ".webm"})


class MediaDetector:
    """Classify files by extension."""

    def detect(self, path: Path) -> MediaClass:
        """Return the media class for ``path``; unknown extensions are text."""
        suffix = path.suffix.lower()
        if suffix in IMAGE_EXTENSIONS:
            return MediaClass.IMAGE
        if suffix in AUDIO_EXTENSIONS:
            return MediaClass.AUDIO
        if suffix in VIDEO_EXTENSIONS:
            return MediaClass.VIDEO
        return MediaClass.TEXT

    def mime_type(self, path: Path) -> str:
        """Return a best-effort MIME type for ``path``."""
        guessed, _ = mimetypes.guess_type(path.name)
        return guessed or "application/octet-stream"


__all__ = ["AUDIO_EXTENSIONS", "IMAGE_EXTENSIONS", "MediaDetector", "VIDEO_EXTENSIONS"]
