"""Ingestion data models."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field

from mane.store.models import MediaClass


class PendingFile(BaseModel):
    """A file discovered on disk awaiting ingestion."""

    path: Path
    size_bytes: int
    modified_at: datetime
    locked: bool = False
    oversized: bool = False


class IngestionItem(BaseModel):
    """Outcome of ingesting a single file.

    Attributes:
        path: File that was processed.
        media_class: Detected media class.
        record_id: Identifier of the stored record when ingestion succeeded.
        success: Whether a record was stored.
        skipped: Whether the file was intentionally not indexed.
        error: Failure or skip reason.
    """

    path: Path
    media_class: Optional[MediaClass] = None
    record_id: Optional[str] = None
    success: bool = False
    skipped: bool = False
    error: Optional[str] = None


class IngestionResult(BaseModel):
    """Per-file outcomes of an ingestion run."""

    items: List[IngestionItem] = Field(default_factory=list)

    @property
    def indexed(self) -> list[IngestionItem]:
        """Return items stored in the index."""
        return [item for item in self.items if item.success]

    @property
    def skipped(self) -> list[IngestionItem]:
        """Return items intentionally left out."""
        return [item for item in self.items if item.skipped]

    @property
    def failed(self) -> list[IngestionItem]:
        """Return items that failed."""
        return [item for item in self.items if not item.success and not item.skipped]


__all__ = ["IngestionItem", "IngestionResult", "PendingFile"]
