"""Record models for the vector store."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from pathlib import PurePath
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class MediaClass(str, Enum):
    """Kind of media a record was extracted from."""

    TEXT = "text"
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"


class CollectionName(str, Enum):
    """Logical partitions of the store, one per embedding space."""

    TEXT = "documents_text"
    VISUAL = "documents_media"


_COLLECTION_FOR_MEDIA = {
    MediaClass.TEXT: CollectionName.TEXT,
    MediaClass.AUDIO: CollectionName.TEXT,
    MediaClass.IMAGE: CollectionName.VISUAL,
    MediaClass.VIDEO: CollectionName.VISUAL,
}


def collection_for(media_class: MediaClass) -> CollectionName:
    """Return the collection that owns records of ``media_class``.

    Text and audio transcripts live in the text space; images and video
    frames live in the visual space.
    """

    return _COLLECTION_FOR_MEDIA[MediaClass(media_class)]


def new_record_id() -> str:
    """Return an opaque identifier for a new record."""

    return f"doc_{uuid.uuid4().hex}"


class Record(BaseModel):
    """One embedded item of the collection.

    Attributes:
        id: Opaque unique identifier.
        content: Extracted, transcribed, or captioned text.
        source_path: Absolute path of the original file.
        display_name: Base name shown to users.
        media_class: Media kind, which selects the owning collection.
        embedding: Fixed-length vector in the owning collection's space.
        auxiliary_path: Optional companion file such as a thumbnail.
        attributes: Open key/value metadata.
        created_at: Ingestion timestamp.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_record_id)
    content: str = ""
    source_path: str
    display_name: str = ""
    media_class: MediaClass = MediaClass.TEXT
    embedding: List[float]
    auxiliary_path: Optional[str] = None
    attributes: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="before")
    @classmethod
    def _default_display_name(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("display_name") and data.get("source_path"):
            data = dict(data)
            data["display_name"] = PurePath(str(data["source_path"])).name
        return data

    @property
    def collection(self) -> CollectionName:
        """Return the collection this record belongs to."""
        return collection_for(self.media_class)


__all__ = ["MediaClass", "CollectionName", "Record", "collection_for", "new_record_id"]
