"""Search result models."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel

from mane.store.models import Record

from .text import preview_text

Modality = Literal["text", "visual"]


class ScoredRecord(BaseModel):
    """A record ranked by the hybrid retriever.

    Attributes:
        record: The matching record.
        score: Fused score used for ranking.
        similarity: Vector similarity before keyword boosts, on a ``[0, 1]`` scale.
        keyword_boost: Amount added for lexical matches.
        modality: Embedding space the match came from.
    """

    record: Record
    score: float
    similarity: float
    keyword_boost: float = 0.0
    modality: Modality = "text"

    def to_payload(self, *, preview_chars: int = 200) -> dict[str, Any]:
        """Return a JSON-ready summary without the embedding."""

        return {
            "id": self.record.id,
            "path": self.record.source_path,
            "name": self.record.display_name,
            "media": self.record.media_class.value,
            "score": round(self.score, 4),
            "similarity": round(self.similarity, 4),
            "modality": self.modality,
            "preview": preview_text(self.record.content, preview_chars),
        }


__all__ = ["Modality", "ScoredRecord"]
