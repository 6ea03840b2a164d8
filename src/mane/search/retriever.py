"""Hybrid semantic and keyword retrieval across both collections."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Callable, Optional

from mane.collaborators import TextEmbedder, VisualEmbedder
from mane.config.models import SearchSettings
from mane.store import CollectionName, MediaClass, Record, VectorRecordStore

from .models import ScoredRecord
from .text import keyword_tokens

LOGGER = logging.getLogger(__name__)

ALL_MEDIA = "all"
_VISUAL_MEDIA = {MediaClass.IMAGE, MediaClass.VIDEO}


def text_similarity(distance: float) -> float:
    """Convert a text-space cosine distance to a similarity clamped to ``[0, 1]``."""

    return min(1.0, max(0.0, 1.0 - distance))


def visual_similarity(distance: float) -> float:
    """Rescale a visual-space cosine distance onto the ``[0, 1]`` text scale.

    Cosine similarity ``1 - distance`` ranges over ``[-1, 1]`` in the visual
    space; ``(s + 1) / 2`` maps it onto the same scale as text-space scores.
    """

    cosine = 1.0 - distance
    return min(1.0, max(0.0, (cosine + 1.0) / 2.0))


class HybridRetriever:
    """Rank records by vector similarity fused with keyword matches."""

    def __init__(
        self,
        store: VectorRecordStore,
        text_embedder: TextEmbedder,
        visual_embedder: Optional[VisualEmbedder] = None,
        *,
        settings: Optional[SearchSettings] = None,
    ) -> None:
        self._store = store
        self._text_embedder = text_embedder
        self._visual_embedder = visual_embedder
        self._settings = settings or SearchSettings()

    def search(
        self,
        query: str,
        limit: Optional[int] = None,
        media_filter: str | MediaClass | None = ALL_MEDIA,
        *,
        cross_modal: Optional[bool] = None,
    ) -> list[ScoredRecord]:
        """Return up to ``limit`` records ranked for ``query``.

        Args:
            query: Natural-language query.
            limit: Maximum number of results; defaults to ``search.default_limit``.
            media_filter: ``"all"`` or a media class keeping only matching records.
            cross_modal: Also query the visual collection; defaults to ``search.cross_modal``.

        Returns:
            list[ScoredRecord]: Results ordered by descending fused score, one per file.
            Embedding failures yield fewer (or no) results rather than an error.

        Raises:
            ValueError: If ``limit`` is not positive or ``media_filter`` is unknown.
        """

        limit = self._settings.default_limit if limit is None else limit
        if limit <= 0:
            raise ValueError("limit must be a positive integer.")
        media = _parse_media_filter(media_filter)
        if not query.strip():
            return []

        if cross_modal is None:
            cross_modal = self._settings.cross_modal
        visual_embedder = self._visual_embedder if cross_modal else None
        if visual_embedder is not None and not (
            (media is None or media in _VISUAL_MEDIA)
            and self._store.count(CollectionName.VISUAL) > 0
        ):
            visual_embedder = None

        if visual_embedder is not None:
            search_visual = partial(self._search_visual, visual_embedder, query, limit, media)
            with ThreadPoolExecutor(max_workers=2, thread_name_prefix="mane-search") as pool:
                text_future = pool.submit(
                    self._guarded, "text", lambda: self._search_text(query, limit, media)
                )
                visual_future = pool.submit(self._guarded, "visual", search_visual)
                text_hits, visual_hits = text_future.result(), visual_future.result()
        else:
            text_hits = self._guarded("text", lambda: self._search_text(query, limit, media))
            visual_hits = []

        merged = sorted([*text_hits, *visual_hits], key=lambda hit: hit.score, reverse=True)
        results = _dedupe(merged)[:limit]
        LOGGER.debug(
            "Query %r returned %d result(s) (%d text, %d visual candidates)",
            query,
            len(results),
            len(text_hits),
            len(visual_hits),
        )
        return results

    def keyword_boost(self, record: Record, tokens: list[str]) -> float:
        """Return the lexical bonus for ``record`` given lowercase query ``tokens``."""

        content = record.content.lower()
        name = record.display_name.lower()
        boost = 0.0
        for token in tokens:
            if token in content:
                boost += self._settings.content_boost
            if token in name:
                boost += self._settings.filename_boost
        return boost

    # ------------------------------------------------------------------ #
    # Per-modality searches                                              #
    # ------------------------------------------------------------------ #

    def _search_text(
        self, query: str, limit: int, media: Optional[MediaClass]
    ) -> list[ScoredRecord]:
        vector = self._text_embedder.embed_text(query)
        candidates = self._store.nearest_neighbors(
            CollectionName.TEXT, vector, limit * self._settings.candidate_multiplier
        )
        tokens = keyword_tokens(query, min_length=self._settings.min_token_length)

        hits: list[ScoredRecord] = []
        for record, distance in candidates:
            if media is not None and record.media_class != media:
                continue
            similarity = text_similarity(distance)
            boost = self.keyword_boost(record, tokens)
            hits.append(
                ScoredRecord(
                    record=record,
                    score=similarity + boost,
                    similarity=similarity,
                    keyword_boost=boost,
                    modality="text",
                )
            )
        # sorted() is stable, so equal scores keep their similarity rank.
        return sorted(hits, key=lambda hit: hit.score, reverse=True)[:limit]

    def _search_visual(
        self,
        embedder: VisualEmbedder,
        query: str,
        limit: int,
        media: Optional[MediaClass],
    ) -> list[ScoredRecord]:
        vector = embedder.embed_image_query(query)
        candidates = self._store.nearest_neighbors(
            CollectionName.VISUAL, vector, limit * self._settings.candidate_multiplier
        )
        hits = [
            ScoredRecord(
                record=record,
                score=visual_similarity(distance),
                similarity=visual_similarity(distance),
                modality="visual",
            )
            for record, distance in candidates
            if media is None or record.media_class == media
        ]
        return hits[:limit]

    def _guarded(
        self, modality: str, search: Callable[[], list[ScoredRecord]]
    ) -> list[ScoredRecord]:
        try:
            return search()
        except Exception as exc:
            LOGGER.warning("%s search failed; continuing without it: %s", modality.title(), exc)
            return []


def _parse_media_filter(value: str | MediaClass | None) -> Optional[MediaClass]:
    if value is None or value == ALL_MEDIA:
        return None
    try:
        return MediaClass(value)
    except ValueError as exc:
        choices = ", ".join([ALL_MEDIA, *(media.value for media in MediaClass)])
        raise ValueError(f"Unknown media filter {value!r}; expected one of {choices}.") from exc


def _dedupe(hits: list[ScoredRecord]) -> list[ScoredRecord]:
    seen: set[str] = set()
    unique: list[ScoredRecord] = []
    for hit in hits:
        key = hit.record.source_path or hit.record.id
        if key in seen:
            continue
        seen.add(key)
        unique.append(hit)
    return unique


__all__ = ["ALL_MEDIA", "HybridRetriever", "text_similarity", "visual_similarity"]
