"""Shared fixtures for the Mane test suite."""

from __future__ import annotations

from pathlib import Path

import pytest
from fake_embeddings import HashingTextEmbedder, HashingVisualEmbedder

from mane.store import MediaClass, Record, VectorRecordStore


@pytest.fixture
def text_embedder() -> HashingTextEmbedder:
    return HashingTextEmbedder()


@pytest.fixture
def visual_embedder() -> HashingVisualEmbedder:
    return HashingVisualEmbedder()


@pytest.fixture
def store(tmp_path: Path) -> VectorRecordStore:
    """Return a persistent store rooted in a temporary directory."""
    return VectorRecordStore.open(tmp_path / "index")


@pytest.fixture
def make_record(text_embedder: HashingTextEmbedder, visual_embedder: HashingVisualEmbedder):
    """Return a factory building records embedded with the hashing embedders."""

    def _make(
        source_path: str,
        content: str,
        media_class: MediaClass = MediaClass.TEXT,
    ) -> Record:
        if media_class in {MediaClass.IMAGE, MediaClass.VIDEO}:
            embedding = visual_embedder.embed_image(Path(source_path))
        else:
            embedding = text_embedder.embed_text(content)
        return Record(
            content=content,
            source_path=source_path,
            media_class=media_class,
            embedding=embedding,
        )

    return _make
