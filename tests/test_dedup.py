"""Duplicate detection tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from mane.ingestion import IngestionPipeline
from mane.organization import ActionKind, DuplicateFinder, find_duplicate_groups
from mane.store import MediaClass, Record, VectorRecordStore


def _record(path: str, embedding: list[float]) -> Record:
    return Record(source_path=path, content=path, embedding=embedding)


def test_find_duplicate_groups_unions_transitively() -> None:
    records = [
        _record("/a.txt", [1.0, 0.0, 0.0]),
        _record("/b.txt", [0.96, 0.28, 0.0]),
        _record("/c.txt", [0.85, 0.53, 0.0]),
        _record("/d.txt", [0.0, 0.0, 1.0]),
    ]

    groups = find_duplicate_groups(records, 0.95)

    assert len(groups) == 1
    group = groups[0]
    assert group.primary.source_path == "/a.txt"
    assert [item.source_path for item in group.duplicates] == ["/b.txt", "/c.txt"]
    assert group.duplicates[0].similarity == pytest.approx(0.96, abs=1e-3)
    assert group.duplicates[1].similarity < 0.95


def test_find_duplicate_groups_ignores_zero_vectors() -> None:
    records = [_record("/a.txt", [0.0, 0.0]), _record("/b.txt", [0.0, 0.0])]

    assert find_duplicate_groups(records, 0.5) == []
    assert find_duplicate_groups(records[:1], 0.5) == []


def test_finder_compares_within_collections(
    store: VectorRecordStore, make_record, text_embedder
) -> None:
    store.insert(make_record("/docs/report.txt", "annual report figures"))
    store.insert(make_record("/docs/report copy.txt", "annual report figures"))
    store.insert(make_record("/docs/other.txt", "holiday itinerary"))
    store.insert(make_record("/pics/beach.png", "Image: beach.png", MediaClass.IMAGE))
    store.insert(make_record("/pics/backup/beach.png", "Image: beach.png", MediaClass.IMAGE))

    finder = DuplicateFinder(store, threshold=0.99)
    groups = finder.find()
    text_only = finder.find(media_filter=MediaClass.TEXT)

    assert len(groups) == 2
    assert len(text_only) == 1
    assert {group.primary.media_class for group in groups} == {MediaClass.TEXT, MediaClass.IMAGE}


def test_generate_actions_deletes_non_primary_members(
    store: VectorRecordStore, make_record
) -> None:
    for path in ("/docs/a.txt", "/docs/b.txt", "/docs/c.txt"):
        store.insert(make_record(path, "identical words everywhere"))
    finder = DuplicateFinder(store)

    groups = finder.find()
    actions = DuplicateFinder.generate_actions(groups)

    assert len(groups) == 1
    assert len(actions) == 2
    assert all(action.kind is ActionKind.DELETE for action in actions)
    primary = groups[0].primary.source_path
    assert primary not in {action.source_path for action in actions}
    assert all(action.permission_scope == "/docs" for action in actions)


def test_finder_rejects_invalid_threshold(store: VectorRecordStore) -> None:
    with pytest.raises(ValueError):
        DuplicateFinder(store, threshold=1.5)


def test_records_of_one_file_are_never_duplicates_of_each_other() -> None:
    records = [
        _record("/docs/only.txt", [1.0, 0.0]),
        _record("/docs/only.txt", [1.0, 0.0]),
    ]

    assert find_duplicate_groups(records, 0.95) == []


def test_repeated_paths_collapse_within_a_group() -> None:
    records = [
        _record("/docs/a.txt", [1.0, 0.0]),
        _record("/docs/a.txt", [1.0, 0.0]),
        _record("/docs/b.txt", [1.0, 0.0]),
        _record("/docs/b.txt", [1.0, 0.0]),
    ]

    (group,) = find_duplicate_groups(records, 0.95)
    actions = DuplicateFinder.generate_actions([group])

    assert group.primary.source_path == "/docs/a.txt"
    assert [item.source_path for item in group.duplicates] == ["/docs/b.txt"]
    assert [action.source_path for action in actions] == ["/docs/b.txt"]


def test_indexing_twice_proposes_no_deletions(
    tmp_path: Path, store: VectorRecordStore, text_embedder
) -> None:
    docs = tmp_path / "docs"
    docs.mkdir()
    (docs / "only.txt").write_text("the one and only copy", encoding="utf-8")
    pipeline = IngestionPipeline(store, text_embedder)
    pipeline.run([docs])
    pipeline.run([docs])

    finder = DuplicateFinder(store)

    assert store.count() == 1
    assert DuplicateFinder.generate_actions(finder.find()) == []
