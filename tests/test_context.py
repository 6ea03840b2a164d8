"""Application context workflow tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from mane.config.models import ManeConfig
from mane.context import ManeContext
from mane.history import HistoryError, HistoryRepository
from mane.organization import ActionKind, FileAction
from mane.store import VectorRecordStore


def _context(
    tmp_path: Path, store: VectorRecordStore, text_embedder, *, dry_run: bool = False
) -> ManeContext:
    config = ManeConfig()
    config.organization.target_folder = str(tmp_path / "Organized")
    config.organization.seed = 5
    config.organization.min_cluster_size = 1
    config.processing.process_images = False
    return ManeContext(
        config,
        store=store,
        text_embedder=text_embedder,
        history_repository=HistoryRepository(tmp_path / "history.json"),
        dry_run=dry_run,
    )


def _files(root: Path) -> list[Path]:
    root.mkdir(parents=True, exist_ok=True)
    contents = {
        "tax_2022.txt": "tax return deductions income statement 2022",
        "tax_2023.txt": "tax return deductions income statement 2023",
        "cake.txt": "recipe flour sugar butter oven bake cake",
        "bread.txt": "recipe flour sugar butter oven bake bread",
    }
    paths = []
    for name, text in contents.items():
        path = root / name
        path.write_text(text, encoding="utf-8")
        paths.append(path)
    return paths


def test_overrides_shadow_lazy_components(
    tmp_path: Path, store: VectorRecordStore, text_embedder
) -> None:
    context = _context(tmp_path, store, text_embedder)

    assert context.store is store
    assert context.text_embedder is text_embedder
    assert context.labeler is None
    assert context.retriever is context.retriever


def test_organize_apply_and_undo_round_trip(
    tmp_path: Path, store: VectorRecordStore, text_embedder
) -> None:
    inbox = tmp_path / "inbox"
    originals = _files(inbox)
    context = _context(tmp_path, store, text_embedder)
    context.pipeline.run([inbox])

    plan = context.organizer.plan()
    report = context.apply_actions(plan.actions, "Organize inbox")

    assert report.failed == 0
    assert report.can_undo
    assert not any(path.exists() for path in originals)
    assert (tmp_path / "history.json").exists()

    reloaded = HistoryRepository(tmp_path / "history.json").load()
    assert reloaded.get(report.session_id) is not None

    undo = context.undo()

    assert undo.session_id == report.session_id
    assert undo.failed == 0
    assert all(path.exists() for path in originals)
    assert not any((tmp_path / "Organized").iterdir())
    assert context.history.get(report.session_id) is None
    with pytest.raises(HistoryError):
        context.undo()


def test_dry_run_records_nothing(tmp_path: Path, store: VectorRecordStore, text_embedder) -> None:
    source = tmp_path / "a.txt"
    source.write_text("hello", encoding="utf-8")
    context = _context(tmp_path, store, text_embedder, dry_run=True)
    action = FileAction(
        kind=ActionKind.MOVE, source_path=str(source), destination_path=str(tmp_path / "out")
    )

    report = context.apply_actions([action], "Move a")

    assert report.dry_run
    assert report.succeeded == 1
    assert source.exists()
    assert len(context.history) == 0
    assert not (tmp_path / "history.json").exists()


def test_undo_unknown_session(tmp_path: Path, store: VectorRecordStore, text_embedder) -> None:
    context = _context(tmp_path, store, text_embedder)

    with pytest.raises(HistoryError, match="Unknown session"):
        context.undo("session_missing")


def test_undo_of_irreversible_session_fails(
    tmp_path: Path, store: VectorRecordStore, text_embedder
) -> None:
    victim = tmp_path / "dup.txt"
    victim.write_text("copy", encoding="utf-8")
    context = _context(tmp_path, store, text_embedder)
    report = context.apply_actions(
        [FileAction(kind=ActionKind.DELETE, source_path=str(victim))], "Delete duplicates"
    )

    assert not report.can_undo
    with pytest.raises(HistoryError, match="no reversible actions"):
        context.undo(report.session_id)


def test_index_follows_files_through_organize_and_undo(
    tmp_path: Path, store: VectorRecordStore, text_embedder
) -> None:
    inbox = tmp_path / "inbox"
    originals = {str(path.resolve()) for path in _files(inbox)}
    context = _context(tmp_path, store, text_embedder)
    context.pipeline.run([inbox])

    context.apply_actions(context.organizer.plan().actions, "Organize inbox")

    moved = {record.source_path for record in store.scan_all()}
    assert moved.isdisjoint(originals)
    assert all(Path(path).exists() for path in moved)
    context.pipeline.run([inbox, tmp_path / "Organized"])
    assert store.count() == 4

    context.undo()

    assert {record.source_path for record in store.scan_all()} == originals
    assert store.count() == 4


def test_rename_and_delete_update_the_index(
    tmp_path: Path, store: VectorRecordStore, text_embedder
) -> None:
    inbox = tmp_path / "inbox"
    keep, drop, *_ = _files(inbox)
    context = _context(tmp_path, store, text_embedder)
    context.pipeline.run([inbox])
    renamed = inbox / "renamed.txt"

    report = context.apply_actions(
        [
            FileAction(
                kind=ActionKind.RENAME,
                source_path=str(keep.resolve()),
                destination_path=str(renamed.resolve()),
            ),
            FileAction(kind=ActionKind.DELETE, source_path=str(drop.resolve())),
        ],
        "Tidy inbox",
    )

    assert report.failed == 0
    paths = {record.source_path for record in store.scan_all()}
    assert str(renamed.resolve()) in paths
    assert str(keep.resolve()) not in paths
    assert str(drop.resolve()) not in paths
    assert store.count() == 3
