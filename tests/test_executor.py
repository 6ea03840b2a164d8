"""Local file executor tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from mane.organization import ActionKind, FileAction, LocalFileExecutor


def _write(path: Path, text: str = "data") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_action_requires_paths_for_kind() -> None:
    with pytest.raises(ValueError):
        FileAction(kind=ActionKind.MOVE, source_path="/x/a.txt")
    with pytest.raises(ValueError):
        FileAction(kind=ActionKind.CREATE_FOLDER, source_path="/x")
    action = FileAction(kind=ActionKind.DELETE, source_path="/x/a.txt")
    assert action.id.startswith("action_")


def test_move_into_folder_keeps_name(tmp_path: Path) -> None:
    source = _write(tmp_path / "inbox" / "a.txt")
    executor = LocalFileExecutor()

    result = executor.execute(
        FileAction(
            kind=ActionKind.MOVE, source_path=str(source), destination_path=str(tmp_path / "docs")
        )
    )

    assert result.success
    assert (tmp_path / "docs" / "a.txt").read_text(encoding="utf-8") == "data"
    assert not source.exists()


def test_move_refuses_to_overwrite(tmp_path: Path) -> None:
    source = _write(tmp_path / "inbox" / "a.txt", "new")
    existing = _write(tmp_path / "docs" / "a.txt", "old")
    executor = LocalFileExecutor()

    result = executor.execute(
        FileAction(kind=ActionKind.MOVE, source_path=str(source), destination_path=str(existing))
    )

    assert not result.success
    assert "already exists" in (result.error or "")
    assert existing.read_text(encoding="utf-8") == "old"
    assert source.exists()


def test_missing_source_is_reported(tmp_path: Path) -> None:
    executor = LocalFileExecutor()

    result = executor.execute(
        FileAction(kind=ActionKind.DELETE, source_path=str(tmp_path / "missing.txt"))
    )

    assert not result.success
    assert "missing" in (result.error or "").lower()


def test_copy_rename_and_delete(tmp_path: Path) -> None:
    source = _write(tmp_path / "a.txt")
    executor = LocalFileExecutor()

    copy = FileAction(
        kind=ActionKind.COPY,
        source_path=str(source),
        destination_path=str(tmp_path / "copy" / "b.txt"),
    )
    rename = FileAction(
        kind=ActionKind.RENAME, source_path=str(source), destination_path=str(tmp_path / "c.txt")
    )
    delete = FileAction(kind=ActionKind.DELETE, source_path=str(tmp_path / "copy" / "b.txt"))

    results = executor.execute_all([copy, rename, delete])

    assert [result.success for result in results] == [True, True, True]
    assert (tmp_path / "c.txt").exists()
    assert not source.exists()
    assert not (tmp_path / "copy" / "b.txt").exists()


def test_create_folder_is_idempotent(tmp_path: Path) -> None:
    folder = tmp_path / "new" / "nested"
    action = FileAction(kind=ActionKind.CREATE_FOLDER, destination_path=str(folder))
    executor = LocalFileExecutor()

    assert executor.execute(action).success
    assert executor.execute(action).success
    assert folder.is_dir()


def test_create_folder_fails_over_file(tmp_path: Path) -> None:
    blocker = _write(tmp_path / "taken")

    result = LocalFileExecutor().execute(
        FileAction(kind=ActionKind.CREATE_FOLDER, destination_path=str(blocker))
    )

    assert not result.success


def test_delete_folder_only_when_empty(tmp_path: Path) -> None:
    folder = tmp_path / "folder"
    _write(folder / "keep.txt")
    action = FileAction(kind=ActionKind.DELETE_FOLDER, source_path=str(folder))
    executor = LocalFileExecutor()

    assert not executor.execute(action).success
    (folder / "keep.txt").unlink()
    assert executor.execute(action).success
    assert not folder.exists()


def test_dry_run_validates_without_changes(tmp_path: Path) -> None:
    source = _write(tmp_path / "a.txt")
    executor = LocalFileExecutor(dry_run=True)

    ok = executor.execute(
        FileAction(
            kind=ActionKind.MOVE, source_path=str(source), destination_path=str(tmp_path / "out")
        )
    )
    missing = executor.execute(
        FileAction(kind=ActionKind.DELETE, source_path=str(tmp_path / "nope.txt"))
    )

    assert executor.dry_run
    assert ok.success
    assert source.exists()
    assert not (tmp_path / "out").exists()
    assert not missing.success


def test_actions_outside_allowed_roots_are_refused(tmp_path: Path) -> None:
    allowed = tmp_path / "allowed"
    allowed.mkdir()
    outside = _write(tmp_path / "outside" / "a.txt")
    executor = LocalFileExecutor([allowed])

    result = executor.execute(
        FileAction(
            kind=ActionKind.MOVE, source_path=str(outside), destination_path=str(allowed)
        )
    )

    assert not result.success
    assert "outside the authorized directories" in (result.error or "")
    assert outside.exists()
