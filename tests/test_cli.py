"""CLI integration tests for indexing, search, organization, and undo."""

from __future__ import annotations

import json
import os
from pathlib import Path

from click.testing import CliRunner

from mane.cli import cli


def _env_with_home(tmp_path: Path) -> dict[str, str]:
    """Return environment variables pointing HOME to a temp directory.

    The hashing embedders keep the tests offline and deterministic.

    Args:
        tmp_path: Temporary directory provided by pytest.

    Returns:
        dict[str, str]: Environment mapping with HOME and embedder overrides set.
    """
    env = dict(os.environ)
    env["HOME"] = str(tmp_path / "home")
    env["MANE__EMBEDDINGS__TEXT_FUNCTION"] = "fake_embeddings:HashingTextEmbedder"
    env["MANE__EMBEDDINGS__VISUAL_FUNCTION"] = "fake_embeddings:HashingVisualEmbedder"
    env["MANE__ORGANIZATION__SEED"] = "1"
    env["MANE__ORGANIZATION__MIN_CLUSTER_SIZE"] = "1"
    env["MANE__ORGANIZATION__TARGET_FOLDER"] = str(tmp_path / "Organized")
    return env


def _inbox(tmp_path: Path) -> Path:
    root = tmp_path / "inbox"
    root.mkdir()
    files = {
        "tax_2022.txt": "tax return deductions income statement 2022",
        "tax_2023.txt": "tax return deductions income statement 2023",
        "cake.txt": "recipe flour sugar butter oven bake cake",
        "bread.txt": "recipe flour sugar butter oven bake bread",
    }
    for name, text in files.items():
        (root / name).write_text(text, encoding="utf-8")
    return root


def _invoke_json(runner: CliRunner, args: list[str], env: dict[str, str]) -> dict:
    result = runner.invoke(cli, [*args, "--json"], env=env)
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


def test_cli_help_displays_commands() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "Mane indexes your files" in result.output
    for command in ("index", "search", "organize", "dedupe", "history", "undo", "config"):
        assert command in result.output


def test_cli_index_and_search(tmp_path: Path) -> None:
    root = _inbox(tmp_path)
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    indexed = _invoke_json(runner, ["index", str(root)], env)

    assert indexed["counts"] == {"indexed": 4, "skipped": 0, "failed": 0}

    payload = _invoke_json(runner, ["search", "tax deductions", "--limit", "2"], env)

    assert payload["query"] == "tax deductions"
    assert len(payload["results"]) == 2
    assert all(hit["name"].startswith("tax_") for hit in payload["results"])
    assert payload["results"][0]["score"] >= payload["results"][1]["score"]


def test_cli_index_summary_mode(tmp_path: Path) -> None:
    root = _inbox(tmp_path)
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(cli, ["index", str(root), "--summary"], env=env)

    assert result.exit_code == 0
    assert "Index summary" in result.output
    assert "indexed=4" in result.output
    assert "Indexed" not in result.output


def test_cli_json_conflicts_with_quiet(tmp_path: Path) -> None:
    root = _inbox(tmp_path)
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(cli, ["index", str(root), "--json", "--quiet"], env=env)

    assert result.exit_code == 1
    payload = json.loads(result.output)
    assert payload["error"]["code"] == "cli_error"


def test_cli_search_rejects_unknown_media(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(cli, ["search", "anything", "--media", "spreadsheet"], env=env)

    assert result.exit_code != 0


def test_cli_organize_dry_run_then_apply_and_undo(tmp_path: Path) -> None:
    root = _inbox(tmp_path)
    originals = sorted(path.name for path in root.iterdir())
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    _invoke_json(runner, ["index", str(root)], env)

    preview = _invoke_json(runner, ["organize", "--dry-run"], env)

    assert preview["dry_run"] is True
    assert "session" not in preview
    assert preview["plan"]["actions"]
    assert sorted(path.name for path in root.iterdir()) == originals

    applied = _invoke_json(runner, ["organize"], env)

    session = applied["session"]
    assert session["counts"]["failed"] == 0
    assert session["can_undo"] is True
    assert list(root.iterdir()) == []

    history = _invoke_json(runner, ["history"], env)
    assert history["sessions"][0]["session_id"] == session["session_id"]
    assert history["sessions"][0]["can_undo"] is True

    undone = _invoke_json(runner, ["undo"], env)

    assert undone["session_id"] == session["session_id"]
    assert undone["counts"]["failed"] == 0
    assert sorted(path.name for path in root.iterdir()) == originals
    assert _invoke_json(runner, ["history"], env)["sessions"] == []


def test_cli_undo_without_history_reports_error(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(cli, ["undo", "--json"], env=env)

    assert result.exit_code == 1
    payload = json.loads(result.output)
    assert payload["error"]["code"] == "history_error"
    assert "Nothing to undo" in payload["error"]["message"]


def test_cli_dedupe_deletes_duplicates(tmp_path: Path) -> None:
    root = tmp_path / "dupes"
    root.mkdir()
    for name in ("a.txt", "b.txt"):
        (root / name).write_text("the very same words", encoding="utf-8")
    (root / "c.txt").write_text("something else entirely", encoding="utf-8")
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    _invoke_json(runner, ["index", str(root)], env)

    preview = _invoke_json(runner, ["dedupe", "--dry-run"], env)

    assert len(preview["groups"]) == 1
    assert len(preview["actions"]) == 1
    assert len(list(root.iterdir())) == 3

    refused = runner.invoke(cli, ["dedupe", "--json"], env=env)
    assert refused.exit_code == 1

    applied = _invoke_json(runner, ["dedupe", "--yes"], env)

    assert applied["session"]["counts"]["succeeded"] == 1
    assert sorted(path.name for path in root.iterdir()) in (["a.txt", "c.txt"], ["b.txt", "c.txt"])
    status = _invoke_json(runner, ["status"], env)
    assert status["counts"]["records"] == 2


def test_cli_list_and_forget(tmp_path: Path) -> None:
    root = _inbox(tmp_path)
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    _invoke_json(runner, ["index", str(root)], env)

    records = _invoke_json(runner, ["list"], env)["records"]
    assert len(records) == 4
    assert "embedding" not in records[0]

    forgotten = _invoke_json(runner, ["forget", records[0]["id"]], env)

    assert forgotten["forgotten"] == [records[0]["id"]]
    assert _invoke_json(runner, ["status"], env)["counts"]["text"] == 3
