"""Tests for locking, logging setup, and collaborator factories."""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path

import pytest
from fake_embeddings import HashingTextEmbedder

from mane.config import ConfigError
from mane.config.models import EmbeddingSettings, LoggingSettings
from mane.embeddings import build_text_embedder, build_visual_embedder, load_factory
from mane.llm import DspyCompletion
from mane.logging_config import configure_logging
from mane.store import ReadWriteLock


def test_readers_share_the_lock() -> None:
    lock = ReadWriteLock()
    inside = threading.Barrier(2, timeout=2)

    def reader() -> None:
        with lock.read():
            inside.wait()

    threads = [threading.Thread(target=reader) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=3)

    assert not inside.broken


def test_writer_excludes_readers() -> None:
    lock = ReadWriteLock()
    events: list[str] = []

    def writer() -> None:
        with lock.write():
            events.append("write-start")
            time.sleep(0.05)
            events.append("write-end")

    with lock.read():
        thread = threading.Thread(target=writer)
        thread.start()
        time.sleep(0.02)
        assert events == []
    thread.join(timeout=2)

    with lock.read():
        events.append("read")

    assert events == ["write-start", "write-end", "read"]


def test_load_factory_accepts_both_separators() -> None:
    assert load_factory("fake_embeddings:HashingTextEmbedder") is HashingTextEmbedder
    assert load_factory("fake_embeddings.HashingTextEmbedder") is HashingTextEmbedder


def test_load_factory_reports_bad_paths() -> None:
    with pytest.raises(ConfigError):
        load_factory("no_such_module:thing")
    with pytest.raises(ConfigError):
        load_factory("nodots")


def test_build_embedders_from_settings() -> None:
    settings = EmbeddingSettings(
        text_function="fake_embeddings:HashingTextEmbedder",
        visual_function="fake_embeddings:HashingVisualEmbedder",
    )

    text = build_text_embedder(settings)
    visual = build_visual_embedder(settings)

    assert len(text.embed_text("hello")) == 384
    assert visual is not None
    assert len(visual.embed_image_query("hello")) == 512


def test_configure_logging_replaces_handlers(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "mane.log"
    logger = logging.getLogger("mane")

    configure_logging(LoggingSettings(level="ERROR", file=str(log_file)))
    configure_logging(LoggingSettings(level="ERROR", file=str(log_file)))
    marked = [handler for handler in logger.handlers if getattr(handler, "_mane_handler", False)]

    assert len(marked) == 2
    assert logger.level == logging.INFO
    logging.getLogger("mane.test").info("written to file only")
    for handler in marked:
        handler.flush()
    assert "written to file only" in log_file.read_text(encoding="utf-8")
    assert logging.getLogger("chromadb").level == logging.ERROR

    configure_logging(verbose=True)
    assert logger.level == logging.DEBUG
    configure_logging()


def test_completion_reads_text_and_dict_outputs() -> None:
    assert DspyCompletion(lm=lambda prompt: ["  Tax Returns \n"]).complete("p") == "Tax Returns"
    assert DspyCompletion(lm=lambda prompt: [{"text": " Recipes "}]).complete("p") == "Recipes"


def test_completion_rejects_empty_outputs() -> None:
    with pytest.raises(RuntimeError, match="no completion"):
        DspyCompletion(lm=lambda prompt: []).complete("p")
