"""Logging setup for the Mane CLI."""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from mane.config import expand_path
from mane.config.models import LoggingSettings

_NOISY_LOGGERS = ("chromadb", "httpx", "httpcore", "onnxruntime", "LiteLLM")
_HANDLER_MARKER = "_mane_handler"


def configure_logging(settings: Optional[LoggingSettings] = None, *, verbose: bool = False) -> None:
    """Install console and optional rotating-file handlers on the ``mane`` logger.

    Calling this again replaces the handlers installed by a previous call.

    Args:
        settings: Logging configuration; defaults to WARNING on the console only.
        verbose: Force DEBUG level regardless of ``settings.level``.
    """

    settings = settings or LoggingSettings()
    level = logging.DEBUG if verbose else logging.getLevelName(settings.level.upper())
    if not isinstance(level, int):
        level = logging.WARNING

    logger = logging.getLogger("mane")
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            logger.removeHandler(handler)
            handler.close()

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_path=verbose,
        rich_tracebacks=verbose,
    )
    console_handler.setLevel(level)
    setattr(console_handler, _HANDLER_MARKER, True)
    logger.addHandler(console_handler)

    file_level = level
    if settings.file:
        log_path = expand_path(settings.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=settings.max_size_mb * 1024 * 1024,
            backupCount=settings.backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s %(levelname)s %(name)s: %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
            )
        )
        file_level = min(level, logging.INFO)
        file_handler.setLevel(file_level)
        setattr(file_handler, _HANDLER_MARKER, True)
        logger.addHandler(file_handler)

    logger.setLevel(min(level, file_level))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if verbose else logging.ERROR)
    if not verbose:
        os.environ.setdefault("TOKENIZERS_PARALLELISM", "false")
        os.environ.setdefault("HF_HUB_DISABLE_PROGRESS_BARS", "1")


__all__ = ["configure_logging"]
