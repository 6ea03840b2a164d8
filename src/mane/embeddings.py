"""Embedding collaborators backed by Chromadb embedding functions."""

from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Any, Callable, Optional

import numpy as np
from PIL import Image

from mane.collaborators import TextEmbedder, VisualEmbedder
from mane.config import ConfigError
from mane.config.models import EmbeddingSettings

LOGGER = logging.getLogger(__name__)


class ChromaTextEmbedder:
    """Embed text with a Chromadb embedding function (MiniLM, 384 dimensions, by default)."""

    def __init__(self, function: Optional[Callable[[list[str]], Any]] = None) -> None:
        if function is None:
            from chromadb.utils import embedding_functions

            function = embedding_functions.DefaultEmbeddingFunction()
        self._function = function

    def embed_text(self, text: str) -> list[float]:
        """Return the embedding of ``text``."""
        vectors = self._function([text])
        return [float(value) for value in vectors[0]]


class OpenClipVisualEmbedder:
    """Embed images and text queries into the shared OpenCLIP space (512 dimensions)."""

    def __init__(self, function: Optional[Callable[[list[Any]], Any]] = None) -> None:
        if function is None:
            from chromadb.utils import embedding_functions

            function = embedding_functions.OpenCLIPEmbeddingFunction()
        self._function = function

    def embed_image(self, path: Path) -> list[float]:
        """Return the embedding of the image stored at ``path``."""
        with Image.open(path) as img:
            pixels = np.asarray(img.convert("RGB"))
        vectors = self._function([pixels])
        return [float(value) for value in vectors[0]]

    def embed_image_query(self, text: str) -> list[float]:
        """Return the embedding of ``text`` in the image space."""
        vectors = self._function([text])
        return [float(value) for value in vectors[0]]


def load_factory(dotted_path: str) -> Callable[[], Any]:
    """Import the callable named by ``module:attribute`` or ``module.attribute``.

    Raises:
        ConfigError: If the module or attribute cannot be imported.
    """

    module_name, sep, attribute = dotted_path.partition(":")
    if not sep:
        module_name, _, attribute = dotted_path.rpartition(".")
    if not module_name or not attribute:
        raise ConfigError(f"Invalid factory path {dotted_path!r}; use 'module:attribute'.")
    try:
        module = importlib.import_module(module_name)
        factory = getattr(module, attribute)
    except (ImportError, AttributeError) as exc:
        raise ConfigError(f"Unable to import {dotted_path!r}: {exc}") from exc
    if not callable(factory):
        raise ConfigError(f"{dotted_path!r} is not callable.")
    return factory


def build_text_embedder(settings: EmbeddingSettings) -> TextEmbedder:
    """Return the configured text embedder."""

    if settings.text_function:
        return load_factory(settings.text_function)()
    return ChromaTextEmbedder()


def build_visual_embedder(settings: EmbeddingSettings) -> Optional[VisualEmbedder]:
    """Return the configured visual embedder, or ``None`` when OpenCLIP is unavailable."""

    if settings.visual_function:
        return load_factory(settings.visual_function)()
    try:
        return OpenClipVisualEmbedder()
    except (ImportError, ValueError) as exc:
        LOGGER.warning("Visual embeddings unavailable (install the 'vision' extra): %s", exc)
        return None


__all__ = [
    "ChromaTextEmbedder",
    "OpenClipVisualEmbedder",
    "build_text_embedder",
    "build_visual_embedder",
    "load_factory",
]
