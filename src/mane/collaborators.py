"""Interfaces of the external services Mane depends on.

The core never loads models, talks to a language model, or touches the
filesystem itself; it receives implementations of these protocols and treats
any exception they raise as a recoverable collaborator failure.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Protocol, Sequence, runtime_checkable

if TYPE_CHECKING:
    from mane.organization.models import ClusterLabel, ClusterSample, ExecutionResult, FileAction


@runtime_checkable
class TextEmbedder(Protocol):
    """Embed text into the text-space collection (384 dimensions by default)."""

    def embed_text(self, text: str) -> list[float]: ...


@runtime_checkable
class VisualEmbedder(Protocol):
    """Embed images, and text queries, into the visual-space collection."""

    def embed_image(self, path: Path) -> list[float]: ...

    def embed_image_query(self, text: str) -> list[float]: ...


@runtime_checkable
class Transcriber(Protocol):
    """Turn an audio file into text."""

    def transcribe(self, path: Path) -> str: ...


@runtime_checkable
class Captioner(Protocol):
    """Describe an image in a sentence or two."""

    def caption(self, path: Path) -> str: ...


@runtime_checkable
class CompletionClient(Protocol):
    """Return a language-model completion for a prompt."""

    def complete(self, prompt: str) -> str: ...


@runtime_checkable
class ClusterLabeler(Protocol):
    """Name a group of related files."""

    def label_cluster(self, samples: Sequence["ClusterSample"]) -> "ClusterLabel": ...


@runtime_checkable
class FileActionExecutor(Protocol):
    """Apply a single file action to the real filesystem."""

    def execute(self, action: "FileAction") -> "ExecutionResult": ...


__all__ = [
    "Captioner",
    "ClusterLabeler",
    "CompletionClient",
    "FileActionExecutor",
    "TextEmbedder",
    "Transcriber",
    "VisualEmbedder",
]
