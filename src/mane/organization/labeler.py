"""Cluster labeling through a language-model completion client."""

from __future__ import annotations

import logging
import re
from typing import Sequence

from mane.collaborators import CompletionClient

from .models import ClusterLabel, ClusterSample
from .paths import slugify_folder_name

LOGGER = logging.getLogger(__name__)

_LABEL_LINE = re.compile(r"Label:\s*(.+)", re.IGNORECASE)
_FOLDER_LINE = re.compile(r"Folder:\s*(\S+)", re.IGNORECASE)
_KEYWORDS_LINE = re.compile(r"Keywords:\s*(.+)", re.IGNORECASE)

LABEL_PROMPT = """Analyze these files and provide:
1. A short descriptive label (3-5 words)
2. A suggested folder name (lowercase, underscores, no spaces)
3. 3-5 keywords describing the content

Files in this cluster:
{samples}

Respond in this exact format:
Label: [your label]
Folder: [folder_name]
Keywords: [keyword1, keyword2, keyword3]"""


def fallback_label(cluster_id: int) -> ClusterLabel:
    """Return the deterministic label used when labeling is unavailable or fails."""

    return ClusterLabel(
        label=f"Cluster {cluster_id + 1}",
        folder_name=f"cluster_{cluster_id + 1}",
        keywords=[],
    )


def format_samples(samples: Sequence[ClusterSample]) -> str:
    """Render samples as ``- name: preview`` lines."""

    return "\n".join(f"- {sample.display_name}: {sample.preview}" for sample in samples)


def parse_label_response(text: str) -> ClusterLabel:
    """Parse a ``Label:/Folder:/Keywords:`` completion into a :class:`ClusterLabel`.

    A missing folder line falls back to the slugified label; brackets around
    values are tolerated.

    Raises:
        ValueError: If the response has no label line.
    """

    label_match = _LABEL_LINE.search(text)
    if label_match is None:
        raise ValueError("Completion did not contain a 'Label:' line.")
    label = label_match.group(1).strip().strip("[]").strip()
    if not label:
        raise ValueError("Completion contained an empty label.")

    folder_match = _FOLDER_LINE.search(text)
    folder_source = folder_match.group(1).strip("[]") if folder_match else label
    folder_name = slugify_folder_name(folder_source) or slugify_folder_name(label)

    keywords: list[str] = []
    keywords_match = _KEYWORDS_LINE.search(text)
    if keywords_match:
        raw = keywords_match.group(1).strip().strip("[]")
        keywords = [keyword.strip() for keyword in raw.split(",") if keyword.strip()]

    return ClusterLabel(label=label, folder_name=folder_name, keywords=keywords)


class CompletionClusterLabeler:
    """Label clusters by prompting a completion client."""

    def __init__(self, client: CompletionClient) -> None:
        self._client = client

    def label_cluster(self, samples: Sequence[ClusterSample]) -> ClusterLabel:
        """Ask the completion client to name the cluster described by ``samples``.

        Raises:
            ValueError: If the completion cannot be parsed.
        """

        prompt = LABEL_PROMPT.format(samples=format_samples(samples))
        response = self._client.complete(prompt)
        label = parse_label_response(response)
        LOGGER.debug("Labeled cluster of %d sample(s) as %r", len(samples), label.label)
        return label


__all__ = [
    "CompletionClusterLabeler",
    "LABEL_PROMPT",
    "fallback_label",
    "format_samples",
    "parse_label_response",
]
