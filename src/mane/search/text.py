"""Text normalization utilities for indexing and keyword matching."""

from __future__ import annotations

import re

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F]")
_WHITESPACE = re.compile(r"\s+")


def normalize_search_text(text: str, *, limit: int = 4096) -> str:
    """Return sanitized text suitable for record content.

    Args:
        text: Source text extracted from files, transcripts, or captions.
        limit: Maximum number of characters retained in the normalized output.

    Returns:
        str: Normalized text with control characters removed, whitespace collapsed,
        and length capped to ``limit`` characters when ``limit`` is positive.
    """

    sanitized = _CONTROL_CHARS.sub(" ", text)
    sanitized = _WHITESPACE.sub(" ", sanitized).strip()
    if limit > 0:
        return sanitized[:limit]
    return sanitized


def keyword_tokens(query: str, *, min_length: int = 3) -> list[str]:
    """Split ``query`` into lowercase whitespace-delimited tokens of ``min_length`` or more.

    Duplicate tokens are kept so a repeated word boosts twice, matching how the
    query was typed.
    """

    return [token for token in query.lower().split() if len(token) >= min_length]


def preview_text(text: str, limit: int = 200) -> str:
    """Return ``text`` truncated to ``limit`` characters with an ellipsis marker."""

    if len(text) <= limit:
        return text
    return text[:limit] + "..."


__all__ = ["normalize_search_text", "keyword_tokens", "preview_text"]
