"""Hybrid search over the Mane vector store."""

from .models import ScoredRecord
from .retriever import ALL_MEDIA, HybridRetriever, text_similarity, visual_similarity
from .text import keyword_tokens, normalize_search_text, preview_text

__all__ = [
    "ALL_MEDIA",
    "HybridRetriever",
    "ScoredRecord",
    "keyword_tokens",
    "normalize_search_text",
    "preview_text",
    "text_similarity",
    "visual_similarity",
]
