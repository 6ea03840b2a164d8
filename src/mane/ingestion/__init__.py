"""Ingestion pipeline for indexing files into the vector store."""

from .detectors import AUDIO_EXTENSIONS, IMAGE_EXTENSIONS, VIDEO_EXTENSIONS, MediaDetector
from .discovery import DirectoryScanner
from .extractors import ContentExtractor
from .models import IngestionItem, IngestionResult, PendingFile
from .pipeline import IngestionPipeline

__all__ = [
    "AUDIO_EXTENSIONS",
    "ContentExtractor",
    "DirectoryScanner",
    "IMAGE_EXTENSIONS",
    "IngestionItem",
    "IngestionPipeline",
    "IngestionResult",
    "MediaDetector",
    "PendingFile",
    "VIDEO_EXTENSIONS",
]
