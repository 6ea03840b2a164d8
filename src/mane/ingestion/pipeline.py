"""High-level ingestion pipeline orchestration."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

from mane.collaborators import Captioner, TextEmbedder, Transcriber, VisualEmbedder
from mane.config.models import ProcessingOptions
from mane.store import MediaClass, Record, VectorRecordStore

from .detectors import MediaDetector
from .discovery import DirectoryScanner
from .extractors import ContentExtractor
from .models import IngestionItem, IngestionResult, PendingFile

LOGGER = logging.getLogger(__name__)


class SkipFile(Exception):
    """Raised internally when a file is intentionally not indexed."""


class IngestionPipeline:
    """Discover files, extract their content, embed it, and store records.

    Re-indexing a file replaces its earlier record. A failure on one file is
    recorded on its :class:`IngestionItem` and never aborts the run.
    """

    def __init__(
        self,
        store: VectorRecordStore,
        text_embedder: TextEmbedder,
        *,
        visual_embedder: Optional[VisualEmbedder] = None,
        transcriber: Optional[Transcriber] = None,
        captioner: Optional[Captioner] = None,
        processing: Optional[ProcessingOptions] = None,
        scanner: Optional[DirectoryScanner] = None,
        detector: Optional[MediaDetector] = None,
        extractor: Optional[ContentExtractor] = None,
    ) -> None:
        self.store = store
        self.text_embedder = text_embedder
        self.visual_embedder = visual_embedder
        self.transcriber = transcriber
        self.captioner = captioner
        self.processing = processing or ProcessingOptions()
        self.scanner = scanner or DirectoryScanner(
            recursive=self.processing.recurse_directories,
            include_hidden=self.processing.process_hidden_files,
            follow_symlinks=self.processing.follow_symlinks,
            max_size_bytes=self.processing.max_file_size_mb * 1024 * 1024,
        )
        self.detector = detector or MediaDetector()
        self.extractor = extractor or ContentExtractor(self.processing.text_sample_chars)

    def run(self, roots: Iterable[Path]) -> IngestionResult:
        """Ingest every file discovered under ``roots``."""
        result = IngestionResult()
        for root in roots:
            for pending in self.scanner.scan(Path(root)):
                result.items.append(self.ingest(pending))
        LOGGER.info(
            "Indexed %d file(s); %d skipped, %d failed",
            len(result.indexed),
            len(result.skipped),
            len(result.failed),
        )
        return result

    def ingest(self, pending: PendingFile) -> IngestionItem:
        """Ingest a single discovered file."""
        path = pending.path
        media_class = self.detector.detect(path)
        item = IngestionItem(path=path, media_class=media_class)

        if pending.locked:
            item.error = "Permission denied"
            return item
        if pending.oversized:
            item.skipped = True
            item.error = f"Larger than {self.processing.max_file_size_mb} MB"
            return item

        try:
            record = self._build_record(path, media_class)
            item.record_id = self.store.replace(record)
            item.success = True
        except SkipFile as exc:
            item.skipped = True
            item.error = str(exc)
            LOGGER.debug("Skipped %s: %s", path, exc)
        except Exception as exc:
            item.error = str(exc)
            LOGGER.warning("Failed to index %s: %s", path, exc)
        return item

    def _build_record(self, path: Path, media_class: MediaClass) -> Record:
        mime_type = self.detector.mime_type(path)
        attributes = self.extractor.attributes(path, mime_type)

        if media_class is MediaClass.TEXT:
            content = self.extractor.read_text(path)
            if not content:
                raise SkipFile("No text content")
            embedding = self.text_embedder.embed_text(content)

        elif media_class is MediaClass.AUDIO:
            if not self.processing.process_audio or self.transcriber is None:
                raise SkipFile("Audio processing is disabled")
            content = self.transcriber.transcribe(path).strip()
            if not content:
                raise ValueError("Transcription returned no text")
            embedding = self.text_embedder.embed_text(content)

        elif media_class is MediaClass.IMAGE:
            if not self.processing.process_images or self.visual_embedder is None:
                raise SkipFile("Image processing is disabled")
            content = self._caption(path)
            embedding = self.visual_embedder.embed_image(path)

        else:
            if self.visual_embedder is None:
                raise SkipFile("Video requires a visual embedder")
            content = f"Video: {path.name}"
            embedding = self.visual_embedder.embed_image(path)

        return Record(
            content=content,
            source_path=str(path),
            display_name=path.name,
            media_class=media_class,
            embedding=list(embedding),
            attributes=attributes,
        )

    def _caption(self, path: Path) -> str:
        if self.captioner is None:
            return f"Image: {path.name}"
        try:
            caption = self.captioner.caption(path).strip()
        except Exception as exc:
            LOGGER.warning("Captioning failed for %s: %s", path.name, exc)
            caption = ""
        return caption or f"Image: {path.name}"


__all__ = ["IngestionPipeline"]
