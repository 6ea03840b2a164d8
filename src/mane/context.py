"""Explicit application context wiring the store, collaborators, and history."""

from __future__ import annotations

import logging
import uuid
from functools import cached_property
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field

from mane.collaborators import (
    Captioner,
    ClusterLabeler,
    FileActionExecutor,
    TextEmbedder,
    Transcriber,
    VisualEmbedder,
)
from mane.config import expand_path
from mane.config.models import ManeConfig
from mane.embeddings import build_text_embedder, build_visual_embedder
from mane.history import ActionHistory, HistoryError, HistoryRepository
from mane.ingestion import IngestionPipeline
from mane.organization import (
    ActionKind,
    ClusterOrganizer,
    CompletionClusterLabeler,
    DuplicateFinder,
    ExecutionResult,
    FileAction,
    LocalFileExecutor,
    resolve_actual_destination,
)
from mane.search import HybridRetriever
from mane.store import VectorRecordStore

LOGGER = logging.getLogger(__name__)


def new_session_id() -> str:
    """Return an identifier for a new action session."""

    return f"session_{uuid.uuid4().hex[:12]}"


class SessionReport(BaseModel):
    """Outcome of applying or undoing a batch of actions."""

    session_id: str
    description: str = ""
    actions: List[FileAction] = Field(default_factory=list)
    results: List[ExecutionResult] = Field(default_factory=list)
    dry_run: bool = False
    can_undo: bool = False

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for result in self.results if result.success)

    @property
    def failed(self) -> int:
        return self.total - self.succeeded


class ManeContext:
    """Own the long-lived components of a Mane process.

    Collaborators are built once, on first use, from the configuration unless
    they are passed in explicitly. Action history is loaded from and saved to
    ``history.path`` when a repository is configured.
    """

    def __init__(
        self,
        config: Optional[ManeConfig] = None,
        *,
        store: Optional[VectorRecordStore] = None,
        text_embedder: Optional[TextEmbedder] = None,
        visual_embedder: Optional[VisualEmbedder] = None,
        labeler: Optional[ClusterLabeler] = None,
        captioner: Optional[Captioner] = None,
        transcriber: Optional[Transcriber] = None,
        executor: Optional[FileActionExecutor] = None,
        history: Optional[ActionHistory] = None,
        history_repository: Optional[HistoryRepository] = None,
        dry_run: bool = False,
    ) -> None:
        self.config = config or ManeConfig()
        self.dry_run = dry_run
        self.transcriber = transcriber
        self._history_repository = history_repository
        overrides = {
            "store": store,
            "text_embedder": text_embedder,
            "visual_embedder": visual_embedder,
            "labeler": labeler,
            "captioner": captioner,
            "executor": executor,
            "history": history,
        }
        for name, value in overrides.items():
            if value is not None:
                self.__dict__[name] = value

    @classmethod
    def from_config(cls, config: ManeConfig, *, dry_run: bool = False) -> "ManeContext":
        """Return a context persisting history at ``config.history.path``."""

        repository = HistoryRepository(expand_path(config.history.path))
        return cls(config, history_repository=repository, dry_run=dry_run)

    # ------------------------------------------------------------------ #
    # Components                                                         #
    # ------------------------------------------------------------------ #

    @cached_property
    def store(self) -> VectorRecordStore:
        settings = self.config.store
        return VectorRecordStore.open(
            expand_path(settings.path),
            text_dimension=settings.text_dimension,
            visual_dimension=settings.visual_dimension,
        )

    @cached_property
    def text_embedder(self) -> TextEmbedder:
        return build_text_embedder(self.config.embeddings)

    @cached_property
    def visual_embedder(self) -> Optional[VisualEmbedder]:
        return build_visual_embedder(self.config.embeddings)

    @cached_property
    def labeler(self) -> Optional[ClusterLabeler]:
        if not self.config.llm.enabled:
            return None
        from mane.llm import DspyCompletion

        try:
            return CompletionClusterLabeler(DspyCompletion(self.config.llm))
        except RuntimeError as exc:
            LOGGER.warning("Cluster labeling disabled: %s", exc)
            return None

    @cached_property
    def captioner(self) -> Optional[Captioner]:
        if not (self.config.llm.enabled and self.config.processing.process_images):
            return None
        from mane.llm import DspyCaptioner

        try:
            return DspyCaptioner(self.config.llm)
        except RuntimeError as exc:
            LOGGER.warning("Image captioning disabled: %s", exc)
            return None

    @cached_property
    def executor(self) -> FileActionExecutor:
        return LocalFileExecutor(dry_run=self.dry_run)

    @cached_property
    def history(self) -> ActionHistory:
        max_sessions = self.config.history.max_sessions
        if self._history_repository is None:
            return ActionHistory(max_sessions)
        return self._history_repository.load_or_create(max_sessions)

    @cached_property
    def retriever(self) -> HybridRetriever:
        visual = self.visual_embedder if self.config.search.cross_modal else None
        return HybridRetriever(
            self.store, self.text_embedder, visual, settings=self.config.search
        )

    @cached_property
    def organizer(self) -> ClusterOrganizer:
        return ClusterOrganizer(
            self.store,
            text_embedder=self.text_embedder,
            labeler=self.labeler,
            settings=self.config.organization,
            scan_limit=self.config.store.scan_limit,
        )

    @cached_property
    def duplicate_finder(self) -> DuplicateFinder:
        return DuplicateFinder(
            self.store,
            threshold=self.config.dedup.threshold,
            scan_limit=self.config.store.scan_limit,
        )

    @cached_property
    def pipeline(self) -> IngestionPipeline:
        processing = self.config.processing
        return IngestionPipeline(
            self.store,
            self.text_embedder,
            visual_embedder=self.visual_embedder if processing.process_images else None,
            transcriber=self.transcriber,
            captioner=self.captioner,
            processing=processing,
        )

    # ------------------------------------------------------------------ #
    # Session workflows                                                  #
    # ------------------------------------------------------------------ #

    def apply_actions(
        self,
        actions: Sequence[FileAction],
        description: str,
        session_id: Optional[str] = None,
    ) -> SessionReport:
        """Execute ``actions`` in order and record them as one undoable session.

        Stored records follow files that are moved or renamed, and records of
        deleted files are dropped.

        Args:
            actions: Actions to execute.
            description: Summary stored with the session.
            session_id: Identifier for the session; generated when omitted.

        Returns:
            SessionReport: Per-action results. Nothing is recorded in dry-run mode.
        """

        session_id = session_id or new_session_id()
        results = [self.executor.execute(action) for action in actions]
        report = SessionReport(
            session_id=session_id,
            description=description,
            actions=list(actions),
            results=results,
            dry_run=self.dry_run,
        )
        if self.dry_run:
            return report

        self._sync_store(actions, results)
        session = self.history.record(session_id, actions, results, description)
        report.can_undo = session.can_undo
        self.save_history()
        LOGGER.info(
            "Session %s: %d of %d action(s) succeeded", session_id, report.succeeded, report.total
        )
        return report

    def undo(self, session_id: Optional[str] = None) -> SessionReport:
        """Undo ``session_id``, or the most recent undoable session.

        The session is removed from history before its reverse actions run so
        it cannot be undone twice.

        Raises:
            HistoryError: If there is no matching session with reversible actions.
        """

        if session_id is not None:
            session = self.history.get(session_id)
            if session is None:
                raise HistoryError(f"Unknown session {session_id!r}.")
        else:
            session = self.history.last_undoable_session()
            if session is None:
                raise HistoryError("Nothing to undo.")

        reverse_actions = session.undo_actions()
        if not reverse_actions:
            raise HistoryError(f"Session {session.session_id!r} has no reversible actions.")

        if not self.dry_run:
            self.history.mark_undone(session.session_id)
            self.save_history()
        results = [self.executor.execute(action) for action in reverse_actions]
        if not self.dry_run:
            self._sync_store(reverse_actions, results)
        report = SessionReport(
            session_id=session.session_id,
            description=f"Undo: {session.description}".strip(),
            actions=reverse_actions,
            results=results,
            dry_run=self.dry_run,
        )
        if report.failed:
            LOGGER.warning(
                "Undo of %s left %d action(s) unapplied", session.session_id, report.failed
            )
        return report

    def _sync_store(
        self, actions: Sequence[FileAction], results: Sequence[ExecutionResult]
    ) -> None:
        """Point stored records at the files' locations after ``actions`` ran."""

        succeeded = {result.action_id for result in results if result.success}
        for action in actions:
            if action.id not in succeeded or not action.source_path:
                continue
            try:
                if action.kind is ActionKind.MOVE and action.destination_path:
                    self.store.relocate(
                        action.source_path,
                        resolve_actual_destination(action.source_path, action.destination_path),
                    )
                elif action.kind is ActionKind.RENAME and action.destination_path:
                    self.store.relocate(action.source_path, action.destination_path)
                elif action.kind is ActionKind.DELETE:
                    self.store.delete_by_source_path(action.source_path)
            except Exception as exc:
                LOGGER.warning(
                    "Index not updated for %s; re-run index to refresh it: %s",
                    action.source_path,
                    exc,
                )

    def save_history(self) -> None:
        """Persist history when a repository is configured."""

        if self._history_repository is not None and not self.dry_run:
            self._history_repository.save(self.history)


__all__ = ["ManeContext", "SessionReport", "new_session_id"]
