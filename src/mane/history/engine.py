"""Bounded, per-session history of executed file actions."""

from __future__ import annotations

import logging
import threading
from typing import Iterable, Optional, Sequence

from mane.organization.models import FileAction

from .models import (
    ExecutedAction,
    ExecutionResult,
    HistorySnapshot,
    HistorySummary,
    SessionHistory,
)
from .reverse import derive_reverse_action

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_SESSIONS = 50


class ActionHistory:
    """Track executed sessions and the actions that undo them.

    Sessions are kept most-recent first. Once more than ``max_sessions`` have
    been recorded the oldest is evicted. All mutations and reads hold a single
    lock so summaries never observe a half-applied change.
    """

    def __init__(
        self,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
        sessions: Iterable[SessionHistory] = (),
    ) -> None:
        """Initialise the history.

        Args:
            max_sessions: Number of sessions retained.
            sessions: Existing sessions, most recent first.

        Raises:
            ValueError: If ``max_sessions`` is not positive.
        """

        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1.")
        self._max_sessions = max_sessions
        self._lock = threading.RLock()
        self._sessions: dict[str, SessionHistory] = {}
        self._order: list[str] = []
        for session in sessions:
            if session.session_id in self._sessions:
                continue
            self._sessions[session.session_id] = session
            self._order.append(session.session_id)
        self._evict()

    @property
    def max_sessions(self) -> int:
        """Return the number of sessions retained."""
        return self._max_sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._order)

    def record(
        self,
        session_id: str,
        actions: Sequence[FileAction],
        results: Sequence[ExecutionResult],
        description: str = "",
    ) -> SessionHistory:
        """Record the outcome of executing ``actions`` as one session.

        Actions without a matching result are recorded as failed. Recording an
        existing ``session_id`` replaces that session and makes it the most recent.

        Args:
            session_id: Identifier of the batch.
            actions: Actions in execution order.
            results: Executor outcomes keyed by ``action_id``.
            description: Human-readable summary of the batch.

        Returns:
            SessionHistory: The recorded session.
        """

        outcomes = {result.action_id: result for result in results}
        executed: list[ExecutedAction] = []
        for action in actions:
            outcome = outcomes.get(action.id)
            success = outcome.success if outcome is not None else False
            executed.append(
                ExecutedAction(
                    action=action,
                    success=success,
                    error=outcome.error if outcome is not None else "No execution result",
                    reverse_action=derive_reverse_action(action) if success else None,
                )
            )

        session = SessionHistory(session_id=session_id, actions=executed, description=description)
        with self._lock:
            if session_id in self._sessions:
                self._order.remove(session_id)
            self._sessions[session_id] = session
            self._order.insert(0, session_id)
            self._evict()

        LOGGER.info("Recorded %d action(s) for session %s", len(executed), session_id)
        return session

    def get(self, session_id: str) -> Optional[SessionHistory]:
        """Return the session recorded under ``session_id``, if retained."""

        with self._lock:
            return self._sessions.get(session_id)

    def last_undoable_session(self) -> Optional[SessionHistory]:
        """Return the most recent session with at least one reversible action."""

        with self._lock:
            for session_id in self._order:
                session = self._sessions[session_id]
                if session.can_undo:
                    return session
        return None

    def undo_actions_for_last_session(self) -> list[FileAction]:
        """Return the reverse actions of the most recent undoable session."""

        session = self.last_undoable_session()
        return session.undo_actions() if session is not None else []

    def undo_actions_for(self, session_id: str) -> list[FileAction]:
        """Return the reverse actions of ``session_id``, or an empty list if unknown."""

        session = self.get(session_id)
        return session.undo_actions() if session is not None else []

    def mark_undone(self, session_id: str) -> None:
        """Forget ``session_id`` so it cannot be undone twice."""

        with self._lock:
            if session_id in self._sessions:
                del self._sessions[session_id]
                self._order.remove(session_id)
        LOGGER.info("Marked session %s as undone", session_id)

    def history_summary(self) -> list[HistorySummary]:
        """Return summaries of the retained sessions, most recent first."""

        with self._lock:
            sessions = [self._sessions[session_id] for session_id in self._order]
        return [
            HistorySummary(
                session_id=session.session_id,
                description=session.description,
                action_count=len(session.actions),
                success_count=sum(1 for entry in session.actions if entry.success),
                created_at=session.created_at,
                can_undo=session.can_undo,
            )
            for session in sessions
        ]

    def clear(self) -> None:
        """Drop every recorded session."""

        with self._lock:
            self._sessions.clear()
            self._order.clear()
        LOGGER.info("Cleared action history")

    def snapshot(self) -> HistorySnapshot:
        """Return a serializable copy of the history."""

        with self._lock:
            sessions = [self._sessions[session_id] for session_id in self._order]
        return HistorySnapshot(max_sessions=self._max_sessions, sessions=sessions)

    @classmethod
    def from_snapshot(
        cls, snapshot: HistorySnapshot, max_sessions: Optional[int] = None
    ) -> "ActionHistory":
        """Rebuild a history from ``snapshot``, optionally with a new bound."""

        return cls(max_sessions or snapshot.max_sessions, snapshot.sessions)

    def _evict(self) -> None:
        while len(self._order) > self._max_sessions:
            evicted = self._order.pop()
            self._sessions.pop(evicted, None)
            LOGGER.debug("Evicted session %s from history", evicted)


__all__ = ["ActionHistory", "DEFAULT_MAX_SESSIONS"]
