"""Action history data models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field

from mane.organization.models import ExecutionResult, FileAction


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExecutedAction(BaseModel):
    """A file action together with its execution outcome.

    Attributes:
        action: The action as proposed.
        executed_at: Time the outcome was recorded.
        success: Whether the action completed.
        error: Failure description reported by the executor.
        reverse_action: Action undoing this one; only set for successful, invertible actions.
    """

    action: FileAction
    executed_at: datetime = Field(default_factory=_utcnow)
    success: bool = False
    error: Optional[str] = None
    reverse_action: Optional[FileAction] = None


class SessionHistory(BaseModel):
    """Actions executed together as one undoable batch."""

    session_id: str
    actions: List[ExecutedAction] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)
    description: str = ""

    @property
    def can_undo(self) -> bool:
        """Return whether at least one action in the session can be reversed."""
        return any(entry.success and entry.reverse_action for entry in self.actions)

    def undo_actions(self) -> list[FileAction]:
        """Return reverse actions in the opposite order of execution."""

        return [
            entry.reverse_action
            for entry in reversed(self.actions)
            if entry.success and entry.reverse_action is not None
        ]


class HistorySummary(BaseModel):
    """Overview of a recorded session."""

    session_id: str
    description: str
    action_count: int
    success_count: int
    created_at: datetime
    can_undo: bool


class HistorySnapshot(BaseModel):
    """Serializable form of the session history, most recent session first."""

    max_sessions: int = 50
    sessions: List[SessionHistory] = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=_utcnow)


__all__ = [
    "ExecutedAction",
    "ExecutionResult",
    "HistorySnapshot",
    "HistorySummary",
    "SessionHistory",
]
