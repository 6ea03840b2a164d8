"""Action history and undo support."""

from .engine import DEFAULT_MAX_SESSIONS, ActionHistory
from .errors import HistoryError, MissingHistoryError
from .models import (
    ExecutedAction,
    ExecutionResult,
    HistorySnapshot,
    HistorySummary,
    SessionHistory,
)
from .repository import HistoryRepository
from .reverse import derive_reverse_action

__all__ = [
    "ActionHistory",
    "DEFAULT_MAX_SESSIONS",
    "ExecutedAction",
    "ExecutionResult",
    "HistoryError",
    "HistoryRepository",
    "HistorySnapshot",
    "HistorySummary",
    "MissingHistoryError",
    "SessionHistory",
    "derive_reverse_action",
]
