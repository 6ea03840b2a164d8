"""Action history errors."""


class HistoryError(Exception):
    """Base exception for action history persistence."""


class MissingHistoryError(HistoryError):
    """Raised when no persisted history exists."""
