"""JSON persistence for action history."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .engine import ActionHistory
from .errors import HistoryError, MissingHistoryError
from .models import HistorySnapshot


class HistoryRepository:
    """Load and save :class:`ActionHistory` instances as JSON."""

    def __init__(self, path: Path) -> None:
        """Initialize the repository.

        Args:
            path: JSON file holding the history.
        """
        self._path = path

    @property
    def path(self) -> Path:
        """Return the history file path."""
        return self._path

    def load(self, max_sessions: Optional[int] = None) -> ActionHistory:
        """Load the persisted history.

        Args:
            max_sessions: Optional bound overriding the stored one.

        Returns:
            ActionHistory: History rebuilt from disk.

        Raises:
            MissingHistoryError: If no history file exists.
            HistoryError: If the stored data cannot be parsed.
        """
        if not self._path.exists():
            raise MissingHistoryError(f"No action history found at {self._path}")

        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            snapshot = HistorySnapshot.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as exc:
            raise HistoryError(f"Invalid action history data: {exc}") from exc

        return ActionHistory.from_snapshot(snapshot, max_sessions)

    def load_or_create(self, max_sessions: int) -> ActionHistory:
        """Load the persisted history, or return an empty one when none exists."""
        try:
            return self.load(max_sessions)
        except MissingHistoryError:
            return ActionHistory(max_sessions)

    def save(self, history: ActionHistory) -> None:
        """Persist ``history`` to disk."""
        snapshot = history.snapshot()
        snapshot.updated_at = datetime.now(timezone.utc)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            json.dumps(snapshot.model_dump(mode="json"), indent=2), encoding="utf-8"
        )


__all__ = ["HistoryRepository"]
