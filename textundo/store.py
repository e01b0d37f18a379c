"""Persistent history log, one JSON file per editing surface."""
import json
import logging
from pathlib import Path
from typing import List

from textundo.commands import EditorCommand, parse_history
from textundo.config import HISTORY_FILE
from textundo.errors import HistoryFormatError

logger = logging.getLogger(__name__)

STORE_VERSION = 1


class HistoryStore:
    """Saves a manager's undo history to disk and reads it back.

    The file wraps the flat command log with a version number:
    ``{"version": 1, "history": [{"type": ..., "data": ...}, ...]}``.
    """

    def __init__(self, path: Path = HISTORY_FILE):
        self.path = Path(path)

    def save(self, manager):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        records = manager.to_records()
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump({"version": STORE_VERSION, "history": records},
                      f, indent=2, ensure_ascii=False)
        logger.debug("Saved %d history entries to %s", len(records), self.path)

    def load(self, clock=None) -> List[EditorCommand]:
        """Read commands back. A missing file means an empty history."""
        if not self.path.exists():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise HistoryFormatError(f"{self.path}: not valid JSON: {e}") from e
        if not isinstance(data, dict) or data.get("version") != STORE_VERSION:
            raise HistoryFormatError(f"{self.path}: unsupported history file version")
        return parse_history(data.get("history", []), clock=clock)

    def load_into(self, manager) -> int:
        commands = self.load(clock=manager.clock)
        manager.restore_history(commands)
        return manager.get_history_info().undo_count

    def clear(self):
        if self.path.exists():
            self.path.unlink()
