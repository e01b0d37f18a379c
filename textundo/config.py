"""Configuration management, JSON-based, stored in ~/.config/textundo/."""
import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "max_history_size": 100,
    "merge_window_ms": 500,
    "debug_logging": False,
    "persist_history": True,
}

CONFIG_DIR = Path.home() / ".config" / "textundo"
CONFIG_FILE = CONFIG_DIR / "config.json"
HISTORY_FILE = CONFIG_DIR / "history.json"


class Config:
    def __init__(self, path: Path = CONFIG_FILE):
        self.path = Path(path)
        self._data = dict(DEFAULT_CONFIG)
        self.load()

    def load(self):
        if self.path.exists():
            try:
                with open(self.path, "r", encoding="utf-8") as f:
                    stored = json.load(f)
                if not isinstance(stored, dict):
                    raise ValueError("top level is not an object")
                self._data.update(stored)
            except (json.JSONDecodeError, UnicodeDecodeError, IOError, ValueError) as e:
                logger.warning("Ignoring unreadable config %s: %s", self.path, e)

    def save(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self._data, f, indent=2, ensure_ascii=False)

    def get(self, key, default=None):
        return self._data.get(key, default)

    def set(self, key, value):
        self._data[key] = value
        self.save()

    @property
    def max_history_size(self):
        return int(self._data["max_history_size"])

    @max_history_size.setter
    def max_history_size(self, val):
        if int(val) < 1:
            raise ValueError(f"max_history_size must be at least 1, got {val}")
        self._data["max_history_size"] = int(val)
        self.save()

    @property
    def merge_window_ms(self):
        return self._data["merge_window_ms"]

    @merge_window_ms.setter
    def merge_window_ms(self, val):
        self._data["merge_window_ms"] = val
        self.save()

    @property
    def debug_logging(self):
        return self._data["debug_logging"]

    @property
    def persist_history(self):
        return self._data.get("persist_history", True)
