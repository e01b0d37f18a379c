"""Undo/redo history for one editing surface."""
import json
import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

from textundo.clock import monotonic_ms
from textundo.commands import (
    COMMAND_CLASSES, DEFAULT_MERGE_WINDOW_MS, CommandResult, CommandType,
    EditorCommand, parse_history,
)
from textundo.context import EditorContext
from textundo.errors import ErrorKind

logger = logging.getLogger(__name__)

DEFAULT_MAX_HISTORY_SIZE = 100


@dataclass(frozen=True)
class HistoryInfo:
    undo_count: int
    redo_count: int
    max_size: int


class CommandManager:
    """Executes commands and keeps the undo and redo stacks.

    Stacks are most-recent-last. The undo stack never holds more than
    ``max_history_size`` commands; the oldest one is dropped first. Commands
    that fail leave both stacks exactly as they were.

    Not thread-safe: callers must finish one execute/undo/redo before
    starting the next.
    """

    def __init__(self, max_history_size: int = DEFAULT_MAX_HISTORY_SIZE,
                 merge_window: float = DEFAULT_MERGE_WINDOW_MS,
                 clock: Optional[Callable[[], float]] = None):
        _check_history_size(max_history_size)
        self._max_history_size = max_history_size
        self._merge_window = merge_window
        self.clock = clock or monotonic_ms
        self._undo: deque[EditorCommand] = deque(maxlen=max_history_size)
        self._redo: List[EditorCommand] = []
        # Restored entries come from an earlier session; new edits never merge into them.
        self._merge_barrier = False

    @classmethod
    def from_config(cls, config, clock=None) -> "CommandManager":
        return cls(
            max_history_size=config.max_history_size,
            merge_window=config.merge_window_ms,
            clock=clock,
        )

    def create(self, command_type: CommandType, *args, **kwargs) -> EditorCommand:
        """Build a command stamped with this manager's clock."""
        kwargs.setdefault("clock", self.clock)
        return COMMAND_CLASSES[CommandType(command_type)](*args, **kwargs)

    def execute(self, command: EditorCommand, context: EditorContext) -> CommandResult:
        result = command.execute(context)
        if not result.success:
            logger.debug("%s failed, history unchanged: %s", command.type.value, result.error)
            return result

        self._redo.clear()
        if self._undo and not self._merge_barrier \
                and self._undo[-1].can_merge(command, self._merge_window):
            self._undo[-1] = self._undo[-1].merge(command)
            logger.debug("Merged %s into history top", command.type.value)
        else:
            if len(self._undo) == self._max_history_size:
                logger.debug("History full (%d), dropping oldest entry",
                             self._max_history_size)
            self._undo.append(command)
        self._merge_barrier = False
        return result

    def undo(self, context: EditorContext) -> CommandResult:
        if not self._undo:
            return CommandResult.fail(ErrorKind.NOTHING_TO_UNDO, "Nothing to undo")
        command = self._undo[-1]
        result = command.undo(context)
        if result.success:
            self._undo.pop()
            self._redo.append(command)
        else:
            logger.warning("Undo of %s failed: %s", command.type.value, result.error)
        return result

    def redo(self, context: EditorContext) -> CommandResult:
        if not self._redo:
            return CommandResult.fail(ErrorKind.NOTHING_TO_REDO, "Nothing to redo")
        command = self._redo[-1]
        result = command.execute(context)
        if result.success:
            self._redo.pop()
            self._undo.append(command)
        else:
            logger.warning("Redo of %s failed: %s", command.type.value, result.error)
        return result

    def can_undo(self) -> bool:
        return len(self._undo) > 0

    def can_redo(self) -> bool:
        return len(self._redo) > 0

    def get_history_info(self) -> HistoryInfo:
        return HistoryInfo(
            undo_count=len(self._undo),
            redo_count=len(self._redo),
            max_size=self._max_history_size,
        )

    def get_history(self) -> List[EditorCommand]:
        return list(self._undo)

    def clear(self):
        self._undo.clear()
        self._redo.clear()
        self._merge_barrier = False

    def restore_history(self, commands: Iterable[EditorCommand]):
        """Replace the undo stack, keeping the most recent entries. Redo is emptied."""
        self._undo = deque(commands, maxlen=self._max_history_size)
        self._redo.clear()
        self._merge_barrier = True
        logger.debug("Restored %d history entries", len(self._undo))

    def load_history(self, text: str):
        self.restore_history(parse_history(text, clock=self.clock))

    def to_records(self) -> List[dict]:
        # Commands without a persistable form are left out of the log.
        records = []
        for command in self._undo:
            record = command.to_record()
            if record is not None:
                records.append(record)
        return records

    def serialize_history(self) -> str:
        return json.dumps(self.to_records(), ensure_ascii=False)

    def update_options(self, max_history_size: Optional[int] = None,
                       merge_window: Optional[float] = None):
        if max_history_size is not None:
            _check_history_size(max_history_size)
            self._max_history_size = max_history_size
            self._undo = deque(self._undo, maxlen=max_history_size)
        if merge_window is not None:
            self._merge_window = merge_window

    def get_options(self) -> dict:
        return {
            "max_history_size": self._max_history_size,
            "merge_window": self._merge_window,
        }


def _check_history_size(size: int):
    if size < 1:
        raise ValueError(f"max_history_size must be at least 1, got {size}")
