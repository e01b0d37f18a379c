"""Reversible text edits: InsertText, DeleteText, ReplaceText.

Each command computes the new buffer content from the context it is given,
validates its preconditions before touching anything, then pushes the result
through the context's buffer handle. Failures come back as CommandResult
values; nothing here raises for a bad range.
"""
import json
import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Type, Union

from textundo.clock import monotonic_ms
from textundo.context import EditorContext
from textundo.errors import CommandError, ErrorKind, HistoryFormatError

logger = logging.getLogger(__name__)

DEFAULT_MERGE_WINDOW_MS = 500


class CommandType(str, Enum):
    INSERT_TEXT = "InsertText"
    DELETE_TEXT = "DeleteText"
    REPLACE_TEXT = "ReplaceText"


@dataclass
class CommandResult:
    success: bool
    content: Optional[str] = None
    cursor_position: Optional[int] = None
    error: Optional[CommandError] = None

    @classmethod
    def ok(cls, content: str, cursor_position: int) -> "CommandResult":
        return cls(True, content=content, cursor_position=cursor_position)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str = "",
             cause: Optional[BaseException] = None) -> "CommandResult":
        return cls(False, error=CommandError(kind, message, cause))


def _precondition(message: str) -> CommandResult:
    return CommandResult.fail(ErrorKind.PRECONDITION_FAILED, message)


def _index_field(data: dict, key: str) -> int:
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise HistoryFormatError(f"field {key!r} must be a non-negative integer, got {value!r}")
    return value


def _text_field(data: dict, key: str, optional: bool = False) -> Optional[str]:
    value = data.get(key) if optional else data[key]
    if optional and value is None:
        return None
    if not isinstance(value, str):
        raise HistoryFormatError(f"field {key!r} must be a string, got {value!r}")
    return value


class EditorCommand:
    """Base for the closed set of command variants.

    Subclasses set ``type`` and implement the edit. ``timestamp`` is taken
    from ``clock`` (monotonic milliseconds by default) unless given outright.
    """

    type: CommandType = None

    def __init__(self, timestamp: Optional[float] = None,
                 clock: Optional[Callable[[], float]] = None):
        self.id = uuid.uuid4().hex
        if timestamp is None:
            timestamp = (clock or monotonic_ms)()
        self.timestamp = timestamp

    def execute(self, context: EditorContext) -> CommandResult:
        raise NotImplementedError

    def undo(self, context: EditorContext) -> CommandResult:
        raise NotImplementedError

    def can_merge(self, other: "EditorCommand",
                  merge_window: float = DEFAULT_MERGE_WINDOW_MS) -> bool:
        return False

    def merge(self, other: "EditorCommand") -> "EditorCommand":
        raise ValueError(f"{self.type} cannot absorb {other.type}")

    def to_data(self) -> Optional[dict]:
        """Variant parameters for the history log, or None if not persistable."""
        return None

    def to_record(self) -> Optional[dict]:
        data = self.to_data()
        if data is None:
            return None
        return {"type": self.type.value, "data": data}

    def serialize(self) -> Optional[str]:
        record = self.to_record()
        if record is None:
            return None
        return json.dumps(record, ensure_ascii=False)

    def _within_window(self, other: "EditorCommand", merge_window: float) -> bool:
        if other.type is not self.type:
            return False
        return 0 <= other.timestamp - self.timestamp < merge_window

    def _apply(self, context: EditorContext, content: str,
               cursor_position: int) -> CommandResult:
        if context.buffer is not None:
            try:
                context.buffer.apply(content, cursor_position)
            except Exception as e:
                logger.warning("%s: buffer rejected update: %s", self.type.value, e)
                return CommandResult.fail(
                    ErrorKind.OPERATION_FAILED, "buffer rejected update", cause=e)
        return CommandResult.ok(content, cursor_position)

    def __repr__(self):
        return f"<{self.type.value} {self.to_data()!r} @{self.timestamp}>"


class InsertText(EditorCommand):
    type = CommandType.INSERT_TEXT

    def __init__(self, position: int, text: str, **kwargs):
        super().__init__(**kwargs)
        self.position = position
        self.text = text

    @property
    def end(self) -> int:
        return self.position + len(self.text)

    def execute(self, context):
        content = context.content
        if not 0 <= self.position <= len(content):
            return _precondition(
                f"insert position {self.position} outside buffer of length {len(content)}")
        new_content = content[:self.position] + self.text + content[self.position:]
        return self._apply(context, new_content, self.end)

    def undo(self, context):
        content = context.content
        if self.position < 0 or content[self.position:self.end] != self.text:
            return _precondition(
                f"buffer no longer holds inserted text at {self.position}")
        new_content = content[:self.position] + content[self.end:]
        return self._apply(context, new_content, self.position)

    def can_merge(self, other, merge_window=DEFAULT_MERGE_WINDOW_MS):
        if not self._within_window(other, merge_window):
            return False
        return other.position == self.end

    def merge(self, other):
        if other.type is not self.type:
            return super().merge(other)
        self.text += other.text
        self.timestamp = other.timestamp
        return self

    def to_data(self):
        return {"position": self.position, "text": self.text}

    @classmethod
    def from_data(cls, data: dict, **kwargs) -> "InsertText":
        return cls(_index_field(data, "position"), _text_field(data, "text"), **kwargs)


class DeleteText(EditorCommand):
    """Removes ``length`` characters at ``position``.

    The removed text is captured on execute so undo can put it back verbatim.
    Consecutive deletes merge when they continue at the same spot (forward
    delete) or just before it (backspace).
    """
    type = CommandType.DELETE_TEXT

    def __init__(self, position: int, length: int,
                 deleted_text: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self.position = position
        self.length = length
        self.deleted_text = deleted_text

    def execute(self, context):
        content = context.content
        if self.position < 0 or self.length < 0 \
                or self.position + self.length > len(content):
            return _precondition(
                f"delete range [{self.position}, {self.position + self.length}) "
                f"outside buffer of length {len(content)}")
        removed = content[self.position:self.position + self.length]
        result = self._apply(
            context, content[:self.position] + content[self.position + self.length:],
            self.position)
        if result.success:
            self.deleted_text = removed
        return result

    def undo(self, context):
        if self.deleted_text is None:
            return _precondition("delete has not been executed")
        content = context.content
        if not 0 <= self.position <= len(content):
            return _precondition(
                f"restore position {self.position} outside buffer of length {len(content)}")
        new_content = content[:self.position] + self.deleted_text + content[self.position:]
        return self._apply(context, new_content, self.position + len(self.deleted_text))

    def can_merge(self, other, merge_window=DEFAULT_MERGE_WINDOW_MS):
        if not self._within_window(other, merge_window):
            return False
        if self.deleted_text is None or other.deleted_text is None:
            return False
        return (other.position == self.position
                or other.position + other.length == self.position)

    def merge(self, other):
        if other.type is not self.type:
            return super().merge(other)
        if other.position == self.position:
            self.deleted_text += other.deleted_text
        else:
            self.deleted_text = other.deleted_text + self.deleted_text
            self.position = other.position
        self.length += other.length
        self.timestamp = other.timestamp
        return self

    def to_data(self):
        return {
            "position": self.position,
            "length": self.length,
            "deletedText": self.deleted_text,
        }

    @classmethod
    def from_data(cls, data: dict, **kwargs) -> "DeleteText":
        return cls(_index_field(data, "position"), _index_field(data, "length"),
                   deleted_text=_text_field(data, "deletedText", optional=True),
                   **kwargs)


class ReplaceText(EditorCommand):
    type = CommandType.REPLACE_TEXT

    def __init__(self, position: int, length: int, new_text: str,
                 old_text: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self.position = position
        self.length = length
        self.new_text = new_text
        self.old_text = old_text

    def execute(self, context):
        content = context.content
        end = self.position + self.length
        if self.position < 0 or self.length < 0 or end > len(content):
            return _precondition(
                f"replace range [{self.position}, {end}) "
                f"outside buffer of length {len(content)}")
        replaced = content[self.position:end]
        result = self._apply(
            context, content[:self.position] + self.new_text + content[end:],
            self.position + len(self.new_text))
        if result.success:
            self.old_text = replaced
        return result

    def undo(self, context):
        if self.old_text is None:
            return _precondition("replace has not been executed")
        content = context.content
        end = self.position + len(self.new_text)
        if self.position < 0 or content[self.position:end] != self.new_text:
            return _precondition(
                f"buffer no longer holds replacement text at {self.position}")
        new_content = content[:self.position] + self.old_text + content[end:]
        return self._apply(context, new_content, self.position + len(self.old_text))

    def to_data(self):
        return {
            "position": self.position,
            "length": self.length,
            "newText": self.new_text,
            "oldText": self.old_text,
        }

    @classmethod
    def from_data(cls, data: dict, **kwargs) -> "ReplaceText":
        return cls(_index_field(data, "position"), _index_field(data, "length"),
                   _text_field(data, "newText"),
                   old_text=_text_field(data, "oldText", optional=True), **kwargs)


COMMAND_CLASSES: Dict[CommandType, Type[EditorCommand]] = {
    CommandType.INSERT_TEXT: InsertText,
    CommandType.DELETE_TEXT: DeleteText,
    CommandType.REPLACE_TEXT: ReplaceText,
}


def command_from_record(record: dict, clock: Optional[Callable[[], float]] = None
                        ) -> EditorCommand:
    """Rebuild a command from a ``{"type": ..., "data": ...}`` log entry."""
    if not isinstance(record, dict):
        raise HistoryFormatError(f"history entry is not an object: {record!r}")
    try:
        command_type = CommandType(record["type"])
    except KeyError:
        raise HistoryFormatError(f"history entry has no type: {record!r}") from None
    except ValueError:
        raise HistoryFormatError(f"unknown command type: {record['type']!r}") from None
    data = record.get("data")
    if not isinstance(data, dict):
        raise HistoryFormatError(f"{command_type.value} entry has no data object")
    try:
        return COMMAND_CLASSES[command_type].from_data(data, clock=clock)
    except KeyError as e:
        raise HistoryFormatError(
            f"{command_type.value} entry is missing field {e.args[0]!r}") from None


def parse_history(history: Union[str, List[dict]],
                  clock: Optional[Callable[[], float]] = None) -> List[EditorCommand]:
    """Turn a serialized history log (JSON text or decoded list) into commands."""
    if isinstance(history, str):
        try:
            history = json.loads(history)
        except json.JSONDecodeError as e:
            raise HistoryFormatError(f"history is not valid JSON: {e}") from e
    if not isinstance(history, list):
        raise HistoryFormatError("history log must be a JSON array")
    return [command_from_record(record, clock=clock) for record in history]
