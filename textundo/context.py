"""Per-call editor state handed to commands, plus an in-memory buffer handle."""
from dataclasses import dataclass
from typing import Any, Optional, Tuple


@dataclass
class EditorContext:
    """Snapshot of the editing surface for a single execute/undo/redo call.

    ``buffer`` is borrowed from the caller for the duration of the call.
    Anything exposing ``apply(content, cursor_position)`` works; None means
    the command only computes the new content.
    """
    content: str
    cursor_position: int = 0
    selection_range: Tuple[int, int] = (0, 0)
    buffer: Optional[Any] = None


class StringBuffer:
    """Plain-string stand-in for a text widget."""

    def __init__(self, text: str = "", cursor_position: int = 0):
        self.text = text
        self.cursor_position = cursor_position
        self.selection_range: Tuple[int, int] = (cursor_position, cursor_position)
        self.apply_count = 0

    def apply(self, content: str, cursor_position: int):
        self.text = content
        self.cursor_position = cursor_position
        self.selection_range = (cursor_position, cursor_position)
        self.apply_count += 1

    def context(self) -> EditorContext:
        """Fresh context reflecting the current buffer state."""
        return EditorContext(
            content=self.text,
            cursor_position=self.cursor_position,
            selection_range=self.selection_range,
            buffer=self,
        )
