"""Editor state for one editing surface, driven through a CommandManager."""
import logging
from typing import Callable, Optional, Tuple

from textundo.commands import CommandResult, EditorCommand
from textundo.context import EditorContext
from textundo.manager import CommandManager

logger = logging.getLogger(__name__)


class EditorSession:
    """Tracks content, cursor and selection and routes edits through history.

    A fresh EditorContext is built for every call from the session's current
    state. ``buffer`` is the handle commands push visible updates into (a
    widget adapter, a StringBuffer, or None for headless use).

    on_change(content) fires whenever an operation changes the content.
    on_history_changed(can_undo, can_redo) fires after every history change.
    """

    def __init__(self, initial_content: str = "",
                 manager: Optional[CommandManager] = None,
                 buffer=None,
                 on_change: Optional[Callable[[str], None]] = None,
                 on_history_changed: Optional[Callable[[bool, bool], None]] = None):
        self.initial_content = initial_content
        self.content = initial_content
        self.cursor_position = 0
        self.selection_range: Tuple[int, int] = (0, 0)
        self.manager = manager or CommandManager()
        self.buffer = buffer
        self.on_change = on_change
        self.on_history_changed = on_history_changed

    @property
    def is_dirty(self) -> bool:
        return self.content != self.initial_content

    @property
    def can_undo(self) -> bool:
        return self.manager.can_undo()

    @property
    def can_redo(self) -> bool:
        return self.manager.can_redo()

    def context(self, with_buffer: bool = True) -> EditorContext:
        return EditorContext(
            content=self.content,
            cursor_position=self.cursor_position,
            selection_range=self.selection_range,
            buffer=self.buffer if with_buffer else None,
        )

    def execute(self, command: EditorCommand) -> CommandResult:
        return self._finish(self.manager.execute(command, self.context()))

    def record(self, command: EditorCommand) -> CommandResult:
        """Add an edit the widget has already made to history without reapplying it."""
        return self._finish(self.manager.execute(command, self.context(with_buffer=False)))

    def undo(self) -> CommandResult:
        return self._finish(self.manager.undo(self.context()))

    def redo(self) -> CommandResult:
        return self._finish(self.manager.redo(self.context()))

    def update_content(self, content: str):
        """Take an external content change as-is (no history entry)."""
        self.content = content
        self.cursor_position = min(self.cursor_position, len(content))
        self.selection_range = (self.cursor_position, self.cursor_position)
        self._notify_change()

    def set_cursor(self, position: int):
        self.cursor_position = position

    def set_selection(self, start: int, end: int):
        self.selection_range = (start, end)
        self.cursor_position = start

    def clear_history(self):
        self.manager.clear()
        self._notify_history()

    def restore_history(self, commands):
        self.manager.restore_history(commands)
        self._notify_history()

    def _finish(self, result: CommandResult) -> CommandResult:
        if not result.success:
            return result
        if result.content is not None:
            self.content = result.content
            self._notify_change()
        if result.cursor_position is not None:
            self.cursor_position = result.cursor_position
            self.selection_range = (result.cursor_position, result.cursor_position)
        self._notify_history()
        return result

    def _notify_change(self):
        if self.on_change:
            self.on_change(self.content)

    def _notify_history(self):
        if self.on_history_changed:
            self.on_history_changed(self.manager.can_undo(), self.manager.can_redo())
