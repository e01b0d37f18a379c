"""Qt text widgets wired to the undo engine."""
import logging

from PyQt5.QtCore import Qt, pyqtSignal
from PyQt5.QtGui import QKeySequence
from PyQt5.QtWidgets import QLineEdit, QPlainTextEdit

from textundo.context import EditorContext
from textundo.diff import command_from_change
from textundo.session import EditorSession

logger = logging.getLogger(__name__)


class QtTextHandle:
    """Buffer handle that pushes command results into a Qt text widget.

    Works with QLineEdit, QPlainTextEdit and QTextEdit. ``applying`` is set
    while the widget is being updated so change listeners can tell our own
    writes from user typing.
    """

    def __init__(self, widget):
        self.widget = widget
        self.applying = False

    def apply(self, content: str, cursor_position: int):
        self.applying = True
        try:
            if isinstance(self.widget, QLineEdit):
                self.widget.setText(content)
                self.widget.setCursorPosition(cursor_position)
            else:
                self.widget.setPlainText(content)
                cursor = self.widget.textCursor()
                cursor.setPosition(cursor_position)
                self.widget.setTextCursor(cursor)
        finally:
            self.applying = False


def widget_text(widget) -> str:
    if isinstance(widget, QLineEdit):
        return widget.text()
    return widget.toPlainText()


def context_from_widget(widget) -> EditorContext:
    """Snapshot a widget's text, cursor and selection into a fresh context."""
    if isinstance(widget, QLineEdit):
        cursor = widget.cursorPosition()
        if widget.hasSelectedText():
            start = widget.selectionStart()
            selection = (start, start + len(widget.selectedText()))
        else:
            selection = (cursor, cursor)
    else:
        text_cursor = widget.textCursor()
        cursor = text_cursor.position()
        selection = (text_cursor.selectionStart(), text_cursor.selectionEnd())
    return EditorContext(
        content=widget_text(widget),
        cursor_position=cursor,
        selection_range=selection,
        buffer=QtTextHandle(widget),
    )


class UndoableTextEdit(QPlainTextEdit):
    """Plain text editor whose undo/redo runs through a CommandManager.

    Typing is diffed into InsertText/DeleteText/ReplaceText commands and
    recorded; Ctrl+Z undoes, Ctrl+Y and Ctrl+Shift+Z redo.
    """

    historyChanged = pyqtSignal(bool, bool)  # can_undo, can_redo

    def __init__(self, text: str = "", manager=None, parent=None):
        super().__init__(parent)
        self.setUndoRedoEnabled(False)
        self.setPlainText(text)
        self._handle = QtTextHandle(self)
        self.session = EditorSession(
            text,
            manager=manager,
            buffer=self._handle,
            on_history_changed=self.historyChanged.emit,
        )
        self.textChanged.connect(self._on_text_changed)
        self.cursorPositionChanged.connect(self._on_cursor_moved)

    @property
    def manager(self):
        return self.session.manager

    def undo(self):
        result = self.session.undo()
        if not result.success:
            logger.debug("Undo not applied: %s", result.error)
        return result

    def redo(self):
        result = self.session.redo()
        if not result.success:
            logger.debug("Redo not applied: %s", result.error)
        return result

    def keyPressEvent(self, event):
        ctrl = bool(event.modifiers() & Qt.ControlModifier)
        shift = bool(event.modifiers() & Qt.ShiftModifier)
        if event.matches(QKeySequence.Undo) and not shift:
            self.undo()
            return
        if event.matches(QKeySequence.Redo) or (ctrl and event.key() == Qt.Key_Y) \
                or (ctrl and shift and event.key() == Qt.Key_Z):
            self.redo()
            return
        super().keyPressEvent(event)

    def _on_text_changed(self):
        if self._handle.applying:
            return
        new_text = self.toPlainText()
        command = command_from_change(self.session.content, new_text,
                                      clock=self.manager.clock)
        if command is None:
            return
        result = self.session.record(command)
        if not result.success:
            # Session content must match the widget.
            logger.warning("Could not record edit: %s", result.error)
            self.session.update_content(new_text)

    def _on_cursor_moved(self):
        if self._handle.applying:
            return
        cursor = self.textCursor()
        self.session.set_selection(cursor.selectionStart(), cursor.selectionEnd())
        self.session.set_cursor(cursor.position())
