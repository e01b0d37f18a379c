"""textundo: command-based undo/redo engine for text editors."""
from textundo.commands import (
    CommandResult, CommandType, DeleteText, EditorCommand, InsertText,
    ReplaceText, command_from_record, parse_history,
)
from textundo.context import EditorContext, StringBuffer
from textundo.errors import CommandError, ErrorKind, HistoryFormatError
from textundo.manager import CommandManager, HistoryInfo

__all__ = [
    "CommandError", "CommandManager", "CommandResult", "CommandType",
    "DeleteText", "EditorCommand", "EditorContext", "ErrorKind",
    "HistoryFormatError", "HistoryInfo", "InsertText", "ReplaceText",
    "StringBuffer", "command_from_record", "parse_history",
]
