"""Tests for CommandManager: history stacks, merging, bounds."""
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import pytest

from textundo.clock import ManualClock
from textundo.commands import (
    CommandResult, CommandType, DeleteText, EditorCommand, InsertText, ReplaceText,
)
from textundo.context import StringBuffer
from textundo.errors import ErrorKind
from textundo.manager import CommandManager


class FlakyUndo(InsertText):
    """Insert whose undo can be switched off."""
    allow_undo = True

    def undo(self, context):
        if not self.allow_undo:
            return CommandResult.fail(ErrorKind.OPERATION_FAILED, "undo refused")
        return super().undo(context)


def spaced_inserts(manager, buf, count):
    """Execute inserts far enough apart in time that none of them merge."""
    for i in range(count):
        manager.clock.advance(1000)
        manager.execute(manager.create(CommandType.INSERT_TEXT, 0, str(i % 10)), buf.context())


def make_manager(**kwargs):
    return CommandManager(clock=ManualClock(0), **kwargs)


def test_hello_world_scenario():
    manager = make_manager()
    buf = StringBuffer("Hello world")

    manager.execute(InsertText(5, " beautiful", timestamp=0), buf.context())
    assert buf.text == "Hello beautiful world"
    manager.execute(DeleteText(5, 10, timestamp=10), buf.context())
    assert buf.text == "Hello world"

    manager.undo(buf.context())
    assert buf.text == "Hello beautiful world"
    manager.undo(buf.context())
    assert buf.text == "Hello world"

    manager.redo(buf.context())
    manager.redo(buf.context())
    assert buf.text == "Hello world"
    info = manager.get_history_info()
    assert info.undo_count == 2
    assert info.redo_count == 0


def test_failed_execute_leaves_history_untouched():
    manager = make_manager()
    buf = StringBuffer("Hello")
    manager.execute(InsertText(5, "!", timestamp=0), buf.context())
    manager.undo(buf.context())

    result = manager.execute(DeleteText(100, 5), buf.context())
    assert not result.success
    assert result.error.kind is ErrorKind.PRECONDITION_FAILED
    info = manager.get_history_info()
    assert info.undo_count == 0
    assert info.redo_count == 1


def test_round_trip_restores_original_content():
    manager = make_manager()
    buf = StringBuffer("The quick fox")
    commands = [
        InsertText(9, " brown", timestamp=0),
        ReplaceText(0, 3, "A", timestamp=1000),
        DeleteText(1, 6, timestamp=2000),
        InsertText(0, ">> ", timestamp=3000),
    ]
    for cmd in commands:
        assert manager.execute(cmd, buf.context()).success
    for _ in commands:
        assert manager.undo(buf.context()).success
    assert buf.text == "The quick fox"
    assert not manager.can_undo()
    assert manager.can_redo()


def test_redo_is_inverse_of_undo():
    manager = make_manager()
    buf = StringBuffer("abc")
    manager.execute(ReplaceText(1, 1, "XYZ", timestamp=0), buf.context())
    after_execute = buf.text
    manager.undo(buf.context())
    result = manager.redo(buf.context())
    assert result.success
    assert buf.text == after_execute
    assert manager.get_history_info().undo_count == 1


def test_new_execute_clears_redo():
    manager = make_manager()
    buf = StringBuffer("")
    spaced_inserts(manager, buf, 2)
    manager.undo(buf.context())
    assert manager.get_history_info().redo_count == 1
    spaced_inserts(manager, buf, 1)
    assert manager.get_history_info().redo_count == 0
    assert not manager.can_redo()


def test_typing_within_window_merges():
    clock = ManualClock(0)
    manager = CommandManager(clock=clock)
    buf = StringBuffer("")
    manager.execute(manager.create(CommandType.INSERT_TEXT, 0, "a"), buf.context())
    clock.advance(100)
    manager.execute(manager.create(CommandType.INSERT_TEXT, 1, "b"), buf.context())
    assert manager.get_history_info().undo_count == 1
    assert buf.text == "ab"

    manager.undo(buf.context())
    assert buf.text == ""


def test_typing_after_pause_does_not_merge():
    clock = ManualClock(0)
    manager = CommandManager(clock=clock)
    buf = StringBuffer("")
    manager.execute(manager.create(CommandType.INSERT_TEXT, 0, "a"), buf.context())
    clock.advance(600)
    manager.execute(manager.create(CommandType.INSERT_TEXT, 1, "b"), buf.context())
    assert manager.get_history_info().undo_count == 2


def test_custom_and_updated_merge_window():
    clock = ManualClock(0)
    manager = CommandManager(merge_window=200, clock=clock)
    buf = StringBuffer("")
    manager.execute(manager.create(CommandType.INSERT_TEXT, 0, "a"), buf.context())
    manager.update_options(merge_window=600)
    clock.advance(500)
    manager.execute(manager.create(CommandType.INSERT_TEXT, 1, "b"), buf.context())
    assert manager.get_history_info().undo_count == 1
    assert manager.get_options() == {"max_history_size": 100, "merge_window": 600}


def test_merge_only_looks_at_top_of_stack():
    clock = ManualClock(0)
    manager = CommandManager(clock=clock)
    buf = StringBuffer("hello")
    manager.execute(manager.create(CommandType.INSERT_TEXT, 5, "!"), buf.context())
    manager.execute(manager.create(CommandType.DELETE_TEXT, 0, 1), buf.context())
    manager.execute(manager.create(CommandType.INSERT_TEXT, 5, "?"), buf.context())
    assert manager.get_history_info().undo_count == 3


def test_history_is_bounded_and_keeps_newest():
    manager = make_manager(max_history_size=10)
    buf = StringBuffer("")
    spaced_inserts(manager, buf, 15)
    info = manager.get_history_info()
    assert info.undo_count == 10
    assert info.max_size == 10
    history = manager.get_history()
    assert [cmd.text for cmd in history] == [str(i % 10) for i in range(5, 15)]


def test_shrinking_bound_evicts_oldest():
    manager = make_manager(max_history_size=10)
    buf = StringBuffer("")
    spaced_inserts(manager, buf, 10)
    newest = manager.get_history()[-1]
    manager.update_options(max_history_size=5)
    assert manager.get_history_info().undo_count == 5
    assert manager.get_history()[-1] is newest


def test_default_options():
    manager = CommandManager()
    assert manager.get_options() == {"max_history_size": 100, "merge_window": 500}
    assert manager.get_history_info().max_size == 100


def test_invalid_history_size_rejected():
    with pytest.raises(ValueError):
        CommandManager(max_history_size=0)
    with pytest.raises(ValueError):
        CommandManager().update_options(max_history_size=0)


def test_nothing_to_undo_or_redo():
    manager = make_manager()
    buf = StringBuffer("x")
    result = manager.undo(buf.context())
    assert not result.success
    assert result.error.kind is ErrorKind.NOTHING_TO_UNDO
    result = manager.redo(buf.context())
    assert not result.success
    assert result.error.kind is ErrorKind.NOTHING_TO_REDO
    assert buf.text == "x"


def test_failed_undo_keeps_command_on_undo_stack():
    manager = make_manager()
    buf = StringBuffer("abc")
    cmd = FlakyUndo(3, "d", timestamp=0)
    manager.execute(cmd, buf.context())
    cmd.allow_undo = False
    result = manager.undo(buf.context())
    assert not result.success
    assert result.error.kind is ErrorKind.OPERATION_FAILED
    assert manager.get_history() == [cmd]
    assert manager.get_history_info().redo_count == 0
    assert buf.text == "abcd"


def test_failed_redo_keeps_command_on_redo_stack():
    manager = make_manager()
    buf = StringBuffer("abc")
    manager.execute(DeleteText(2, 1, timestamp=0), buf.context())
    manager.undo(buf.context())
    buf.text = ""  # buffer changed behind the manager's back
    result = manager.redo(buf.context())
    assert not result.success
    assert result.error.kind is ErrorKind.PRECONDITION_FAILED
    info = manager.get_history_info()
    assert info.undo_count == 0
    assert info.redo_count == 1


def test_clear_empties_both_stacks():
    manager = make_manager()
    buf = StringBuffer("")
    spaced_inserts(manager, buf, 3)
    manager.undo(buf.context())
    manager.clear()
    assert not manager.can_undo()
    assert not manager.can_redo()


def test_get_history_is_a_snapshot():
    manager = make_manager()
    buf = StringBuffer("")
    spaced_inserts(manager, buf, 2)
    history = manager.get_history()
    history.clear()
    assert manager.get_history_info().undo_count == 2


def test_create_stamps_with_manager_clock():
    clock = ManualClock(1234)
    manager = CommandManager(clock=clock)
    cmd = manager.create(CommandType.REPLACE_TEXT, 0, 1, "x")
    assert isinstance(cmd, ReplaceText)
    assert isinstance(cmd, EditorCommand)
    assert cmd.timestamp == 1234
