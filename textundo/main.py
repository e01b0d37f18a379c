"""Entry point for the textundo demo editor.

Usage:
    python -m textundo.main                          # empty document
    python -m textundo.main --file notes.txt         # edit a file
    python -m textundo.main --file notes.txt --history notes.history.json
"""
import sys
import signal
import logging
import argparse
from pathlib import Path

from textundo.config import Config
from textundo.errors import HistoryFormatError
from textundo.manager import CommandManager
from textundo.store import HistoryStore

logger = logging.getLogger(__name__)


def setup_logging(debug: bool = False):
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def build_window(editor):
    """Main window with Undo/Redo actions that follow the history state."""
    from PyQt5.QtWidgets import QAction, QMainWindow

    window = QMainWindow()
    window.setWindowTitle("textundo")
    window.setCentralWidget(editor)
    window.resize(640, 480)

    toolbar = window.addToolBar("Edit")
    undo_action = QAction("Undo", window)
    undo_action.triggered.connect(editor.undo)
    redo_action = QAction("Redo", window)
    redo_action.triggered.connect(editor.redo)
    toolbar.addAction(undo_action)
    toolbar.addAction(redo_action)

    def _on_history_changed(can_undo, can_redo):
        undo_action.setEnabled(can_undo)
        redo_action.setEnabled(can_redo)
        info = editor.manager.get_history_info()
        window.statusBar().showMessage(
            f"undo {info.undo_count}/{info.max_size}  redo {info.redo_count}")

    editor.historyChanged.connect(_on_history_changed)
    _on_history_changed(editor.manager.can_undo(), editor.manager.can_redo())
    return window


def run(args):
    from PyQt5.QtWidgets import QApplication
    from textundo.qt_editor import UndoableTextEdit

    app = QApplication(sys.argv)
    app.setApplicationName("textundo")

    config = Config()
    setup_logging(config.debug_logging or args.debug)

    text = ""
    if args.file and Path(args.file).exists():
        text = Path(args.file).read_text(encoding="utf-8")

    manager = CommandManager.from_config(config)
    store = None
    if args.history and config.persist_history:
        store = HistoryStore(Path(args.history))
        try:
            count = store.load_into(manager)
            logger.info("Loaded %d history entries from %s", count, store.path)
        except HistoryFormatError as e:
            logger.warning("Starting with empty history: %s", e)

    editor = UndoableTextEdit(text, manager=manager)
    window = build_window(editor)
    window.show()

    exit_code = app.exec_()

    if args.file and editor.session.is_dirty:
        Path(args.file).write_text(editor.session.content, encoding="utf-8")
        logger.info("Saved %s", args.file)
    if store is not None:
        store.save(manager)
    return exit_code


def main():
    signal.signal(signal.SIGINT, signal.SIG_DFL)

    parser = argparse.ArgumentParser(description="textundo demo editor")
    parser.add_argument("--file", help="Text file to edit (written back on exit)")
    parser.add_argument("--history", help="JSON file holding the undo history")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    sys.exit(run(args))


if __name__ == "__main__":
    main()
