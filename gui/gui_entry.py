"""
gui_entry.py - GUI Entry

Launch PySide6 GUI application over an edit session
"""

import sys
from typing import Optional

from PySide6.QtWidgets import QApplication
from PySide6.QtCore import Qt

from core import EditSession, CommitMode, RenameResult
from .gui_mainwindow import MainWindow


def main(session: EditSession, mode: CommitMode = CommitMode.APPLY) -> Optional[RenameResult]:
    """
    GUI main entry

    Returns:
        Commit result, or None when the window was closed without confirming

    Raises:
        PartialFailureError: Renaming stopped after a failure
    """
    # High DPI support
    QApplication.setHighDpiScaleFactorRoundingPolicy(
        Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
    )

    app = QApplication.instance() or QApplication(sys.argv[:1])
    app.setApplicationName("Regex Rename")
    app.setApplicationVersion("1.0.0")

    # Set style
    app.setStyle("Fusion")

    window = MainWindow(session, mode)
    window.show()
    app.exec()

    if window.error is not None:
        raise window.error
    return window.result
