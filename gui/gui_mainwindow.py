"""
gui_mainwindow.py - GUI Main Window

Live regex editor:
1. Regex / replacement inputs and match flags
2. Preview table recomputed on every keystroke
3. Rename (or print commands) / cancel
"""

from typing import Optional

from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QGridLayout,
    QLabel, QLineEdit, QPushButton, QCheckBox, QTableWidget,
    QTableWidgetItem, QProgressBar, QMessageBox, QHeaderView, QGroupBox
)
from PySide6.QtCore import Qt, Slot
from PySide6.QtGui import QColor, QFont, QKeySequence, QShortcut

from core import (
    EditSession, CommitMode, SessionState, MatchFlags, MatchResult,
    RenameResult, CommitError, StaleMappingError, PartialFailureError
)


class EditorWidget(QWidget):
    """Regex / replacement editor with live preview"""

    def __init__(self, session: EditSession, mode: CommitMode, parent=None):
        super().__init__(parent)
        self.session = session
        self.mode = mode

        self._init_ui()
        self._refresh()

    def _init_ui(self):
        layout = QVBoxLayout(self)

        # Edit group
        edit_group = QGroupBox("Find and Replace")
        edit_layout = QGridLayout(edit_group)

        edit_layout.addWidget(QLabel("Regex:"), 0, 0)
        self.regex_edit = QLineEdit(self.session.pattern)
        self.regex_edit.setPlaceholderText("Regular expression matched against file names")
        self.regex_edit.textEdited.connect(self._on_regex_edited)
        self.regex_edit.returnPressed.connect(self._do_execute)
        edit_layout.addWidget(self.regex_edit, 0, 1)

        edit_layout.addWidget(QLabel("Replacement:"), 1, 0)
        self.replace_edit = QLineEdit(self.session.replacement)
        self.replace_edit.setPlaceholderText("Replacement ($1, ${name}, $$ for a dollar sign)")
        self.replace_edit.textEdited.connect(self._on_replace_edited)
        self.replace_edit.returnPressed.connect(self._do_execute)
        edit_layout.addWidget(self.replace_edit, 1, 1)

        # Flags
        flags_layout = QHBoxLayout()
        self.global_check = QCheckBox("Global (Ctrl+G)")
        self.global_check.setChecked(self.session.flags.global_)
        self.global_check.toggled.connect(self._on_flags_toggled)
        self.icase_check = QCheckBox("Ignore case (Ctrl+R)")
        self.icase_check.setChecked(self.session.flags.ignore_case)
        self.icase_check.toggled.connect(self._on_flags_toggled)
        self.flags_label = QLabel("")
        flags_layout.addWidget(self.global_check)
        flags_layout.addWidget(self.icase_check)
        flags_layout.addStretch()
        flags_layout.addWidget(QLabel("Flags:"))
        flags_layout.addWidget(self.flags_label)
        edit_layout.addLayout(flags_layout, 2, 0, 1, 2)

        layout.addWidget(edit_group)

        # Preview table
        self.table = QTableWidget()
        self.table.setColumnCount(3)
        self.table.setHorizontalHeaderLabels(["Directory", "Original Name", "New Name"])
        self.table.horizontalHeader().setSectionResizeMode(0, QHeaderView.ResizeMode.Stretch)
        self.table.horizontalHeader().setSectionResizeMode(1, QHeaderView.ResizeMode.Stretch)
        self.table.horizontalHeader().setSectionResizeMode(2, QHeaderView.ResizeMode.Stretch)
        self.table.setSelectionBehavior(QTableWidget.SelectionBehavior.SelectRows)
        self.table.setEditTriggers(QTableWidget.EditTrigger.NoEditTriggers)
        layout.addWidget(self.table, 1)

        # Progress and execution
        bottom_layout = QHBoxLayout()

        self.progress_bar = QProgressBar()
        self.progress_bar.setVisible(False)
        bottom_layout.addWidget(self.progress_bar, 1)

        self.cancel_btn = QPushButton("Cancel")
        bottom_layout.addWidget(self.cancel_btn)

        label = "Print Commands" if self.mode is CommitMode.DRY_RUN else "Rename"
        self.execute_btn = QPushButton(label)
        self.execute_btn.clicked.connect(self._do_execute)
        self.execute_btn.setEnabled(False)
        self.execute_btn.setStyleSheet("QPushButton { background-color: #4CAF50; color: white; font-weight: bold; padding: 8px 16px; }")
        bottom_layout.addWidget(self.execute_btn)

        layout.addLayout(bottom_layout)

        # Status label
        self.status_label = QLabel("")
        layout.addWidget(self.status_label)

    @Slot(str)
    def _on_regex_edited(self, text: str):
        self.session.set_pattern(text)
        self._refresh()

    @Slot(str)
    def _on_replace_edited(self, text: str):
        self.session.set_replacement(text)
        self._refresh()

    @Slot(bool)
    def _on_flags_toggled(self, _checked: bool):
        self.session.set_flags(MatchFlags(
            global_=self.global_check.isChecked(),
            ignore_case=self.icase_check.isChecked(),
        ))
        self._refresh()

    def _refresh(self):
        """Redraw from the session's current state"""
        session = self.session
        self.flags_label.setText(str(session.flags) or "-")

        if session.mapping.pattern_error is not None:
            self.regex_edit.setStyleSheet("QLineEdit { color: red; }")
        else:
            self.regex_edit.setStyleSheet("")

        self._update_table()

        state = session.state
        self.execute_btn.setEnabled(state is SessionState.VALID)
        if state is SessionState.INVALID:
            self.status_label.setStyleSheet("QLabel { color: red; }")
            self.status_label.setText(session.status.message)
        elif state is SessionState.EDITING:
            self.status_label.setStyleSheet("")
            self.status_label.setText("No files need renaming")
        else:
            self.status_label.setStyleSheet("")
            self.status_label.setText(
                f"Will rename {session.mapping.change_count} of {len(session.mapping)} files"
            )

    def _update_table(self):
        """Update table to display the mapping"""
        mapping = self.session.mapping
        flagged = set(self.session.status.indices)
        bold = QFont()
        bold.setBold(True)

        self.table.setRowCount(len(mapping))
        for i, op in enumerate(mapping):
            dir_item = QTableWidgetItem(str(op.src.parent))
            dir_item.setFont(bold)
            self.table.setItem(i, 0, dir_item)

            src_item = QTableWidgetItem(op.src.name)
            if op.result is MatchResult.REPLACED:
                src_item.setForeground(QColor(200, 0, 0))
                dst_item = QTableWidgetItem(op.new_name)
                dst_item.setForeground(QColor(0, 150, 0))
            else:
                dst_item = QTableWidgetItem("")

            if i in flagged:
                src_item.setBackground(QColor(255, 220, 220))
                dst_item.setBackground(QColor(255, 220, 220))

            self.table.setItem(i, 1, src_item)
            self.table.setItem(i, 2, dst_item)

    def toggle_global(self):
        self.global_check.toggle()

    def toggle_ignore_case(self):
        self.icase_check.toggle()

    @Slot(int, int, str)
    def _on_rename_progress(self, current: int, total: int, msg: str):
        """Execution progress update"""
        self.progress_bar.setRange(0, total)
        self.progress_bar.setValue(current)
        self.status_label.setText(msg)

    def _do_execute(self):
        """Confirm the current mapping"""
        if self.session.state is not SessionState.VALID:
            return

        window = self.window()
        if self.mode is CommitMode.APPLY:
            reply = QMessageBox.question(
                self, "Confirm",
                f"Are you sure you want to rename {self.session.mapping.change_count} files?",
                QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No
            )
            if reply != QMessageBox.StandardButton.Yes:
                return

        self.execute_btn.setEnabled(False)
        self.progress_bar.setVisible(True)

        try:
            result = self.session.confirm(self.mode, progress_callback=self._on_rename_progress)
        except StaleMappingError as e:
            self.progress_bar.setVisible(False)
            QMessageBox.warning(self, "Files Changed", f"{e}\n\nThe preview has been refreshed.")
            self._refresh()
            return
        except PartialFailureError as e:
            QMessageBox.critical(self, "Error", f"Renaming stopped after a failure.\n\n{e.result.summary()}")
            window.finish(error=e)
            return
        except OSError as e:
            self.progress_bar.setVisible(False)
            QMessageBox.critical(self, "Error", f"Unable to write execution log:\n{e}")
            self._refresh()
            return

        window.finish(result=result)


class MainWindow(QMainWindow):
    """Main window"""

    def __init__(self, session: EditSession, mode: CommitMode = CommitMode.APPLY):
        super().__init__()
        self.session = session
        self.result: Optional[RenameResult] = None
        self.error: Optional[CommitError] = None

        self.setWindowTitle("Regex Rename")
        self.setMinimumSize(800, 600)

        self.editor = EditorWidget(session, mode)
        self.editor.cancel_btn.clicked.connect(self.close)
        self.setCentralWidget(self.editor)

        # Keyboard shortcuts
        QShortcut(QKeySequence("Ctrl+G"), self, activated=self.editor.toggle_global)
        QShortcut(QKeySequence("Ctrl+R"), self, activated=self.editor.toggle_ignore_case)
        QShortcut(QKeySequence(Qt.Key.Key_Escape), self, activated=self.close)
        QShortcut(QKeySequence("Ctrl+C"), self, activated=self.close)

        # Status bar
        self.statusBar().showMessage(f"{len(session.files)} files")

    def finish(self, result: Optional[RenameResult] = None, error: Optional[CommitError] = None):
        """Store the commit outcome and close"""
        self.result = result
        self.error = error
        self.close()

    def closeEvent(self, event):
        if not self.session.closed:
            self.session.cancel()
        super().closeEvent(event)
