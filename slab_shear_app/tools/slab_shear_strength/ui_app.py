from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger
from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QAbstractItemView,
    QApplication,
    QCheckBox,
    QFileDialog,
    QFormLayout,
    QGroupBox,
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QLineEdit,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

from slab_shear_app.core.settings import get_app_settings

from . import state as st
from .exports import export_session_excel, format_number, format_result, format_timestamp, write_text_export
from .models import FIELD_LABELS, NUMERIC_FIELDS, TOOLTIPS

EQUATION_UNREINFORCED = "Vuo = u · dom · (fcv + 0.3 σcp),  fcv = min(0.17 (1 + 2/βh) √f'c, 0.34 √f'c)"
EQUATION_REINFORCED = "Vuo = u · dom · (0.5 √f'c + 0.3 σcp)  ≤  0.2 · u · dom · f'c"

ERROR_STYLE = "border: 1px solid #ef4444;"


def launch_ui(tool: Any, existing_window: Any = None) -> Any:
    """Open the calculator window, reusing the host QApplication if there is one."""
    app = QApplication.instance()
    if app is None:
        # Fallback for standalone debugging.
        app = QApplication([])

    if existing_window is not None:
        existing_window.show()
        existing_window.raise_()
        existing_window.activateWindow()
        return existing_window

    win = SlabShearWindow(tool=tool)
    win.show()
    return win


class SlabShearWindow(QMainWindow):
    def __init__(self, tool: Any) -> None:
        super().__init__()
        self._tool = tool
        self._settings = get_app_settings()
        self._state = st.CalculatorState()

        self.setWindowTitle("Slab Shear Strength Calculator")
        self.resize(980, 760)

        root = QWidget()
        layout = QVBoxLayout(root)

        title = QLabel("Slab Shear Strength Calculator")
        title.setObjectName("TitleLabel")
        title.setAlignment(Qt.AlignCenter)
        layout.addWidget(title)

        eq_box = QGroupBox("Equation")
        eq_layout = QVBoxLayout(eq_box)
        self._equation = QLabel(EQUATION_UNREINFORCED)
        self._equation.setAlignment(Qt.AlignCenter)
        eq_layout.addWidget(self._equation)
        layout.addWidget(eq_box)

        layout.addWidget(self._build_inputs())
        layout.addLayout(self._build_actions())
        self._form_error = QLabel("")
        self._form_error.setStyleSheet("color: #ef4444;")
        self._form_error.setAlignment(Qt.AlignCenter)
        self._form_error.hide()
        layout.addWidget(self._form_error)
        layout.addWidget(self._build_result())
        layout.addWidget(self._build_saved())

        self.setCentralWidget(root)
        self._render()

    # ------------------------------
    # Layout
    # ------------------------------
    def _build_inputs(self) -> QGroupBox:
        box = QGroupBox("Inputs")
        form = QFormLayout(box)
        self._edits: Dict[str, QLineEdit] = {}
        self._error_labels: Dict[str, QLabel] = {}

        for name in NUMERIC_FIELDS:
            edit = QLineEdit()
            edit.setPlaceholderText("Enter value > 0")
            edit.setToolTip(TOOLTIPS[name])
            edit.textEdited.connect(lambda text, n=name: self._on_edit(n, text))
            err = QLabel("")
            err.setStyleSheet("color: #ef4444;")
            err.hide()

            cell = QWidget()
            cell_layout = QVBoxLayout(cell)
            cell_layout.setContentsMargins(0, 0, 0, 0)
            cell_layout.addWidget(edit)
            cell_layout.addWidget(err)

            label = QLabel(FIELD_LABELS[name])
            label.setToolTip(TOOLTIPS[name])
            form.addRow(label, cell)
            self._edits[name] = edit
            self._error_labels[name] = err

        self._reinf = QCheckBox(FIELD_LABELS["has_shear_reinforcement"])
        self._reinf.toggled.connect(self._on_reinforcement)
        form.addRow("", self._reinf)
        return box

    def _build_actions(self) -> QHBoxLayout:
        row = QHBoxLayout()
        row.addStretch(1)
        self._btn_calc = QPushButton("Calculate")
        self._btn_calc.clicked.connect(self._on_calculate)
        self._btn_reset = QPushButton("Reset")
        self._btn_reset.setObjectName("SecondaryButton")
        self._btn_reset.clicked.connect(self._on_reset)
        row.addWidget(self._btn_calc)
        row.addWidget(self._btn_reset)
        row.addStretch(1)
        return row

    def _build_result(self) -> QGroupBox:
        self._result_box = QGroupBox("Results")
        layout = QVBoxLayout(self._result_box)
        self._result_label = QLabel("")
        self._warning_label = QLabel("")
        self._warning_label.setStyleSheet("color: #b45309;")
        self._warning_label.setWordWrap(True)
        layout.addWidget(self._result_label)
        layout.addWidget(self._warning_label)

        row = QHBoxLayout()
        btn_save = QPushButton("Save Result")
        btn_save.clicked.connect(self._on_save)
        btn_download = QPushButton("Download All Results")
        btn_download.clicked.connect(self._on_download)
        btn_excel = QPushButton("Export Excel")
        btn_excel.setObjectName("SecondaryButton")
        btn_excel.clicked.connect(self._on_export_excel)
        row.addWidget(btn_save)
        row.addWidget(btn_download)
        row.addWidget(btn_excel)
        row.addStretch(1)
        layout.addLayout(row)
        return self._result_box

    def _build_saved(self) -> QGroupBox:
        self._saved_box = QGroupBox("Saved Results")
        layout = QVBoxLayout(self._saved_box)
        self._table = QTableWidget(0, 4)
        self._table.setHorizontalHeaderLabels(["Time", "Parameters", "Result", "Actions"])
        self._table.setEditTriggers(QAbstractItemView.NoEditTriggers)
        self._table.horizontalHeader().setSectionResizeMode(1, QHeaderView.Stretch)
        self._table.verticalHeader().setVisible(False)
        layout.addWidget(self._table)
        return self._saved_box

    # ------------------------------
    # Transitions
    # ------------------------------
    def _on_edit(self, name: str, text: str) -> None:
        self._state = st.edit_field(self._state, name, text)
        self._render_errors()

    def _on_reinforcement(self, checked: bool) -> None:
        self._state = st.set_reinforcement(self._state, checked)
        self._equation.setText(EQUATION_REINFORCED if checked else EQUATION_UNREINFORCED)

    def _on_calculate(self) -> None:
        self._state = st.calculate(self._state, warn_betah=self._settings.warn_betah_le_one)
        self._render()

    def _on_reset(self) -> None:
        self._state = st.reset(self._state)
        for edit in self._edits.values():
            edit.clear()
        self._reinf.setChecked(False)
        self._render()

    def _on_save(self) -> None:
        self._state, record = st.save_result(self._state)
        if record is not None:
            self._render_saved()

    def _on_delete(self, record_id: str) -> None:
        self._state = st.delete_record(self._state, record_id)
        self._render_saved()

    def _ask_path(self, caption: str, default: Path, file_filter: str) -> Optional[Path]:
        name, _ = QFileDialog.getSaveFileName(self, caption, str(default), file_filter)
        return Path(name) if name else None

    def _on_download(self) -> None:
        if not self._state.store:
            return
        path = self._ask_path("Download All Results", self._settings.export_path(), "Text files (*.txt)")
        if path is None:
            return
        try:
            write_text_export(self._state.store, path, self._settings.timestamp_format)
        except OSError as e:
            logger.exception("Text export failed")
            QMessageBox.critical(self, "Slab Shear Strength", f"Could not write {path}:\n{e}")

    def _on_export_excel(self) -> None:
        if not self._state.store:
            return
        default = self._settings.export_path().with_suffix(".xlsx")
        path = self._ask_path("Export Excel", default, "Excel workbook (*.xlsx)")
        if path is None:
            return
        try:
            export_session_excel(self._state.store, path, self._settings.timestamp_format)
        except OSError as e:
            logger.exception("Excel export failed")
            QMessageBox.critical(self, "Slab Shear Strength", f"Could not write {path}:\n{e}")

    # ------------------------------
    # Rendering
    # ------------------------------
    def _render(self) -> None:
        self._render_errors()
        s = self._state
        self._result_box.setVisible(s.has_result)
        if s.result is not None:
            self._result_label.setText(f"Ultimate shear strength (Vuo): {format_result(s.result)} N")
        self._warning_label.setText("\n".join(s.warnings))
        self._warning_label.setVisible(bool(s.warnings))
        self._render_saved()

    def _render_errors(self) -> None:
        for name, edit in self._edits.items():
            msg = self._state.errors.get(name, "")
            label = self._error_labels[name]
            label.setText(msg)
            label.setVisible(bool(msg))
            edit.setStyleSheet(ERROR_STYLE if msg else "")
        # errors not tied to one field (e.g. an overflowed result)
        form_msg = self._state.errors.get("result", "")
        self._form_error.setText(form_msg)
        self._form_error.setVisible(bool(form_msg))

    def _render_saved(self) -> None:
        store = self._state.store
        self._saved_box.setVisible(bool(store))
        self._table.setRowCount(len(store))
        fmt = self._settings.timestamp_format
        for row, record in enumerate(store):
            i = record.inputs
            params = "\n".join([
                f"u: {format_number(i.u)}",
                f"dom: {format_number(i.dom)}",
                f"fc: {format_number(i.fc)}",
                f"σcp: {format_number(i.sigmacp)}",
                f"βh: {format_number(i.betah)}",
                f"Reinforced: {'Yes' if i.has_shear_reinforcement else 'No'}",
            ])
            self._table.setItem(row, 0, QTableWidgetItem(format_timestamp(record, fmt)))
            self._table.setItem(row, 1, QTableWidgetItem(params))
            self._table.setItem(row, 2, QTableWidgetItem(f"{format_result(record.result)} N"))
            btn = QPushButton("Delete")
            btn.setObjectName("SecondaryButton")
            btn.clicked.connect(lambda _checked=False, rid=record.id: self._on_delete(rid))
            self._table.setCellWidget(row, 3, btn)
        self._table.resizeRowsToContents()
