from __future__ import annotations

from loguru import logger
from PySide6.QtGui import QFont
from PySide6.QtWidgets import QApplication, QMessageBox

from slab_shear_app.core.loader import discover_tools
from slab_shear_app.core.logging import configure_logging

APP_STYLESHEET = """
QWidget {
    color: #1f2933;
}
QMainWindow {
    background: #f9fafb;
}
QLabel#TitleLabel {
    font-size: 18px;
    font-weight: 600;
    color: #0f172a;
}
QGroupBox {
    background: rgba(255, 255, 255, 0.9);
    border: 1px solid rgba(17, 24, 39, 0.1);
    border-radius: 10px;
    margin-top: 14px;
    padding: 10px;
}
QGroupBox::title {
    subcontrol-origin: margin;
    left: 10px;
    font-weight: 600;
}
QLineEdit {
    background: rgba(255, 255, 255, 0.9);
    border: 1px solid rgba(17, 24, 39, 0.15);
    border-radius: 8px;
    padding: 6px 8px;
}
QPushButton {
    background: #1f4b6e;
    color: #f8fafc;
    border: none;
    border-radius: 8px;
    padding: 6px 12px;
}
QPushButton#SecondaryButton {
    background: #e7edf3;
    color: #1f2937;
    border: 1px solid rgba(17, 24, 39, 0.12);
}
"""


def main() -> None:
    configure_logging()
    app = QApplication([])
    font = QFont("Segoe UI", 10)
    font.setHintingPreference(QFont.HintingPreference.PreferFullHinting)
    app.setFont(font)
    app.setStyleSheet(APP_STYLESHEET)

    tools = discover_tools()
    if not tools:
        QMessageBox.critical(None, "Slab Shear Strength", "No tools found.")
        return
    for tool in tools:
        logger.info(f"Launching {tool.meta.name} v{tool.meta.version}")
        result = tool.run({})
        if not result.get("ok"):
            QMessageBox.critical(None, tool.meta.name, result.get("error") or "Unknown error")
    app.exec()


if __name__ == "__main__":
    main()
