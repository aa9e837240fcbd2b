"""
Dark and light stylesheets for the desktop front end.

``stylesheet(dark)`` picks one; ``prefers_dark()`` follows the system color
scheme where Qt reports it.
"""

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QGuiApplication

DARK_STYLESHEET = """
    QMainWindow { background: #2b2b2b; }
    QWidget { background: #2b2b2b; color: #ddd; font-size: 10pt; }
    QGroupBox { border: 1px solid #555; border-radius: 4px; margin-top: 8px; padding-top: 12px; font-weight: bold; }
    QGroupBox::title { subcontrol-origin: margin; left: 8px; padding: 0 4px; }
    QPushButton { background: #3a3a3a; border: 1px solid #555; border-radius: 4px; padding: 6px 12px; }
    QPushButton:hover { background: #4a4a4a; }
    QPushButton:pressed { background: #2a2a2a; }
    QPushButton:checked { background: #3a6ea5; border-color: #5a8ec5; }
    QPushButton:disabled { color: #666; }
    QLineEdit, QComboBox { background: #1e1e1e; border: 1px solid #555; border-radius: 4px; padding: 2px 4px; }
    QToolBar { background: #333; border-bottom: 1px solid #444; spacing: 4px; padding: 4px; }
    QStatusBar { background: #333; border-top: 1px solid #444; }
"""

LIGHT_STYLESHEET = """
    QMainWindow { background: #f3f3f3; }
    QWidget { background: #f3f3f3; color: #1f1f1f; font-size: 10pt; }
    QGroupBox { border: 1px solid #d0d0d0; border-radius: 4px; margin-top: 8px; padding-top: 12px; font-weight: bold; }
    QGroupBox::title { subcontrol-origin: margin; left: 8px; padding: 0 4px; }
    QPushButton { background: #ffffff; border: 1px solid #c8c8c8; border-radius: 4px; padding: 6px 12px; }
    QPushButton:hover { background: #ececec; }
    QPushButton:pressed { background: #e0e0e0; }
    QPushButton:checked { background: #0067c0; border-color: #187bcd; color: #fff; }
    QPushButton:disabled { color: #999; }
    QLineEdit, QComboBox { background: #fff; border: 1px solid #c8c8c8; border-radius: 4px; padding: 2px 4px; }
    QToolBar { background: #e9e9e9; border-bottom: 1px solid #d0d0d0; spacing: 4px; padding: 4px; }
    QStatusBar { background: #e9e9e9; border-top: 1px solid #d0d0d0; }
"""


def stylesheet(dark: bool) -> str:
    return DARK_STYLESHEET if dark else LIGHT_STYLESHEET


def prefers_dark() -> bool:
    """True when the system color scheme is dark (or unknown)."""
    hints = QGuiApplication.styleHints()
    if hints is None:
        return True
    return hints.colorScheme() != Qt.ColorScheme.Light
