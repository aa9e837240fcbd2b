"""
Application entry point.

Usage:
    python -m shape_crop_tool.app
    shape-crop-tool          (after pip install)

Set ``SHAPE_CROP_LOG_LEVEL=DEBUG`` to trace the crop geometry.
"""

import logging
import os
import sys

from PyQt6.QtWidgets import QApplication

from shape_crop_tool.main_window import MainWindow


def _configure_logging():
    level_name = os.environ.get("SHAPE_CROP_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )


def main():
    _configure_logging()
    app = QApplication(sys.argv)

    window = MainWindow()
    window.show()

    try:
        sys.exit(app.exec())
    except (SystemExit, KeyboardInterrupt):
        pass


if __name__ == "__main__":
    main()
