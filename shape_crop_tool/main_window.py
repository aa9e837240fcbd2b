"""
Main application window.

Orchestrates opening an image, shape / zoom / output-size selection, the
"apply crop" run, the result preview with its encoded size, and saving.
"""

import logging
from pathlib import Path

from PyQt6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QGridLayout,
    QPushButton, QLabel, QFileDialog, QGroupBox, QMessageBox, QStatusBar,
    QToolBar, QSlider, QLineEdit, QComboBox, QApplication, QStackedWidget,
)
from PyQt6.QtCore import Qt
from PyQt6.QtGui import QAction, QDragEnterEvent, QDropEvent, QKeySequence, QShortcut

from shape_crop_tool.config import (
    ACCEPTED_EXTENSIONS, DEFAULT_OUTPUT_W, DEFAULT_OUTPUT_H, DEFAULT_SHAPE,
    MAX_OUTPUT_MB, OUTPUT_FORMATS, OUTPUT_FORMAT_DEFAULT, ZOOM_MIN, ZOOM_MAX, ZOOM_STEP,
)
from shape_crop_tool.crop_widget import ImageCropWidget, ImageLoaderThread, pil_to_qpixmap
from shape_crop_tool.errors import CropError, EmptySourceRegion
from shape_crop_tool.export import save_output
from shape_crop_tool.image_io import validate_upload
from shape_crop_tool.models import ImageBuffer, OutputSpec, Shape
from shape_crop_tool.pipeline import CropResult, apply_crop
from shape_crop_tool.presets import load_presets, parse_dimension, preset_for_size
from shape_crop_tool.styles import prefers_dark, stylesheet

logger = logging.getLogger(__name__)

# Slider works in integer steps of ZOOM_STEP
_ZOOM_TICKS = round(1 / ZOOM_STEP)

_SHAPE_LABELS = {Shape.CIRCLE: "◯ Circle", Shape.SQUARE: "□ Square", Shape.RECTANGLE: "▭ Rectangle"}


def _dropped_file(event: QDragEnterEvent | QDropEvent) -> Path | None:
    """First local file carried by a drag, or None."""
    mime = event.mimeData()
    if not mime.hasUrls():
        return None
    for url in mime.urls():
        if url.isLocalFile():
            return Path(url.toLocalFile())
    return None


class MainWindow(QMainWindow):
    def __init__(self):
        super().__init__()
        self.setWindowTitle("Shape Crop Tool")
        self.setMinimumSize(900, 560)
        self.resize(1200, 760)

        self._presets = load_presets()
        self._out_w = DEFAULT_OUTPUT_W
        self._out_h = DEFAULT_OUTPUT_H
        self._shape = Shape(DEFAULT_SHAPE)
        self._fmt = OUTPUT_FORMAT_DEFAULT
        self._source: ImageBuffer | None = None
        self._source_name = ""
        self._result: CropResult | None = None
        self._loader: ImageLoaderThread | None = None
        self._last_dir: Path | None = None
        self._dark = prefers_dark()
        self.setAcceptDrops(True)

        self._build_ui()
        self._apply_theme()
        self._sync_preset_buttons()
        self._update_button_states()

    # =========================================================================
    # UI construction
    # =========================================================================

    def _build_ui(self):
        self._build_toolbar()

        central = QWidget()
        self.setCentralWidget(central)
        main_layout = QHBoxLayout(central)
        main_layout.setContentsMargins(4, 4, 4, 4)

        # Center: crop editor, or the result once a crop is applied
        self._stack = QStackedWidget()
        self._crop_widget = ImageCropWidget()
        self._crop_widget.crop_committed.connect(self._update_crop_info)
        self._stack.addWidget(self._crop_widget)
        self._stack.addWidget(self._build_result_page())
        main_layout.addWidget(self._stack, stretch=1)

        main_layout.addWidget(self._build_right_panel())

        self._status = QStatusBar()
        self.setStatusBar(self._status)
        self._status.showMessage("Open an image to get started.")

        # --- Keyboard Shortcuts ---
        QShortcut(QKeySequence(QKeySequence.StandardKey.Open), self, self._open_image)
        QShortcut(QKeySequence(QKeySequence.StandardKey.Save), self, self._save_result)
        QShortcut(QKeySequence(Qt.Key.Key_Return), self, self._apply_crop)
        QShortcut(QKeySequence(Qt.Key.Key_Escape), self, self._start_over)
        QShortcut(QKeySequence(Qt.Key.Key_Plus), self, lambda: self._step_zoom(1))
        QShortcut(QKeySequence(Qt.Key.Key_Minus), self, lambda: self._step_zoom(-1))
        QShortcut(QKeySequence(Qt.Key.Key_C), self, self._crop_widget.reset_crop)

    def _build_toolbar(self):
        toolbar = QToolBar("Main")
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        act_open = QAction("📂 Open Image", self)
        act_open.triggered.connect(self._open_image)
        toolbar.addAction(act_open)

        act_save = QAction("💾 Save Result", self)
        act_save.triggered.connect(self._save_result)
        toolbar.addAction(act_save)
        self._act_save = act_save

        act_start_over = QAction("↺ Start Over", self)
        act_start_over.triggered.connect(self._start_over)
        toolbar.addAction(act_start_over)

        toolbar.addSeparator()

        act_theme = QAction("◐ Toggle Theme", self)
        act_theme.triggered.connect(self._toggle_theme)
        toolbar.addAction(act_theme)
        self._act_theme = act_theme

    def _build_result_page(self) -> QWidget:
        page = QWidget()
        layout = QVBoxLayout(page)
        layout.addStretch()

        self._result_label = QLabel()
        self._result_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self._result_label)

        self._result_size_label = QLabel()
        self._result_size_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self._result_size_label)

        buttons = QHBoxLayout()
        buttons.addStretch()
        btn_again = QPushButton("↺ Start Over")
        btn_again.clicked.connect(self._start_over)
        buttons.addWidget(btn_again)
        btn_save = QPushButton("💾 Save")
        btn_save.clicked.connect(self._save_result)
        buttons.addWidget(btn_save)
        buttons.addStretch()
        layout.addLayout(buttons)

        layout.addStretch()
        return page

    def _build_right_panel(self) -> QWidget:
        panel = QWidget()
        panel.setFixedWidth(260)
        layout = QVBoxLayout(panel)
        layout.setContentsMargins(4, 0, 0, 0)

        layout.addWidget(self._build_shape_group())
        layout.addWidget(self._build_zoom_group())
        layout.addWidget(self._build_size_group())

        self._crop_info_label = QLabel("Crop: —")
        self._crop_info_label.setWordWrap(True)
        layout.addWidget(self._crop_info_label)

        btn_reset = QPushButton("🎯 Reset Crop")
        btn_reset.setToolTip("Re-center the crop at 90% of the image width")
        btn_reset.clicked.connect(self._crop_widget.reset_crop)
        layout.addWidget(btn_reset)
        self._btn_reset = btn_reset

        btn_apply = QPushButton("✂ Apply Crop")
        btn_apply.clicked.connect(self._apply_crop)
        layout.addWidget(btn_apply)
        self._btn_apply = btn_apply

        layout.addStretch()
        return panel

    def _build_shape_group(self) -> QGroupBox:
        group = QGroupBox("Shape")
        row = QHBoxLayout(group)
        self._shape_buttons: dict[Shape, QPushButton] = {}
        for shape, label in _SHAPE_LABELS.items():
            btn = QPushButton(label)
            btn.setCheckable(True)
            btn.setChecked(shape == self._shape)
            btn.clicked.connect(lambda checked, s=shape: self._on_shape_selected(s))
            row.addWidget(btn)
            self._shape_buttons[shape] = btn
        return group

    def _build_zoom_group(self) -> QGroupBox:
        group = QGroupBox("Zoom")
        row = QHBoxLayout(group)
        self._zoom_slider = QSlider(Qt.Orientation.Horizontal)
        self._zoom_slider.setRange(round(ZOOM_MIN * _ZOOM_TICKS), round(ZOOM_MAX * _ZOOM_TICKS))
        self._zoom_slider.setSingleStep(1)
        self._zoom_slider.setValue(round(ZOOM_MIN * _ZOOM_TICKS))
        self._zoom_slider.valueChanged.connect(self._on_zoom_changed)
        row.addWidget(self._zoom_slider)
        self._zoom_label = QLabel(f"{ZOOM_MIN:.1f}×")
        self._zoom_label.setFixedWidth(40)
        row.addWidget(self._zoom_label)
        return group

    def _build_size_group(self) -> QGroupBox:
        group = QGroupBox("Output Size")
        layout = QVBoxLayout(group)

        grid = QGridLayout()
        self._preset_buttons: list[QPushButton] = []
        for i, preset in enumerate(self._presets):
            btn = QPushButton(preset["name"])
            btn.setCheckable(True)
            btn.clicked.connect(lambda checked, p=preset: self._on_preset_selected(p))
            grid.addWidget(btn, i // 2, i % 2)
            self._preset_buttons.append(btn)
        btn_custom = QPushButton("Custom")
        btn_custom.setCheckable(True)
        btn_custom.clicked.connect(self._on_custom_selected)
        n = len(self._presets)
        grid.addWidget(btn_custom, n // 2, n % 2)
        self._btn_custom = btn_custom
        layout.addLayout(grid)

        custom_row = QHBoxLayout()
        self._edit_w = QLineEdit(str(self._out_w))
        self._edit_h = QLineEdit(str(self._out_h))
        for label, edit in (("W", self._edit_w), ("H", self._edit_h)):
            edit.setPlaceholderText("px")
            edit.editingFinished.connect(self._on_custom_size_changed)
            custom_row.addWidget(QLabel(label))
            custom_row.addWidget(edit)
        layout.addLayout(custom_row)

        format_row = QHBoxLayout()
        format_row.addWidget(QLabel("Format"))
        self._format_combo = QComboBox()
        self._format_combo.addItems(list(OUTPUT_FORMATS))
        self._format_combo.setCurrentText(self._fmt)
        self._format_combo.currentTextChanged.connect(self._on_format_changed)
        format_row.addWidget(self._format_combo, stretch=1)
        layout.addLayout(format_row)
        return group

    # =========================================================================
    # Theme
    # =========================================================================

    def _apply_theme(self):
        app = QApplication.instance()
        if app is not None:
            app.setStyleSheet(stylesheet(self._dark))
        self._act_theme.setToolTip("Switch to light mode" if self._dark else "Switch to dark mode")

    def _toggle_theme(self):
        self._dark = not self._dark
        self._apply_theme()

    # =========================================================================
    # Output settings
    # =========================================================================

    def _output_spec(self) -> OutputSpec:
        return OutputSpec(self._out_w, self._out_h, self._shape)

    def _on_shape_selected(self, shape: Shape):
        self._shape = shape
        for s, btn in self._shape_buttons.items():
            btn.setChecked(s == shape)
        self._crop_widget.set_shape(shape, self._output_spec().aspect_ratio)

    def _on_zoom_changed(self, value: int):
        zoom = value / _ZOOM_TICKS
        self._zoom_label.setText(f"{zoom:.1f}×")
        self._crop_widget.set_zoom(zoom)

    def _step_zoom(self, steps: int):
        self._zoom_slider.setValue(self._zoom_slider.value() + steps)

    def _on_preset_selected(self, preset: dict):
        self._set_output_size(preset["width"], preset["height"])
        # Choosing a preset also picks its shape
        self._on_shape_selected(Shape(preset["shape"]))
        self._sync_preset_buttons()

    def _custom_size(self) -> tuple[int, int] | None:
        """Width and height typed in the custom fields, or None if either is invalid."""
        width = parse_dimension(self._edit_w.text())
        height = parse_dimension(self._edit_h.text())
        if width is None or height is None:
            self._status.showMessage("Width and height must be positive whole numbers.")
            self._edit_w.setText(str(self._out_w))
            self._edit_h.setText(str(self._out_h))
            return None
        return width, height

    def _on_custom_selected(self):
        size = self._custom_size()
        if size is not None:
            self._set_output_size(*size)
        self._crop_widget.set_shape(self._shape, self._output_spec().aspect_ratio)
        self._sync_preset_buttons(custom=True)

    def _on_custom_size_changed(self):
        if not self._btn_custom.isChecked():
            return
        size = self._custom_size()
        if size is None or size == (self._out_w, self._out_h):
            return
        self._set_output_size(*size)
        if self._shape == Shape.RECTANGLE:
            self._crop_widget.set_shape(self._shape, self._output_spec().aspect_ratio)

    def _on_format_changed(self, fmt: str):
        self._fmt = fmt

    def _set_output_size(self, width: int, height: int):
        self._out_w, self._out_h = width, height
        self._update_crop_info()

    def _sync_preset_buttons(self, custom: bool = False):
        preset = None if custom else preset_for_size(self._presets, self._out_w, self._out_h)
        for p, btn in zip(self._presets, self._preset_buttons):
            btn.setChecked(p is preset)
        self._btn_custom.setChecked(preset is None)
        self._edit_w.setEnabled(preset is None)
        self._edit_h.setEnabled(preset is None)
        if preset is not None:
            self._edit_w.setText(str(self._out_w))
            self._edit_h.setText(str(self._out_h))

    # =========================================================================
    # Image loading
    # =========================================================================

    def _open_image(self):
        patterns = " ".join(f"*{ext}" for ext in sorted(ACCEPTED_EXTENSIONS))
        start = str(self._last_dir) if self._last_dir else ""
        path_str, _ = QFileDialog.getOpenFileName(self, "Open Image", start, f"Images ({patterns})")
        if not path_str:
            return
        self._load_path(Path(path_str))

    def dragEnterEvent(self, event: QDragEnterEvent):
        if _dropped_file(event) is not None:
            event.acceptProposedAction()
        else:
            event.ignore()

    def dropEvent(self, event: QDropEvent):
        path = _dropped_file(event)
        if path is None:
            event.ignore()
            return
        event.acceptProposedAction()
        self._load_path(path)

    def _load_path(self, path: Path):
        """Validate *path* and decode it in the background."""
        self._last_dir = path.parent

        try:
            validate_upload(path)
        except (CropError, OSError) as exc:
            QMessageBox.warning(self, "Cannot Open Image", str(exc))
            return

        self._start_over()
        self._crop_widget.set_loading(True)
        self._status.showMessage(f"Loading {path.name}…")

        if self._loader is not None:
            try:
                self._loader.loaded.disconnect()
                self._loader.error.disconnect()
            except (TypeError, RuntimeError):
                pass  # Already disconnected or destroyed
            if self._loader.isRunning():
                self._loader.quit()
                self._loader.wait(500)

        self._loader = ImageLoaderThread(path, self)
        self._loader.loaded.connect(lambda buf, name=path.name: self._on_image_loaded(name, buf))
        self._loader.error.connect(self._on_image_load_error)
        self._loader.start()

    def _on_image_loaded(self, name: str, buffer: ImageBuffer):
        self._source = buffer
        self._source_name = name
        self._crop_widget.set_shape(self._shape, self._output_spec().aspect_ratio)
        self._crop_widget.set_image(pil_to_qpixmap(buffer.image))
        self._status.showMessage(f"{name}: {buffer.natural_w}×{buffer.natural_h}. Adjust the crop area and settings.")
        self._update_button_states()

    def _on_image_load_error(self, error: str):
        self._crop_widget.set_loading(False)
        self._status.showMessage(f"Failed to load image: {error}")
        QMessageBox.warning(self, "Cannot Open Image", error)

    # =========================================================================
    # Crop
    # =========================================================================

    def _update_crop_info(self):
        if not self._crop_widget.has_image():
            self._crop_info_label.setText("Crop: —")
            return
        crop = self._crop_widget.get_crop()
        dw, dh = self._crop_widget.display_size()
        text = f"Crop: {crop.w:.0f}×{crop.h:.0f} at ({crop.x:.0f}, {crop.y:.0f})"
        if self._source is not None and dw > 0 and dh > 0:
            sw = crop.w * self._source.natural_w / dw
            sh = crop.h * self._source.natural_h / dh
            text += f"\nSource: {sw:.0f}×{sh:.0f} px"
        text += f"\nOutput: {self._out_w}×{self._out_h} {self._shape.value}"
        self._crop_info_label.setText(text)

    def _apply_crop(self):
        if self._source is None or not self._crop_widget.has_image() or self._result is not None:
            return
        image = self._crop_widget.image_buffer(self._source)
        try:
            result = apply_crop(image, self._crop_widget.get_crop(), self._output_spec(), self._fmt)
        except EmptySourceRegion:
            logger.error("Crop of %s produced an empty source region", self._source_name, exc_info=True)
            self._status.showMessage("Nothing to crop. Adjust the selection and try again.")
            return
        except CropError as exc:
            logger.error("Crop of %s failed: %s", self._source_name, exc)
            QMessageBox.critical(self, "Crop Failed", f"Could not crop {self._source_name}:\n{exc}")
            return

        self._result = result
        self._result_label.setPixmap(pil_to_qpixmap(result.buffer.image))
        size_text = f"Size: {result.size_label}"
        if result.over_limit:
            size_text += f" (exceeds {MAX_OUTPUT_MB:g}MB limit)"
            self._result_size_label.setStyleSheet("color: #e5534b;")
        else:
            self._result_size_label.setStyleSheet("")
        self._result_size_label.setText(size_text)
        self._stack.setCurrentIndex(1)
        self._update_button_states()

        if result.over_limit:
            QMessageBox.warning(
                self, "File size exceeded",
                f"The cropped image is {result.size_label}, which exceeds the limit of {MAX_OUTPUT_MB:g}MB.",
            )
        self._status.showMessage(f"Your image has been cropped and is ready to save ({result.size_label}).")

    def _save_result(self):
        if self._result is None:
            return
        start = str(self._last_dir) if self._last_dir else ""
        out_dir = QFileDialog.getExistingDirectory(self, "Save Cropped Image To", start)
        if not out_dir:
            return
        try:
            out_path = save_output(self._result.data, self._result.output_spec, Path(out_dir), self._result.fmt)
        except OSError as exc:
            QMessageBox.warning(self, "Save Failed", f"Could not save image:\n{exc}")
            return
        self._status.showMessage(f"Saved: {out_path}")

    def _start_over(self):
        self._result = None
        self._source = None
        self._source_name = ""
        self._crop_widget.clear()
        self._zoom_slider.setValue(round(ZOOM_MIN * _ZOOM_TICKS))
        self._result_label.clear()
        self._result_size_label.clear()
        self._stack.setCurrentIndex(0)
        self._update_crop_info()
        self._update_button_states()
        self._status.showMessage("Open an image to get started.")

    def _update_button_states(self):
        has_image = self._source is not None
        self._btn_apply.setEnabled(has_image and self._result is None)
        self._btn_reset.setEnabled(has_image and self._result is None)
        self._act_save.setEnabled(self._result is not None)
