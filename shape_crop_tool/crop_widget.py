"""
Interactive crop-overlay widget and Qt image helpers.

This module contains everything that touches both Qt **and** image display:
``pil_to_qpixmap``, the background ``ImageLoaderThread``, and the
``ImageCropWidget`` editor.

The widget fits the image into its area (that fitted size is the *display
space* every ``CropRect`` is expressed in) and then magnifies the picture by
the zoom factor around the widget center.  Pointer positions are un-zoomed
as soon as they are read, so the stored crop never contains the zoom.
"""

from pathlib import Path

from PIL import Image
from PyQt6.QtWidgets import QWidget, QSizePolicy
from PyQt6.QtCore import Qt, QRectF, QPointF, pyqtSignal, QThread
from PyQt6.QtGui import (
    QPainter, QPainterPath, QPixmap, QColor, QPen, QBrush, QImage,
    QKeyEvent, QMouseEvent, QPaintEvent, QResizeEvent,
)

from shape_crop_tool.config import HANDLE_SIZE, MIN_CROP_SIZE, NUDGE_SMALL, NUDGE_LARGE, ZOOM_MIN
from shape_crop_tool.geometry import clamp_crop, initial_crop
from shape_crop_tool.image_io import fit_display_size, load_image_buffer
from shape_crop_tool.mapping import display_to_zoomed, zoomed_to_display
from shape_crop_tool.models import CropRect, ImageBuffer, Shape, clamp_zoom


# =============================================================================
# Qt ↔ PIL helpers
# =============================================================================

def pil_to_qpixmap(pil_img: Image.Image) -> QPixmap:
    """Convert a PIL Image to QPixmap."""
    img_rgba = pil_img.convert("RGBA")
    data = img_rgba.tobytes("raw", "RGBA")
    qimg = QImage(data, img_rgba.width, img_rgba.height, QImage.Format.Format_RGBA8888)
    # QImage does not own *data*; copy before it goes out of scope
    return QPixmap.fromImage(qimg.copy())


# =============================================================================
# Background image loader
# =============================================================================

class ImageLoaderThread(QThread):
    """Background thread for validating and decoding an uploaded image."""
    loaded = pyqtSignal(object)  # ImageBuffer (display size filled in later)
    error = pyqtSignal(str)

    def __init__(self, path: Path, parent=None):
        super().__init__(parent)
        self._path = path

    def run(self):
        try:
            self.loaded.emit(load_image_buffer(self._path))
        except Exception as e:
            self.error.emit(str(e))


# =============================================================================
# Image Crop Widget: interactive crop overlay on image
# =============================================================================

class ImageCropWidget(QWidget):
    """Widget that displays an image with an interactive, aspect-locked crop overlay."""

    crop_changed = pyqtSignal()
    crop_committed = pyqtSignal()

    HANDLE_NONE = 0
    HANDLE_TL = 1
    HANDLE_TR = 2
    HANDLE_BL = 3
    HANDLE_BR = 4
    MODE_NONE = 0
    MODE_MOVE = 1
    MODE_RESIZE = 2
    MODE_DRAW = 3

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setMinimumSize(300, 300)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)

        self._pixmap: QPixmap | None = None
        self._img_w = 0
        self._img_h = 0
        self._crop = CropRect()
        self._aspect_ratio = 1.0
        self._shape = Shape.SQUARE
        self._zoom = ZOOM_MIN

        # Display mapping (fitted size, before zoom)
        self._disp_w = 0.0
        self._disp_h = 0.0
        self._offset_x = 0.0
        self._offset_y = 0.0

        # Interaction state
        self._mode = self.MODE_NONE
        self._active_handle = self.HANDLE_NONE
        self._drag_start = QPointF()
        self._crop_start = CropRect()
        self._crop_before = CropRect()
        self._loading = False

    def set_loading(self, loading: bool):
        """Show/hide loading indicator."""
        self._loading = loading
        self.update()

    def set_image(self, pixmap: QPixmap):
        """Set the image to display and place the initial crop."""
        self._loading = False
        self._pixmap = pixmap
        self._img_w = pixmap.width()
        self._img_h = pixmap.height()
        self._update_display_mapping()
        self.reset_crop()

    def set_shape(self, shape: Shape, aspect_ratio: float):
        """Change the crop shape and locked aspect ratio; the crop is re-centered."""
        self._shape = Shape(shape)
        self._aspect_ratio = aspect_ratio
        self.reset_crop()

    def set_zoom(self, zoom: float):
        self._zoom = clamp_zoom(zoom)
        self.update()

    def zoom(self) -> float:
        return self._zoom

    def reset_crop(self):
        """Place the centered initial crop for the current aspect ratio."""
        if self.has_image() and self._disp_w > 0 and self._disp_h > 0:
            self._crop = initial_crop(self._disp_w, self._disp_h, self._aspect_ratio)
            self.crop_changed.emit()
            self.crop_committed.emit()
        self.update()

    def get_crop(self) -> CropRect:
        """Committed crop in display pixels (unzoomed)."""
        return CropRect(self._crop.x, self._crop.y, self._crop.w, self._crop.h)

    def display_size(self) -> tuple[float, float]:
        return self._disp_w, self._disp_h

    def image_buffer(self, source: ImageBuffer) -> ImageBuffer:
        """*source* re-wrapped with the size it is currently laid out at."""
        return ImageBuffer(image=source.image, display_w=self._disp_w, display_h=self._disp_h)

    def has_image(self) -> bool:
        """Return True if an image is loaded and ready for crop operations."""
        return self._pixmap is not None

    def clear(self):
        self._pixmap = None
        self._img_w = 0
        self._img_h = 0
        self._disp_w = self._disp_h = 0.0
        self._crop = CropRect()
        self._zoom = ZOOM_MIN
        self.update()

    # --- Coordinate mapping ---

    def _update_display_mapping(self):
        """Fit the image into the widget with letterboxing."""
        if not self._pixmap or self._img_w == 0 or self._img_h == 0:
            return
        ww, wh = self.width(), self.height()
        old_w, old_h = self._disp_w, self._disp_h
        self._disp_w, self._disp_h = fit_display_size(self._img_w, self._img_h, ww, wh)
        self._offset_x = (ww - self._disp_w) / 2
        self._offset_y = (wh - self._disp_h) / 2

        # Keep the crop on the same part of the image when the layout changes
        if old_w > 0 and old_h > 0 and self._disp_w > 0 and (old_w, old_h) != (self._disp_w, self._disp_h):
            pct = self._crop.to_percent(old_w, old_h)
            self._crop = clamp_crop(pct, self._disp_w, self._disp_h, self._aspect_ratio)

    def _center(self) -> tuple[float, float]:
        return self.width() / 2, self.height() / 2

    def _display_to_screen(self, dx: float, dy: float) -> QPointF:
        sx, sy = display_to_zoomed(dx + self._offset_x, dy + self._offset_y, self._zoom, self._center())
        return QPointF(sx, sy)

    def _screen_to_display(self, sx: float, sy: float) -> QPointF:
        lx, ly = zoomed_to_display(sx, sy, self._zoom, self._center())
        return QPointF(lx - self._offset_x, ly - self._offset_y)

    def _crop_screen_rect(self) -> QRectF:
        tl = self._display_to_screen(self._crop.x, self._crop.y)
        br = self._display_to_screen(self._crop.x + self._crop.w, self._crop.y + self._crop.h)
        return QRectF(tl, br)

    # --- Handle hit testing ---

    def _handle_rects(self) -> dict[int, QRectF]:
        """Return screen-coordinate rectangles for the 4 corner handles."""
        r = self._crop_screen_rect()
        hs = HANDLE_SIZE
        return {
            self.HANDLE_TL: QRectF(r.left() - hs, r.top() - hs, hs * 2, hs * 2),
            self.HANDLE_TR: QRectF(r.right() - hs, r.top() - hs, hs * 2, hs * 2),
            self.HANDLE_BL: QRectF(r.left() - hs, r.bottom() - hs, hs * 2, hs * 2),
            self.HANDLE_BR: QRectF(r.right() - hs, r.bottom() - hs, hs * 2, hs * 2),
        }

    def _hit_test(self, pos: QPointF) -> tuple[int, int]:
        """Returns (mode, handle) for a screen position."""
        for handle_id, rect in self._handle_rects().items():
            if rect.contains(pos):
                return self.MODE_RESIZE, handle_id
        if self._crop_screen_rect().contains(pos):
            return self.MODE_MOVE, self.HANDLE_NONE
        return self.MODE_DRAW, self.HANDLE_NONE

    # --- Painting ---

    def _crop_path(self, rect: QRectF) -> QPainterPath:
        path = QPainterPath()
        if self._shape == Shape.CIRCLE:
            path.addEllipse(rect)
        else:
            path.addRect(rect)
        return path

    def paintEvent(self, event: QPaintEvent):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.fillRect(self.rect(), QColor(30, 30, 30))

        if not self._pixmap:
            painter.setPen(QColor(128, 128, 128))
            msg = "Loading image…" if self._loading else "Open an image to get started"
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, msg)
            painter.end()
            return

        # Draw image, magnified by the zoom factor
        tl = self._display_to_screen(0, 0)
        br = self._display_to_screen(self._disp_w, self._disp_h)
        dest = QRectF(tl, br)
        painter.drawPixmap(dest, self._pixmap, QRectF(self._pixmap.rect()))

        # Dim area outside crop
        crop_rect = self._crop_screen_rect()
        outside = QPainterPath()
        outside.addRect(dest)
        outside = outside.subtracted(self._crop_path(crop_rect))
        painter.fillPath(outside, QColor(0, 0, 0, 140))

        # Draw crop border
        painter.setPen(QPen(QColor(255, 255, 255), 2))
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawPath(self._crop_path(crop_rect))

        # Draw rule-of-thirds lines
        painter.save()
        painter.setClipPath(self._crop_path(crop_rect))
        painter.setPen(QPen(QColor(255, 255, 255, 80), 1, Qt.PenStyle.DashLine))
        for i in range(1, 3):
            x = crop_rect.left() + crop_rect.width() * i / 3
            painter.drawLine(QPointF(x, crop_rect.top()), QPointF(x, crop_rect.bottom()))
            y = crop_rect.top() + crop_rect.height() * i / 3
            painter.drawLine(QPointF(crop_rect.left(), y), QPointF(crop_rect.right(), y))
        painter.restore()

        # Draw corner handles
        painter.setPen(QPen(QColor(0, 0, 0), 1))
        painter.setBrush(QBrush(QColor(255, 255, 255)))
        for rect in self._handle_rects().values():
            painter.drawRect(rect)

        painter.end()

    def resizeEvent(self, event: QResizeEvent):
        self._update_display_mapping()
        super().resizeEvent(event)

    # --- Mouse interaction ---

    def mousePressEvent(self, event: QMouseEvent):
        if event.button() != Qt.MouseButton.LeftButton or not self._pixmap:
            return
        pos = event.position()
        self._mode, self._active_handle = self._hit_test(pos)
        self._drag_start = pos
        self._crop_start = self.get_crop()
        self._crop_before = self.get_crop()
        if self._mode == self.MODE_DRAW:
            start = self._screen_to_display(pos.x(), pos.y())
            if not (0 <= start.x() <= self._disp_w and 0 <= start.y() <= self._disp_h):
                self._mode = self.MODE_NONE
                return
            # A new selection is dragged out from its top-left corner
            self._crop_start = CropRect(start.x(), start.y(), 0, 0)
            self._active_handle = self.HANDLE_BR

    def mouseMoveEvent(self, event: QMouseEvent):
        if not self._pixmap:
            return

        pos = event.position()

        # Update cursor
        if self._mode == self.MODE_NONE:
            mode, handle = self._hit_test(pos)
            if mode == self.MODE_RESIZE:
                if handle in (self.HANDLE_TL, self.HANDLE_BR):
                    self.setCursor(Qt.CursorShape.SizeFDiagCursor)
                else:
                    self.setCursor(Qt.CursorShape.SizeBDiagCursor)
            elif mode == self.MODE_MOVE:
                self.setCursor(Qt.CursorShape.SizeAllCursor)
            else:
                self.setCursor(Qt.CursorShape.CrossCursor)

        if self._mode == self.MODE_MOVE:
            delta = self._screen_to_display(pos.x(), pos.y()) - self._screen_to_display(
                self._drag_start.x(), self._drag_start.y()
            )
            self._crop.x = max(0.0, min(self._crop_start.x + delta.x(), self._disp_w - self._crop.w))
            self._crop.y = max(0.0, min(self._crop_start.y + delta.y(), self._disp_h - self._crop.h))
            self.crop_changed.emit()
            self.update()

        elif self._mode in (self.MODE_RESIZE, self.MODE_DRAW):
            if self._mode == self.MODE_DRAW:
                self._active_handle = self._draw_handle(pos)
            self._resize_from_handle(pos)
            self.crop_changed.emit()
            self.update()

    def mouseReleaseEvent(self, event: QMouseEvent):
        if event.button() != Qt.MouseButton.LeftButton:
            return
        if self._mode == self.MODE_DRAW and (self._crop.w < MIN_CROP_SIZE or self._crop.h < MIN_CROP_SIZE):
            # A click without a real drag keeps the previous selection
            self._crop = CropRect(self._crop_before.x, self._crop_before.y, self._crop_before.w, self._crop_before.h)
            self.update()
        if self._mode != self.MODE_NONE:
            self.crop_committed.emit()
        self._mode = self.MODE_NONE
        self._active_handle = self.HANDLE_NONE

    def _draw_handle(self, mouse_pos: QPointF) -> int:
        """Corner being dragged out from the press point, by drag direction."""
        p = self._screen_to_display(mouse_pos.x(), mouse_pos.y())
        left = p.x() < self._crop_start.x
        up = p.y() < self._crop_start.y
        if left:
            return self.HANDLE_TL if up else self.HANDLE_BL
        return self.HANDLE_TR if up else self.HANDLE_BR

    def _resize_from_handle(self, mouse_pos: QPointF):
        """Resize crop from a corner handle, maintaining aspect ratio."""
        p = self._screen_to_display(mouse_pos.x(), mouse_pos.y())
        mx = max(0.0, min(p.x(), self._disp_w))
        my = max(0.0, min(p.y(), self._disp_h))

        cs = self._crop_start
        ar = self._aspect_ratio

        if self._active_handle == self.HANDLE_BR:
            anchor_x, anchor_y = cs.x, cs.y
            dw = mx - anchor_x
            dh = my - anchor_y
        elif self._active_handle == self.HANDLE_BL:
            anchor_x, anchor_y = cs.x + cs.w, cs.y
            dw = anchor_x - mx
            dh = my - anchor_y
        elif self._active_handle == self.HANDLE_TR:
            anchor_x, anchor_y = cs.x, cs.y + cs.h
            dw = mx - anchor_x
            dh = anchor_y - my
        elif self._active_handle == self.HANDLE_TL:
            anchor_x, anchor_y = cs.x + cs.w, cs.y + cs.h
            dw = anchor_x - mx
            dh = anchor_y - my
        else:
            return

        dw = max(dw, 0.0)
        dh = max(dh, 0.0)

        # Size from the limiting dimension, maintaining AR
        if dh > 0 and dw / dh > ar:
            new_w, new_h = dh * ar, dh
        else:
            new_w, new_h = dw, dw / ar

        # Clamp to display bounds from anchor
        max_w = self._disp_w - anchor_x if self._active_handle in (self.HANDLE_BR, self.HANDLE_TR) else anchor_x
        max_h = self._disp_h - anchor_y if self._active_handle in (self.HANDLE_BR, self.HANDLE_BL) else anchor_y
        if new_w > max_w:
            new_w, new_h = max_w, max_w / ar
        if new_h > max_h:
            new_w, new_h = max_h * ar, max_h

        new_x = anchor_x if self._active_handle in (self.HANDLE_BR, self.HANDLE_TR) else anchor_x - new_w
        new_y = anchor_y if self._active_handle in (self.HANDLE_BR, self.HANDLE_BL) else anchor_y - new_h

        if self._mode == self.MODE_RESIZE:
            new_w = max(new_w, min(MIN_CROP_SIZE, max_w))
            new_h = new_w / ar
        self._crop = clamp_crop(CropRect(new_x, new_y, new_w, new_h), self._disp_w, self._disp_h)

    # --- Keyboard nudge ---

    def keyPressEvent(self, event: QKeyEvent):
        if not self._pixmap:
            return
        amount = NUDGE_LARGE if event.modifiers() & Qt.KeyboardModifier.ShiftModifier else NUDGE_SMALL
        moved = False
        if event.key() == Qt.Key.Key_Left:
            self._crop.x = max(0.0, self._crop.x - amount)
            moved = True
        elif event.key() == Qt.Key.Key_Right:
            self._crop.x = min(self._disp_w - self._crop.w, self._crop.x + amount)
            moved = True
        elif event.key() == Qt.Key.Key_Up:
            self._crop.y = max(0.0, self._crop.y - amount)
            moved = True
        elif event.key() == Qt.Key.Key_Down:
            self._crop.y = min(self._disp_h - self._crop.h, self._crop.y + amount)
            moved = True

        if moved:
            self.crop_changed.emit()
            self.crop_committed.emit()
            self.update()
        else:
            super().keyPressEvent(event)
