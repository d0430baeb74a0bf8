from typing import Dict

from PyQt6.QtCore import Qt, QRect, QRectF
from PyQt6.QtGui import QPainter, QPen, QColor, QBrush, QPainterPath

from config import Config, ToolMode, ToolbarButton, TOOL_BUTTONS
from coordinate_converter import CoordinateConverter, Rect, selection_rectangle
from drawing_utils import DrawHelper
from magnifier import compute_magnifier_layout
from overlay_session import OverlaySession

WHITE = QColor(255, 255, 255)
BUTTON_COLOR = QColor(60, 60, 60)
BUTTON_BORDER_COLOR = QColor(100, 100, 100)
ACTIVE_BUTTON_COLOR = QColor(100, 150, 255)
ACTIVE_BUTTON_BORDER_COLOR = QColor(150, 200, 255)
PANEL_BACKGROUND = QColor(0, 0, 0, 180)
BANNER_BACKGROUND = QColor(0, 0, 0, 200)
GRID_COLOR = QColor(128, 128, 128, 100)

TOOL_MESSAGES = {
    ToolMode.CROP: "Click+drag to select | Click on window | Arrow keys for precision | ESC to cancel",
    ToolMode.BRUSH: "Click+drag to draw | ESC to cancel",
    ToolMode.TEXT: "Click to add text | ESC to cancel",
    ToolMode.RECTANGLE: "Click+drag to draw rectangle | ESC to cancel",
}
KEYBOARD_SELECTING_MESSAGE = "Arrows to adjust selection (Shift=faster) | Enter to confirm | ESC to cancel"
KEYBOARD_MESSAGE = "Arrows to move (Shift=faster) | Space to start selection | Enter on window | ESC to cancel"


def instruction_text(session: OverlaySession) -> str:
    if session.is_keyboard_selecting and session.selection_start is not None:
        return KEYBOARD_SELECTING_MESSAGE
    if session.is_keyboard_selecting:
        return KEYBOARD_MESSAGE
    return TOOL_MESSAGES[session.tool]


def font_button_label(family: str) -> str:
    if len(family) > Config.FONT_LABEL_MAX_CHARS:
        return family[:Config.FONT_LABEL_MAX_CHARS - 1] + "..."
    return family


class OverlayRenderer:
    """
    Paints one overlay frame from the session.

    Apart from recording toolbar hit regions the session is only read, so
    painting the same state twice gives the same pixels.
    """

    def paint(self, painter: QPainter, session: OverlaySession):
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        converter = session.converter()
        width, height = session.panel_size

        painter.drawImage(QRect(0, 0, width, height), session.screenshot)

        selection = self._crop_selection(session)
        self._draw_dim_overlay(painter, selection, width, height)

        for operation in session.model:
            DrawHelper.draw_operation(painter, operation)
        self._draw_in_progress(painter, session)
        self._draw_hovered_window(painter, session, converter)

        if selection is not None:
            self._draw_selection(painter, session, selection, converter)

        if session.cursor is not None and session.is_keyboard_selecting:
            self._draw_crosshair(painter, session, width, height)
            if session.tool == ToolMode.CROP or session.settings.magnifier_in_all_tools:
                self._draw_magnifier(painter, session, converter)

        self._draw_instructions(painter, instruction_text(session), width)
        session.toolbar_bounds = self._draw_toolbar(painter, session, width)

    def _crop_selection(self, session: OverlaySession):
        if session.tool != ToolMode.CROP or session.selection_start is None or session.selection_end is None:
            return None
        rect = session.selection_rect()
        if not rect.has_area():
            return None
        return rect.to_pixel_rect()

    def _draw_dim_overlay(self, painter: QPainter, selection, width: int, height: int):
        if selection is None:
            painter.fillRect(0, 0, width, height, Config.OVERLAY_COLOR)
            return

        x, y = selection.x(), selection.y()
        right, bottom = x + selection.width(), y + selection.height()
        painter.fillRect(0, 0, width, y, Config.OVERLAY_COLOR)
        painter.fillRect(0, bottom, width, height - bottom, Config.OVERLAY_COLOR)
        painter.fillRect(0, y, x, selection.height(), Config.OVERLAY_COLOR)
        painter.fillRect(right, y, width - right, selection.height(), Config.OVERLAY_COLOR)

    def _draw_in_progress(self, painter: QPainter, session: OverlaySession):
        DrawHelper.draw_stroke(painter, session.brush_points, session.color, session.brush_width)

        if session.tool == ToolMode.RECTANGLE and session.rect_start is not None and session.rect_end is not None:
            rect = selection_rectangle(session.rect_start, session.rect_end)
            painter.fillRect(rect.to_pixel_rect(), session.color)

    def _draw_hovered_window(self, painter: QPainter, session: OverlaySession,
                             converter: CoordinateConverter):
        window = session.hovered_window
        if (window is None or session.is_dragging or session.is_keyboard_selecting
                or session.tool != ToolMode.CROP):
            return

        panel = converter.to_panel_rect(window.geometry)
        rect = QRect(int(panel.x), int(panel.y), int(panel.width), int(panel.height))
        painter.fillRect(rect, Config.HOVER_FILL_COLOR)
        painter.setPen(QPen(Config.HOVER_BORDER_COLOR, 2))
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawRect(rect)

        if session.settings.display_process_info_when_hovering:
            painter.setFont(DrawHelper.ui_font(12))
            baseline = rect.y() + painter.fontMetrics().height()
            painter.setPen(QColor(0, 0, 0, 100))
            painter.drawText(rect.x() + 5, baseline + 1, window.label)
            painter.setPen(WHITE)
            painter.drawText(rect.x() + 5, baseline, window.label)

    def _draw_selection(self, painter: QPainter, session: OverlaySession, selection: QRect,
                        converter: CoordinateConverter):
        # Annotations stay visible inside the cutout
        painter.save()
        painter.setClipRect(selection)
        for operation in session.model:
            DrawHelper.draw_operation(painter, operation)
        painter.restore()

        painter.setPen(QPen(WHITE, Config.SELECTION_BORDER_WIDTH))
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawRect(selection)

        size_text = converter.source_size_label(selection)
        painter.setFont(DrawHelper.ui_font(14, bold=True))
        metrics = painter.fontMetrics()
        text_width = metrics.horizontalAdvance(size_text)
        text_x = selection.x() + (selection.width() - text_width) // 2
        text_y = selection.y() + selection.height() + 20

        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(QColor(0, 0, 0, 180))
        painter.drawRoundedRect(QRectF(text_x - 5, text_y - 15, text_width + 10, 20), 5, 5)
        painter.setPen(WHITE)
        painter.drawText(text_x, text_y, size_text)

    def _draw_crosshair(self, painter: QPainter, session: OverlaySession, width: int, height: int):
        cursor = session.cursor
        pen = QPen(QColor(255, 255, 255, 200), 1)
        pen.setDashPattern([5.0, 5.0])
        painter.setPen(pen)
        painter.drawLine(cursor.x, 0, cursor.x, height)
        painter.drawLine(0, cursor.y, width, cursor.y)

    def _draw_magnifier(self, painter: QPainter, session: OverlaySession,
                        converter: CoordinateConverter):
        settings = session.settings.magnifier
        width, height = session.panel_size
        layout = compute_magnifier_layout(
            session.cursor, converter.to_source_point(session.cursor), width, height,
            converter.source_width, converter.source_height,
            settings.zoom, settings.offset, settings.size,
        )
        loupe = QRectF(layout.x, layout.y, layout.size, layout.size)

        painter.save()
        clip = QPainterPath()
        clip.addEllipse(loupe)
        painter.setClipPath(clip)
        painter.fillRect(loupe, QColor(0, 0, 0))

        # Nearest neighbour so each source pixel stays a crisp block
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform, False)
        painter.drawImage(
            QRectF(layout.target_x, layout.target_y, layout.target_width, layout.target_height),
            session.screenshot,
            QRectF(layout.src_left, layout.src_top,
                   layout.src_right - layout.src_left, layout.src_bottom - layout.src_top),
        )

        painter.setPen(QPen(GRID_COLOR, 1))
        for x in layout.grid_xs:
            painter.drawLine(x, layout.y, x, layout.y + layout.size)
        for y in layout.grid_ys:
            painter.drawLine(layout.x, y, layout.x + layout.size, y)
        painter.restore()

        cross = layout.zoom // 2
        painter.setPen(QPen(QColor(255, 0, 0), 1))
        painter.drawLine(layout.center_x - cross, layout.center_y, layout.center_x + cross, layout.center_y)
        painter.drawLine(layout.center_x, layout.center_y - cross, layout.center_x, layout.center_y + cross)

        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.setPen(QPen(WHITE, 2))
        painter.drawEllipse(loupe)
        painter.setPen(QPen(QColor(0, 0, 0, 150), 1))
        painter.drawEllipse(loupe.adjusted(-1, -1, 1, 1))

    def _draw_instructions(self, painter: QPainter, text: str, width: int):
        painter.setFont(DrawHelper.ui_font(12))
        text_width = painter.fontMetrics().horizontalAdvance(text)

        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(BANNER_BACKGROUND)
        painter.drawRoundedRect(QRectF((width - text_width) // 2 - 10, 10, text_width + 20, 25), 10, 10)
        painter.setPen(WHITE)
        painter.drawText((width - text_width) // 2, 27, text)

    def _draw_button(self, painter: QPainter, rect: QRect, active: bool = False):
        painter.setBrush(ACTIVE_BUTTON_COLOR if active else BUTTON_COLOR)
        painter.setPen(QPen(ACTIVE_BUTTON_BORDER_COLOR if active else BUTTON_BORDER_COLOR, 1))
        painter.drawRoundedRect(QRectF(rect), 5, 5)

    def _draw_centered_label(self, painter: QPainter, rect: QRect, text: str):
        painter.setPen(WHITE)
        painter.drawText(rect, Qt.AlignmentFlag.AlignCenter, text)

    def _draw_toolbar(self, painter: QPainter, session: OverlaySession,
                      panel_width: int) -> Dict[ToolbarButton, Rect]:
        """Paint the toolbar and return where each button ended up"""
        bounds: Dict[ToolbarButton, Rect] = {}
        top = Config.TOOLBAR_Y
        button_h = Config.TOOLBAR_BUTTON_HEIGHT
        spacing = Config.TOOLBAR_SPACING

        tools_width = len(TOOL_BUTTONS) * Config.TOOLBAR_BUTTON_WIDTH + (len(TOOL_BUTTONS) - 1) * spacing
        total_width = (tools_width + spacing * 2 + Config.TOOLBAR_SIZE_CONTROL_WIDTH + spacing
                       + Config.TOOLBAR_COLOR_BUTTON_WIDTH + spacing + Config.TOOLBAR_FONT_BUTTON_WIDTH)
        x = panel_width // 2 - total_width // 2

        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(PANEL_BACKGROUND)
        painter.drawRoundedRect(QRectF(x - 10, top - 5, total_width + 20, button_h + 10), 10, 10)

        painter.setFont(DrawHelper.ui_font(12))
        for button, tool in TOOL_BUTTONS.items():
            rect = QRect(x, top, Config.TOOLBAR_BUTTON_WIDTH, button_h)
            self._draw_button(painter, rect, active=session.tool == tool)
            self._draw_centered_label(painter, rect, button.value)
            bounds[button] = Rect(x, top, Config.TOOLBAR_BUTTON_WIDTH, button_h)
            x += Config.TOOLBAR_BUTTON_WIDTH + spacing

        if session.tool in (ToolMode.BRUSH, ToolMode.TEXT):
            x += spacing
            size_button_w = Config.TOOLBAR_SIZE_BUTTON_WIDTH

            minus = QRect(x, top, size_button_w, button_h)
            self._draw_button(painter, minus)
            self._draw_centered_label(painter, minus, "-")
            bounds[ToolbarButton.SIZE_DOWN] = Rect(x, top, size_button_w, button_h)
            x += size_button_w + 2

            value = int(session.brush_width) if session.tool == ToolMode.BRUSH else session.font_size
            painter.setFont(DrawHelper.ui_font(12, bold=True))
            self._draw_centered_label(painter, QRect(x, top, Config.TOOLBAR_SIZE_VALUE_WIDTH, button_h), str(value))
            painter.setFont(DrawHelper.ui_font(12))
            x += Config.TOOLBAR_SIZE_VALUE_WIDTH

            plus = QRect(x, top, size_button_w, button_h)
            self._draw_button(painter, plus)
            self._draw_centered_label(painter, plus, "+")
            bounds[ToolbarButton.SIZE_UP] = Rect(x, top, size_button_w, button_h)
            x += size_button_w + spacing
        else:
            x += Config.TOOLBAR_SIZE_CONTROL_WIDTH + spacing

        x += spacing
        color_rect = QRect(x, top, Config.TOOLBAR_COLOR_BUTTON_WIDTH, button_h)
        self._draw_button(painter, color_rect)
        swatch = QRect(x + 5, top + 5, button_h - 10, button_h - 10)
        painter.fillRect(swatch, session.color)
        painter.setPen(WHITE)
        painter.setBrush(QBrush(Qt.BrushStyle.NoBrush))
        painter.drawRect(swatch)
        bounds[ToolbarButton.COLOR] = Rect(x, top, Config.TOOLBAR_COLOR_BUTTON_WIDTH, button_h)

        x += Config.TOOLBAR_COLOR_BUTTON_WIDTH + spacing
        if session.tool == ToolMode.TEXT:
            font_rect = QRect(x, top, Config.TOOLBAR_FONT_BUTTON_WIDTH, button_h)
            self._draw_button(painter, font_rect)
            painter.setFont(DrawHelper.ui_font(10))
            self._draw_centered_label(painter, font_rect, font_button_label(session.font_family))
            bounds[ToolbarButton.FONT] = Rect(x, top, Config.TOOLBAR_FONT_BUTTON_WIDTH, button_h)

        return bounds
