from typing import Sequence

from PyQt6.QtCore import Qt, QPointF
from PyQt6.QtGui import QPainter, QPen, QColor, QFont, QFontMetricsF, QPainterPath

from annotations import DrawingOperation, Stroke, FilledRectangle, TextAnnotation
from config import Config
from coordinate_converter import PanelPoint, Rect


class DrawHelper:
    """Helper class for painting drawing operations"""

    @staticmethod
    def annotation_font(family: str, pixel_size: int) -> QFont:
        font = QFont(family)
        font.setPixelSize(max(1, pixel_size))
        font.setBold(True)
        return font

    @staticmethod
    def ui_font(pixel_size: int, bold: bool = False) -> QFont:
        font = QFont(Config.UI_FONT_FAMILY)
        font.setPixelSize(pixel_size)
        font.setBold(bold)
        return font

    @staticmethod
    def text_bounds(annotation: TextAnnotation) -> Rect:
        """Panel-space box of rendered text; the anchor is on the baseline"""
        metrics = QFontMetricsF(DrawHelper.annotation_font(annotation.font_family, annotation.font_size))
        return Rect(
            float(annotation.position.x),
            annotation.position.y - metrics.ascent(),
            metrics.horizontalAdvance(annotation.text),
            metrics.ascent() + metrics.descent(),
        )

    @staticmethod
    def draw_stroke(painter: QPainter, points: Sequence[PanelPoint], color: QColor, width: float,
                    scale_x: float = 1.0, scale_y: float = 1.0):
        if len(points) < Config.MIN_STROKE_POINTS:
            return
        path = QPainterPath(QPointF(points[0].x * scale_x, points[0].y * scale_y))
        for point in points[1:]:
            path.lineTo(point.x * scale_x, point.y * scale_y)

        pen = QPen(color, width * scale_x, Qt.PenStyle.SolidLine,
                   Qt.PenCapStyle.RoundCap, Qt.PenJoinStyle.RoundJoin)
        painter.setPen(pen)
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawPath(path)

    @staticmethod
    def draw_operation(painter: QPainter, operation: DrawingOperation,
                       scale_x: float = 1.0, scale_y: float = 1.0):
        """
        Paint one committed operation.

        The overlay calls this with unit scale; the composite passes the
        panel to source scale factors so the result lands on source pixels.
        """
        if isinstance(operation, Stroke):
            DrawHelper.draw_stroke(painter, operation.points, operation.color, operation.width,
                                   scale_x, scale_y)
        elif isinstance(operation, FilledRectangle):
            rect = operation.rect
            painter.fillRect(
                int(rect.x * scale_x),
                int(rect.y * scale_y),
                int(rect.width * scale_x),
                int(rect.height * scale_y),
                operation.color,
            )
        elif isinstance(operation, TextAnnotation):
            painter.setPen(QPen(operation.color))
            painter.setFont(DrawHelper.annotation_font(operation.font_family,
                                                       int(operation.font_size * scale_x)))
            painter.drawText(QPointF(int(operation.position.x * scale_x),
                                     int(operation.position.y * scale_y)), operation.text)
        else:
            raise TypeError(f"Unsupported drawing operation: {type(operation).__name__}")
