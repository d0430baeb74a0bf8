import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from PyQt6.QtGui import QImage, QPainter

from annotations import DrawingOperation
from coordinate_converter import CoordinateConverter, Rect
from drawing_utils import DrawHelper
from window_registry import WindowInfo

logger = logging.getLogger(__name__)


@dataclass
class CropResult:
    image: QImage
    window: Optional[WindowInfo] = None


def composite(screenshot: QImage, operations: Iterable[DrawingOperation],
              converter: CoordinateConverter) -> QImage:
    """Full resolution screenshot with every annotation replayed in source space"""
    result = screenshot.convertToFormat(QImage.Format.Format_ARGB32)
    painter = QPainter(result)
    try:
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        for operation in operations:
            DrawHelper.draw_operation(painter, operation, converter.scale_x, converter.scale_y)
    finally:
        painter.end()
    return result


def crop_composite(screenshot: QImage, operations: Iterable[DrawingOperation],
                   converter: CoordinateConverter, panel_rect: Rect,
                   window: Optional[WindowInfo] = None) -> CropResult:
    source_rect = converter.to_source_crop(panel_rect)
    flattened = composite(screenshot, operations, converter)

    # QImage.copy detaches, the crop does not share pixels with the composite
    cropped = flattened.copy(source_rect)
    logger.info(f"Cropped {cropped.width()}x{cropped.height()} at ({source_rect.x()}, {source_rect.y()})")
    return CropResult(cropped, window)
