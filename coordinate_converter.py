from dataclasses import dataclass
from typing import NamedTuple, Optional

from PyQt6.QtCore import QRect


class PanelPoint(NamedTuple):
    """Pixel on the rendered overlay surface"""
    x: int
    y: int


class MonitorPoint(NamedTuple):
    """Point in the window manager's logical space, relative to the monitor origin"""
    x: int
    y: int


class SourcePoint(NamedTuple):
    """Pixel of the captured screenshot"""
    x: int
    y: int


@dataclass(frozen=True)
class Rect:
    """Double precision rectangle; which space it lives in is up to the caller"""
    x: float
    y: float
    width: float
    height: float

    def contains(self, px: float, py: float) -> bool:
        """Edges are inclusive on both sides"""
        return self.x <= px <= self.x + self.width and self.y <= py <= self.y + self.height

    def translated(self, dx: float, dy: float) -> 'Rect':
        return Rect(self.x + dx, self.y + dy, self.width, self.height)

    def intersection_area(self, other: 'Rect') -> float:
        overlap_w = min(self.x + self.width, other.x + other.width) - max(self.x, other.x)
        overlap_h = min(self.y + self.height, other.y + other.height) - max(self.y, other.y)
        if overlap_w <= 0 or overlap_h <= 0:
            return 0.0
        return overlap_w * overlap_h

    def overlaps(self, other: 'Rect') -> bool:
        return self.intersection_area(other) > 0

    def has_area(self) -> bool:
        return self.width > 0 and self.height > 0

    def to_pixel_rect(self) -> QRect:
        """Snap to integer pixels, truncating both corners once so edges stay consistent"""
        x1, y1 = int(self.x), int(self.y)
        x2, y2 = int(self.x + self.width), int(self.y + self.height)
        return QRect(x1, y1, x2 - x1, y2 - y1)


ZERO_RECT = Rect(0.0, 0.0, 0.0, 0.0)


def selection_rectangle(start: Optional[PanelPoint], end: Optional[PanelPoint]) -> Rect:
    """Normalized box spanned by two points in any order"""
    if start is None or end is None:
        return ZERO_RECT
    return Rect(
        float(min(start.x, end.x)),
        float(min(start.y, end.y)),
        float(abs(end.x - start.x)),
        float(abs(end.y - start.y)),
    )


class CoordinateConverter:
    """
    Converts between panel, monitor and source space.

    Built from the current panel size, so a converter must not outlive the
    frame or event it was created for.
    """

    def __init__(self, source_size: tuple, monitor_size: tuple, panel_size: tuple):
        source_w, source_h = source_size
        monitor_w, monitor_h = monitor_size
        panel_w, panel_h = panel_size
        if panel_w <= 0 or panel_h <= 0:
            raise ValueError(f"Panel size must be positive, got {panel_w}x{panel_h}")

        self.panel_width = panel_w
        self.panel_height = panel_h
        self.source_width = source_w
        self.source_height = source_h

        self.scale_x = source_w / panel_w
        self.scale_y = source_h / panel_h
        self.panel_to_monitor_x = monitor_w / panel_w
        self.panel_to_monitor_y = monitor_h / panel_h

    def to_monitor_space(self, point: PanelPoint) -> MonitorPoint:
        return MonitorPoint(
            int(point.x * self.panel_to_monitor_x),
            int(point.y * self.panel_to_monitor_y),
        )

    def to_panel_rect(self, monitor_rect: Rect) -> Rect:
        return Rect(
            monitor_rect.x / self.panel_to_monitor_x,
            monitor_rect.y / self.panel_to_monitor_y,
            monitor_rect.width / self.panel_to_monitor_x,
            monitor_rect.height / self.panel_to_monitor_y,
        )

    def to_source_point(self, point: PanelPoint) -> SourcePoint:
        return SourcePoint(int(point.x * self.scale_x), int(point.y * self.scale_y))

    def to_source_crop(self, panel_rect: Rect) -> QRect:
        """Source pixel rectangle for a panel rectangle, clamped to the bitmap"""
        img_x = _clamp(int(panel_rect.x * self.scale_x), 0, self.source_width - 1)
        img_y = _clamp(int(panel_rect.y * self.scale_y), 0, self.source_height - 1)
        img_w = _clamp(int(panel_rect.width * self.scale_x), 1, self.source_width - img_x)
        img_h = _clamp(int(panel_rect.height * self.scale_y), 1, self.source_height - img_y)
        return QRect(img_x, img_y, img_w, img_h)

    def source_size_label(self, panel_rect: QRect) -> str:
        return f"{int(panel_rect.width() * self.scale_x)} x {int(panel_rect.height() * self.scale_y)}"


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))
