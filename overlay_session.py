from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from PyQt6.QtGui import QColor, QImage

from annotations import DrawingModel
from config import AppSettings, Config, ToolMode, ToolbarButton
from coordinate_converter import CoordinateConverter, PanelPoint, Rect, selection_rectangle
from window_registry import WindowInfo, WindowRegistry


@dataclass
class OverlaySession:
    """
    All mutable state of one overlay run.

    Event handlers and the renderer receive this object explicitly; nothing
    else holds session state.
    """
    screenshot: QImage
    monitor_geometry: Rect
    registry: WindowRegistry
    model: DrawingModel
    settings: AppSettings = field(default_factory=AppSettings)
    panel_size: Tuple[int, int] = (0, 0)

    tool: ToolMode = ToolMode.CROP
    color: QColor = field(default_factory=lambda: QColor(Config.DEFAULT_COLOR))
    brush_width: float = float(Config.DEFAULT_BRUSH_WIDTH)
    font_size: int = Config.DEFAULT_FONT_SIZE
    font_family: str = ""

    selection_start: Optional[PanelPoint] = None
    selection_end: Optional[PanelPoint] = None
    cursor: Optional[PanelPoint] = None
    is_dragging: bool = False
    is_keyboard_selecting: bool = False
    hovered_window: Optional[WindowInfo] = None
    selected_window: Optional[WindowInfo] = None

    brush_points: List[PanelPoint] = field(default_factory=list)
    rect_start: Optional[PanelPoint] = None
    rect_end: Optional[PanelPoint] = None

    selected_text_index: Optional[int] = None
    text_drag_start: Optional[PanelPoint] = None
    text_original_position: Optional[PanelPoint] = None

    # Filled in by the renderer, read by the next pointer press
    toolbar_bounds: Dict[ToolbarButton, Rect] = field(default_factory=dict)

    def __post_init__(self):
        if not self.font_family:
            self.font_family = self.settings.default_font_family
        if self.panel_size == (0, 0):
            self.panel_size = (int(self.monitor_geometry.width), int(self.monitor_geometry.height))

    @property
    def source_size(self) -> Tuple[int, int]:
        return self.screenshot.width(), self.screenshot.height()

    def converter(self) -> CoordinateConverter:
        """Fresh converter for the current panel size"""
        return CoordinateConverter(
            self.source_size,
            (self.monitor_geometry.width, self.monitor_geometry.height),
            self.panel_size,
        )

    def selection_rect(self) -> Rect:
        return selection_rectangle(self.selection_start, self.selection_end)

    def has_in_progress(self) -> bool:
        return self.selection_start is not None or bool(self.brush_points) or self.rect_start is not None

    def reset_tool_state(self):
        """Drop every uncommitted buffer, for all tools"""
        self.selection_start = None
        self.selection_end = None
        self.brush_points.clear()
        self.rect_start = None
        self.rect_end = None
        self.is_dragging = False
        self.clear_text_drag()

    def clear_text_drag(self):
        self.selected_text_index = None
        self.text_drag_start = None
        self.text_original_position = None

    def toolbar_button_at(self, point: PanelPoint) -> Optional[ToolbarButton]:
        for button, bounds in self.toolbar_bounds.items():
            if bounds.contains(point.x, point.y):
                return button
        return None
