import logging
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional

from coordinate_converter import CoordinateConverter, PanelPoint, Rect

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WindowInfo:
    id: str
    geometry: Rect
    process_name: Optional[str] = None
    pid: Optional[int] = None

    @property
    def label(self) -> str:
        name = self.process_name or self.id
        if self.pid is None:
            return name
        return f"{name} ({self.pid})"


class WindowRegistry:
    """Windows on the active monitor, topmost first, in monitor-local coordinates"""

    def __init__(self, windows: Iterable[WindowInfo], monitor_geometry: Rect):
        monitor_bounds = Rect(0.0, 0.0, monitor_geometry.width, monitor_geometry.height)
        self._windows: List[WindowInfo] = []

        for info in windows:
            local = info.geometry.translated(-monitor_geometry.x, -monitor_geometry.y)
            if local.overlaps(monitor_bounds):
                self._windows.append(replace(info, geometry=local))
            else:
                logger.debug(f"Dropping off-monitor window {info.id}")

        logger.debug("Windows on monitor (top -> bottom):")
        for info in self._windows:
            logger.debug(f"- {info}")

    @property
    def windows(self) -> List[WindowInfo]:
        return list(self._windows)

    def __len__(self) -> int:
        return len(self._windows)

    def find_window_at(self, point: PanelPoint, converter: CoordinateConverter) -> Optional[WindowInfo]:
        """Topmost window under a panel point"""
        monitor_point = converter.to_monitor_space(point)
        for info in self._windows:
            if info.geometry.contains(monitor_point.x, monitor_point.y):
                return info
        return None
