"""
Loupe geometry for precise keyboard selection.

Everything here is plain arithmetic on explicit parameters so the renderer
only has to paint what these functions return.
"""

from dataclasses import dataclass
from typing import List

from coordinate_converter import PanelPoint, SourcePoint


@dataclass(frozen=True)
class MagnifierLayout:
    x: int
    y: int
    size: int
    zoom: int
    # Source pixels actually sampled, clamped to the bitmap
    src_left: int
    src_top: int
    src_right: int
    src_bottom: int
    # Where the sampled block is painted, in panel space
    target_x: float
    target_y: float
    grid_xs: List[int]
    grid_ys: List[int]

    @property
    def center_x(self) -> int:
        return self.x + self.size // 2

    @property
    def center_y(self) -> int:
        return self.y + self.size // 2

    @property
    def target_width(self) -> float:
        return (self.src_right - self.src_left) * self.zoom

    @property
    def target_height(self) -> float:
        return (self.src_bottom - self.src_top) * self.zoom


def loupe_origin(cursor: int, offset: int, size: int, panel_extent: int) -> int:
    """Place the loupe after the cursor, flipping before it when it would run off the panel"""
    origin = cursor + offset
    if origin + size > panel_extent:
        origin = cursor - offset - size
    return max(0, min(origin, panel_extent - size))


def grid_line_positions(start: int, extent: int, pixel_size: int, grid_offset: float) -> List[int]:
    """
    Grid lines inside [start, start + extent) spaced by pixel_size.

    grid_offset is how far the first source pixel boundary sits before
    start; lines land on every boundary after start.
    """
    if pixel_size <= 0:
        return []
    positions = []
    pos = pixel_size - (grid_offset % pixel_size)
    while pos < extent:
        positions.append(start + int(pos))
        pos += pixel_size
    return positions


def compute_magnifier_layout(cursor: PanelPoint, source_center: SourcePoint,
                             panel_width: int, panel_height: int,
                             source_width: int, source_height: int,
                             zoom: int, offset: int, size: int) -> MagnifierLayout:
    mag_x = loupe_origin(cursor.x, offset, size, panel_width)
    mag_y = loupe_origin(cursor.y, offset, size, panel_height)

    source_pixels = size // zoom

    # Unclamped top-left of the sampled block; may be fractional or off-bitmap
    ideal_left = source_center.x - source_pixels / 2.0
    ideal_top = source_center.y - source_pixels / 2.0

    src_left = max(0, min(int(ideal_left), source_width - 1))
    src_top = max(0, min(int(ideal_top), source_height - 1))
    # One extra pixel covers the fractional shift on the far edge
    src_right = max(src_left, min(int(ideal_left) + source_pixels + 1, source_width))
    src_bottom = max(src_top, min(int(ideal_top) + source_pixels + 1, source_height))

    grid_offset_x = (ideal_left - src_left) * zoom
    grid_offset_y = (ideal_top - src_top) * zoom

    return MagnifierLayout(
        x=mag_x,
        y=mag_y,
        size=size,
        zoom=zoom,
        src_left=src_left,
        src_top=src_top,
        src_right=src_right,
        src_bottom=src_bottom,
        target_x=mag_x - grid_offset_x,
        target_y=mag_y - grid_offset_y,
        grid_xs=grid_line_positions(mag_x, size, zoom, grid_offset_x),
        grid_ys=grid_line_positions(mag_y, size, zoom, grid_offset_y),
    )
