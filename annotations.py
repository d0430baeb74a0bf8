import logging
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Tuple

from PyQt6.QtGui import QColor

from coordinate_converter import PanelPoint, Rect

logger = logging.getLogger(__name__)


class InvalidIndexError(IndexError):
    """Raised when a text edit targets an operation that does not exist"""


class DrawingOperation:
    """
    Base class for committed annotations.

    The set of subclasses is closed: Stroke, FilledRectangle and
    TextAnnotation. Painting code dispatches on them exhaustively and
    rejects anything else.
    """
    __slots__ = ()


@dataclass(frozen=True)
class Stroke(DrawingOperation):
    points: Tuple[PanelPoint, ...]
    color: QColor
    width: float


@dataclass(frozen=True)
class FilledRectangle(DrawingOperation):
    rect: Rect
    color: QColor


@dataclass(frozen=True)
class TextAnnotation(DrawingOperation):
    text: str
    # Baseline-left anchor
    position: PanelPoint
    color: QColor
    font_size: int
    font_family: str


TextMeasurer = Callable[[TextAnnotation], Rect]


class DrawingModel:
    """Ordered list of committed annotations; later entries paint on top"""

    def __init__(self, text_measurer: TextMeasurer):
        self._operations: List[DrawingOperation] = []
        self._measure_text = text_measurer

    def __len__(self) -> int:
        return len(self._operations)

    def __iter__(self) -> Iterator[DrawingOperation]:
        return iter(self._operations)

    def __getitem__(self, index: int) -> DrawingOperation:
        return self._operations[index]

    @property
    def operations(self) -> List[DrawingOperation]:
        return list(self._operations)

    def commit(self, operation: DrawingOperation):
        self._operations.append(operation)
        logger.debug(f"Committed {type(operation).__name__} (#{len(self._operations)})")

    def _check_index(self, index: int):
        if not 0 <= index < len(self._operations):
            raise InvalidIndexError(f"No drawing operation at index {index}")

    def replace(self, index: int, operation: DrawingOperation):
        self._check_index(index)
        self._operations[index] = operation

    def remove(self, index: int):
        self._check_index(index)
        del self._operations[index]

    def hit_test_text(self, point: PanelPoint) -> Optional[int]:
        """Index of the most recently added text whose bounds contain the point"""
        for index in range(len(self._operations) - 1, -1, -1):
            operation = self._operations[index]
            if isinstance(operation, TextAnnotation):
                if self._measure_text(operation).contains(point.x, point.y):
                    return index
        return None
