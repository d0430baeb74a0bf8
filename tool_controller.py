import logging
from dataclasses import replace
from typing import Callable, List, Optional, Protocol

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QColor

from annotations import InvalidIndexError, Stroke, FilledRectangle, TextAnnotation
from compositor import CropResult, crop_composite
from config import Config, ToolMode, ToolbarButton, TOOL_BUTTONS
from coordinate_converter import PanelPoint, Rect, selection_rectangle
from overlay_session import OverlaySession
from window_registry import WindowInfo

logger = logging.getLogger(__name__)


class Prompts(Protocol):
    """Blocking user prompts; every method returns None when cancelled"""

    def pick_color(self, current: QColor) -> Optional[QColor]: ...

    def font_families(self) -> List[str]: ...

    def pick_font(self, families: List[str], current: str) -> Optional[str]: ...

    def prompt_text(self, title: str, label: str, initial: Optional[str] = None) -> Optional[str]: ...


SHORTCUT_TOOLS = {
    Qt.Key.Key_1: ToolMode.CROP,
    Qt.Key.Key_C: ToolMode.CROP,
    Qt.Key.Key_2: ToolMode.BRUSH,
    Qt.Key.Key_B: ToolMode.BRUSH,
    Qt.Key.Key_3: ToolMode.TEXT,
    Qt.Key.Key_T: ToolMode.TEXT,
    Qt.Key.Key_4: ToolMode.RECTANGLE,
    Qt.Key.Key_R: ToolMode.RECTANGLE,
}

ARROW_KEYS = (Qt.Key.Key_Up, Qt.Key.Key_Down, Qt.Key.Key_Left, Qt.Key.Key_Right)


class ToolController:
    """
    Turns pointer and keyboard input into session changes.

    A finished crop is handed to on_complete; on_cancel fires when Escape
    is pressed with nothing in progress.
    """

    def __init__(self, session: OverlaySession, prompts: Prompts,
                 on_complete: Callable[[CropResult], None],
                 on_cancel: Callable[[], None]):
        self.session = session
        self.prompts = prompts
        self.on_complete = on_complete
        self.on_cancel = on_cancel

    # ------------------------------------------------------------------
    # Pointer
    # ------------------------------------------------------------------

    def mouse_press(self, point: PanelPoint):
        session = self.session
        session.is_keyboard_selecting = False

        button = session.toolbar_button_at(point)
        if button is not None:
            self.handle_toolbar_click(button)
            return

        if session.tool == ToolMode.CROP:
            session.selection_start = point
            session.selection_end = point
            session.is_dragging = True
        elif session.tool == ToolMode.BRUSH:
            session.brush_points.clear()
            session.brush_points.append(point)
            session.is_dragging = True
        elif session.tool == ToolMode.RECTANGLE:
            session.rect_start = point
            session.rect_end = point
            session.is_dragging = True
        elif session.tool == ToolMode.TEXT:
            self._press_text(point)

    def _press_text(self, point: PanelPoint):
        session = self.session
        index = session.model.hit_test_text(point)
        if index is not None:
            session.selected_text_index = index
            session.text_drag_start = point
            session.text_original_position = session.model[index].position
            session.is_dragging = True
            return

        text = self.prompts.prompt_text("Add Text", "Enter text:")
        if text is not None and text.strip():
            session.model.commit(TextAnnotation(
                text, point, QColor(session.color), session.font_size, session.font_family))

    def mouse_move(self, point: PanelPoint):
        session = self.session
        if session.is_dragging:
            self._drag(point)
            return

        session.cursor = point
        if session.tool == ToolMode.CROP:
            session.hovered_window = self.find_window_at(point)

    def _drag(self, point: PanelPoint):
        session = self.session
        if session.tool == ToolMode.CROP:
            session.selection_end = point
        elif session.tool == ToolMode.BRUSH:
            session.brush_points.append(point)
        elif session.tool == ToolMode.RECTANGLE:
            session.rect_end = point
        elif session.tool == ToolMode.TEXT and session.selected_text_index is not None:
            dx = point.x - session.text_drag_start.x
            dy = point.y - session.text_drag_start.y
            origin = session.text_original_position
            self._replace_text(session.selected_text_index,
                               position=PanelPoint(origin.x + dx, origin.y + dy))

    def mouse_release(self, point: PanelPoint):
        session = self.session
        if not session.is_dragging:
            return
        session.is_dragging = False

        if session.tool == ToolMode.CROP:
            self._release_crop(point)
        elif session.tool == ToolMode.BRUSH:
            if len(session.brush_points) >= Config.MIN_STROKE_POINTS:
                session.model.commit(Stroke(
                    tuple(session.brush_points), QColor(session.color), session.brush_width))
            session.brush_points.clear()
        elif session.tool == ToolMode.RECTANGLE:
            session.rect_end = point
            rect = selection_rectangle(session.rect_start, session.rect_end)
            if rect.width > Config.RECT_MIN_SIZE and rect.height > Config.RECT_MIN_SIZE:
                session.model.commit(FilledRectangle(rect, QColor(session.color)))
            session.rect_start = None
            session.rect_end = None
        elif session.tool == ToolMode.TEXT:
            self._release_text(point)

    def _release_crop(self, point: PanelPoint):
        session = self.session
        session.selection_end = point
        rect = session.selection_rect()
        if rect.width > Config.CROP_DRAG_THRESHOLD or rect.height > Config.CROP_DRAG_THRESHOLD:
            self.crop_selection(rect)
            return

        window = self.find_window_at(point)
        if window is not None:
            self.crop_window(window)
        else:
            session.selection_start = None
            session.selection_end = None

    def _release_text(self, point: PanelPoint):
        session = self.session
        index = session.selected_text_index
        if index is None or session.text_drag_start is None:
            return

        dx = abs(point.x - session.text_drag_start.x)
        dy = abs(point.y - session.text_drag_start.y)
        if dx < Config.TEXT_CLICK_THRESHOLD and dy < Config.TEXT_CLICK_THRESHOLD:
            self._edit_text(index, session.text_original_position)
        # Otherwise the drag already moved the text
        session.clear_text_drag()

    def _edit_text(self, index: int, original_position: PanelPoint):
        self._replace_text(index, position=original_position)
        try:
            current = self.session.model[index]
        except IndexError:
            return

        new_text = self.prompts.prompt_text("Edit Text", "Edit text:", current.text)
        if new_text is None:
            return
        if not new_text.strip():
            try:
                self.session.model.remove(index)
            except InvalidIndexError as e:
                logger.debug(f"Ignoring text delete: {e}")
        else:
            self._replace_text(index, text=new_text, position=original_position)

    def _replace_text(self, index: int, **changes):
        model = self.session.model
        try:
            model.replace(index, replace(model[index], **changes))
        except IndexError as e:
            logger.debug(f"Ignoring text edit: {e}")

    # ------------------------------------------------------------------
    # Keyboard
    # ------------------------------------------------------------------

    def key_press(self, key, shift: bool = False):
        session = self.session

        if key == Qt.Key.Key_Escape:
            if session.has_in_progress():
                session.reset_tool_state()
            else:
                logger.info("Selection cancelled")
                self.on_cancel()
        elif key in ARROW_KEYS:
            if session.tool == ToolMode.CROP:
                self.move_keyboard_cursor(key, shift)
        elif key == Qt.Key.Key_Space:
            if (session.tool == ToolMode.CROP and session.is_keyboard_selecting
                    and session.cursor is not None and session.selection_start is None):
                session.selection_start = session.cursor
                session.selection_end = session.cursor
        elif key in (Qt.Key.Key_Return, Qt.Key.Key_Enter):
            self._confirm()
        elif key in SHORTCUT_TOOLS:
            self.switch_tool(SHORTCUT_TOOLS[key])
        elif key == Qt.Key.Key_BracketLeft:
            self.adjust_size(-1)
        elif key == Qt.Key.Key_BracketRight:
            self.adjust_size(1)

    def _confirm(self):
        session = self.session
        if session.tool != ToolMode.CROP:
            return

        if session.selection_start is not None and session.selection_end is not None:
            rect = session.selection_rect()
            if rect.width > Config.CROP_DRAG_THRESHOLD and rect.height > Config.CROP_DRAG_THRESHOLD:
                self.crop_selection(rect)
        elif session.is_keyboard_selecting and session.cursor is not None:
            window = self.find_window_at(session.cursor)
            if window is not None:
                self.crop_window(window)

    def move_keyboard_cursor(self, key, fast: bool):
        session = self.session
        step = Config.KEYBOARD_STEP_LARGE if fast else Config.KEYBOARD_STEP_SMALL
        panel_w, panel_h = session.panel_size
        session.is_keyboard_selecting = True

        if session.cursor is None:
            session.cursor = PanelPoint(panel_w // 2, panel_h // 2)
        x, y = session.cursor

        if key == Qt.Key.Key_Up:
            y = max(0, y - step)
        elif key == Qt.Key.Key_Down:
            y = min(panel_h - 1, y + step)
        elif key == Qt.Key.Key_Left:
            x = max(0, x - step)
        elif key == Qt.Key.Key_Right:
            x = min(panel_w - 1, x + step)
        session.cursor = PanelPoint(x, y)

        if session.selection_start is not None:
            session.selection_end = session.cursor
        session.hovered_window = self.find_window_at(session.cursor)

    # ------------------------------------------------------------------
    # Tools and toolbar
    # ------------------------------------------------------------------

    def switch_tool(self, tool: ToolMode):
        self.session.tool = tool
        self.session.reset_tool_state()
        logger.debug(f"Tool: {tool.name}")

    def adjust_size(self, direction: int):
        session = self.session
        if session.tool == ToolMode.BRUSH:
            width = session.brush_width + direction * Config.BRUSH_WIDTH_STEP
            session.brush_width = float(max(Config.MIN_BRUSH_WIDTH, min(width, Config.MAX_BRUSH_WIDTH)))
        elif session.tool == ToolMode.TEXT:
            size = session.font_size + direction * Config.FONT_SIZE_STEP
            session.font_size = max(Config.MIN_FONT_SIZE, min(size, Config.MAX_FONT_SIZE))

    def handle_toolbar_click(self, button: ToolbarButton):
        session = self.session
        if button in TOOL_BUTTONS:
            session.tool = TOOL_BUTTONS[button]
        elif button == ToolbarButton.SIZE_DOWN:
            self.adjust_size(-1)
        elif button == ToolbarButton.SIZE_UP:
            self.adjust_size(1)
        elif button == ToolbarButton.COLOR:
            color = self.prompts.pick_color(QColor(session.color))
            if color is not None and color.isValid():
                session.color = color
        elif button == ToolbarButton.FONT:
            if session.tool == ToolMode.TEXT:
                family = self.prompts.pick_font(self.prompts.font_families(), session.font_family)
                if family:
                    session.font_family = family
        session.reset_tool_state()

    # ------------------------------------------------------------------
    # Hit testing and crop
    # ------------------------------------------------------------------

    def find_window_at(self, point: PanelPoint) -> Optional[WindowInfo]:
        return self.session.registry.find_window_at(point, self.session.converter())

    def crop_window(self, window: WindowInfo):
        self.session.selected_window = window
        self.crop_selection(self.session.converter().to_panel_rect(window.geometry))

    def crop_selection(self, panel_rect: Rect):
        session = self.session
        result = crop_composite(session.screenshot, session.model, session.converter(),
                                panel_rect, session.selected_window)
        self.on_complete(result)
