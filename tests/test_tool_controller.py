import pytest
from PyQt6.QtCore import Qt
from PyQt6.QtGui import QColor

from annotations import FilledRectangle, Stroke, TextAnnotation
from config import Config, ToolMode, ToolbarButton
from conftest import FakePrompts
from coordinate_converter import PanelPoint, Rect


def drag(harness, start, *points):
    controller = harness.controller
    controller.mouse_press(PanelPoint(*start))
    for point in points:
        controller.mouse_move(PanelPoint(*point))
    controller.mouse_release(PanelPoint(*(points[-1] if points else start)))


# ----------------------------------------------------------------------
# Crop
# ----------------------------------------------------------------------

def test_click_on_window_crops_to_window(make_harness, window_w1):
    harness = make_harness(windows=[window_w1])
    drag(harness, (50, 50))

    assert len(harness.results) == 1
    result = harness.results[0]
    assert (result.image.width(), result.image.height()) == (100, 100)
    assert result.window == window_w1
    assert harness.session.selected_window == window_w1


def test_click_outside_windows_discards_selection(make_harness, window_w1):
    harness = make_harness(windows=[window_w1])
    drag(harness, (500, 500))

    assert harness.results == []
    assert harness.session.selection_start is None
    assert harness.session.selection_end is None


def test_five_pixel_drag_counts_as_click(make_harness):
    harness = make_harness()
    drag(harness, (100, 100), (105, 105))
    assert harness.results == []


def test_six_pixel_drag_crops(make_harness):
    harness = make_harness()
    drag(harness, (100, 100), (106, 106))
    assert len(harness.results) == 1
    assert (harness.results[0].image.width(), harness.results[0].image.height()) == (6, 6)
    assert harness.results[0].window is None


def test_drag_in_one_dimension_is_enough(make_harness):
    harness = make_harness()
    drag(harness, (100, 100), (200, 101))
    assert (harness.results[0].image.width(), harness.results[0].image.height()) == (100, 1)


def test_drag_crop_scales_to_source_pixels(make_harness):
    harness = make_harness(source_size=(1600, 1200))
    drag(harness, (10, 20), (110, 70))
    assert (harness.results[0].image.width(), harness.results[0].image.height()) == (200, 100)


def test_crop_drag_normalizes_reverse_direction(make_harness):
    harness = make_harness()
    drag(harness, (300, 300), (200, 250))
    assert (harness.results[0].image.width(), harness.results[0].image.height()) == (100, 50)


def test_hover_tracks_window_in_crop_mode(make_harness, window_w1):
    harness = make_harness(windows=[window_w1])
    harness.controller.mouse_move(PanelPoint(20, 20))
    assert harness.session.hovered_window == window_w1
    assert harness.session.cursor == PanelPoint(20, 20)
    harness.controller.mouse_move(PanelPoint(400, 400))
    assert harness.session.hovered_window is None


def test_hover_not_updated_outside_crop_mode(make_harness, window_w1):
    harness = make_harness(windows=[window_w1])
    harness.controller.switch_tool(ToolMode.BRUSH)
    harness.controller.mouse_move(PanelPoint(20, 20))
    assert harness.session.hovered_window is None


# ----------------------------------------------------------------------
# Brush and rectangle
# ----------------------------------------------------------------------

def test_brush_stroke_commits_points(make_harness):
    harness = make_harness()
    harness.controller.switch_tool(ToolMode.BRUSH)
    drag(harness, (10, 10), (20, 20), (30, 25))

    assert len(harness.session.model) == 1
    stroke = harness.session.model[0]
    assert isinstance(stroke, Stroke)
    assert stroke.points == (PanelPoint(10, 10), PanelPoint(20, 20), PanelPoint(30, 25))
    assert stroke.width == Config.DEFAULT_BRUSH_WIDTH
    assert harness.session.brush_points == []


def test_brush_stroke_with_single_point_is_discarded(make_harness):
    harness = make_harness()
    harness.controller.switch_tool(ToolMode.BRUSH)
    drag(harness, (10, 10))
    assert len(harness.session.model) == 0
    assert harness.session.brush_points == []


def test_rectangle_commits_when_larger_than_two_pixels(make_harness):
    harness = make_harness()
    harness.controller.switch_tool(ToolMode.RECTANGLE)
    drag(harness, (40, 40), (10, 20))

    op = harness.session.model[0]
    assert isinstance(op, FilledRectangle)
    assert op.rect == Rect(10.0, 20.0, 30.0, 20.0)
    assert harness.session.rect_start is None and harness.session.rect_end is None


@pytest.mark.parametrize("end", [(12, 12), (13, 12), (12, 50)])
def test_degenerate_rectangle_is_discarded(make_harness, end):
    harness = make_harness()
    harness.controller.switch_tool(ToolMode.RECTANGLE)
    drag(harness, (10, 10), end)
    assert len(harness.session.model) == 0


def test_committed_color_is_a_snapshot(make_harness):
    harness = make_harness()
    harness.controller.switch_tool(ToolMode.RECTANGLE)
    drag(harness, (10, 10), (40, 40))
    harness.session.color.setRgb(0, 0, 255)
    assert harness.session.model[0].color == QColor(255, 0, 0)


# ----------------------------------------------------------------------
# Tool switching
# ----------------------------------------------------------------------

def test_switching_tool_clears_pending_brush_points(make_harness):
    harness = make_harness()
    controller = harness.controller
    controller.switch_tool(ToolMode.BRUSH)
    controller.mouse_press(PanelPoint(10, 10))
    controller.mouse_move(PanelPoint(400, 400))
    controller.key_press(Qt.Key.Key_1)

    assert harness.session.tool == ToolMode.CROP
    assert harness.session.brush_points == []

    drag(harness, (100, 100), (150, 130))
    assert (harness.results[0].image.width(), harness.results[0].image.height()) == (50, 30)
    assert len(harness.session.model) == 0


def test_switching_tool_keeps_committed_operations(make_harness):
    harness = make_harness()
    harness.controller.switch_tool(ToolMode.RECTANGLE)
    drag(harness, (10, 10), (40, 40))
    harness.controller.key_press(Qt.Key.Key_B)
    harness.controller.key_press(Qt.Key.Key_T)
    assert len(harness.session.model) == 1


@pytest.mark.parametrize("key,tool", [
    (Qt.Key.Key_1, ToolMode.CROP), (Qt.Key.Key_C, ToolMode.CROP),
    (Qt.Key.Key_2, ToolMode.BRUSH), (Qt.Key.Key_B, ToolMode.BRUSH),
    (Qt.Key.Key_3, ToolMode.TEXT), (Qt.Key.Key_T, ToolMode.TEXT),
    (Qt.Key.Key_4, ToolMode.RECTANGLE), (Qt.Key.Key_R, ToolMode.RECTANGLE),
])
def test_tool_shortcuts(make_harness, key, tool):
    harness = make_harness()
    harness.session.selection_start = PanelPoint(1, 1)
    harness.controller.key_press(key)
    assert harness.session.tool == tool
    assert harness.session.selection_start is None


# ----------------------------------------------------------------------
# Sizes
# ----------------------------------------------------------------------

def test_brush_width_is_clamped(make_harness):
    harness = make_harness()
    harness.controller.switch_tool(ToolMode.BRUSH)
    for _ in range(30):
        harness.controller.key_press(Qt.Key.Key_BracketRight)
    assert harness.session.brush_width == Config.MAX_BRUSH_WIDTH
    for _ in range(30):
        harness.controller.key_press(Qt.Key.Key_BracketLeft)
    assert harness.session.brush_width == Config.MIN_BRUSH_WIDTH


def test_font_size_is_clamped(make_harness):
    harness = make_harness()
    harness.controller.switch_tool(ToolMode.TEXT)
    harness.controller.key_press(Qt.Key.Key_BracketRight)
    assert harness.session.font_size == Config.DEFAULT_FONT_SIZE + 2
    for _ in range(30):
        harness.controller.key_press(Qt.Key.Key_BracketRight)
    assert harness.session.font_size == Config.MAX_FONT_SIZE
    for _ in range(30):
        harness.controller.key_press(Qt.Key.Key_BracketLeft)
    assert harness.session.font_size == Config.MIN_FONT_SIZE


def test_size_keys_do_nothing_in_crop_mode(make_harness):
    harness = make_harness()
    harness.controller.key_press(Qt.Key.Key_BracketRight)
    assert harness.session.brush_width == Config.DEFAULT_BRUSH_WIDTH
    assert harness.session.font_size == Config.DEFAULT_FONT_SIZE


# ----------------------------------------------------------------------
# Text
# ----------------------------------------------------------------------

def test_text_click_adds_annotation(make_harness):
    harness = make_harness(prompts=FakePrompts(texts=["hello"]))
    harness.controller.switch_tool(ToolMode.TEXT)
    harness.controller.mouse_press(PanelPoint(200, 200))
    harness.controller.mouse_release(PanelPoint(200, 200))

    assert len(harness.session.model) == 1
    op = harness.session.model[0]
    assert isinstance(op, TextAnnotation)
    assert (op.text, op.position) == ("hello", PanelPoint(200, 200))
    assert op.font_size == Config.DEFAULT_FONT_SIZE
    assert op.font_family == harness.session.font_family


@pytest.mark.parametrize("answer", [None, "", "   "])
def test_blank_or_cancelled_text_is_not_added(make_harness, answer):
    harness = make_harness(prompts=FakePrompts(texts=[answer]))
    harness.controller.switch_tool(ToolMode.TEXT)
    harness.controller.mouse_press(PanelPoint(200, 200))
    assert len(harness.session.model) == 0


def test_text_edit_click_with_empty_result_deletes(make_harness):
    prompts = FakePrompts(texts=["hello", ""])
    harness = make_harness(prompts=prompts)
    controller = harness.controller
    controller.switch_tool(ToolMode.TEXT)
    controller.mouse_press(PanelPoint(200, 200))
    assert len(harness.session.model) == 1

    controller.mouse_press(PanelPoint(200, 205))
    controller.mouse_move(PanelPoint(200, 202))
    controller.mouse_release(PanelPoint(200, 202))

    assert prompts.text_calls[-1] == ("Edit Text", "hello")
    assert len(harness.session.model) == 0


def test_text_edit_click_replaces_text_at_original_position(make_harness):
    harness = make_harness(prompts=FakePrompts(texts=["hello", "world"]))
    controller = harness.controller
    controller.switch_tool(ToolMode.TEXT)
    controller.mouse_press(PanelPoint(200, 200))

    controller.mouse_press(PanelPoint(210, 195))
    controller.mouse_move(PanelPoint(213, 198))
    controller.mouse_release(PanelPoint(213, 198))

    op = harness.session.model[0]
    assert (op.text, op.position) == ("world", PanelPoint(200, 200))


def test_text_edit_cancel_restores_position(make_harness):
    harness = make_harness(prompts=FakePrompts(texts=["hello", None]))
    controller = harness.controller
    controller.switch_tool(ToolMode.TEXT)
    controller.mouse_press(PanelPoint(200, 200))

    controller.mouse_press(PanelPoint(210, 195))
    controller.mouse_move(PanelPoint(214, 191))
    controller.mouse_release(PanelPoint(214, 191))

    op = harness.session.model[0]
    assert (op.text, op.position) == ("hello", PanelPoint(200, 200))


def test_text_drag_moves_annotation(make_harness):
    prompts = FakePrompts(texts=["hello"])
    harness = make_harness(prompts=prompts)
    controller = harness.controller
    controller.switch_tool(ToolMode.TEXT)
    controller.mouse_press(PanelPoint(200, 200))

    controller.mouse_press(PanelPoint(210, 195))
    controller.mouse_move(PanelPoint(250, 230))
    controller.mouse_release(PanelPoint(260, 240))

    op = harness.session.model[0]
    assert op.position == PanelPoint(240, 235)
    assert op.text == "hello"
    assert len(prompts.text_calls) == 1
    assert harness.session.selected_text_index is None


# ----------------------------------------------------------------------
# Keyboard navigation
# ----------------------------------------------------------------------

def test_arrow_keys_start_at_center_and_move(make_harness):
    harness = make_harness()
    controller = harness.controller
    controller.key_press(Qt.Key.Key_Right)
    assert harness.session.is_keyboard_selecting
    assert harness.session.cursor == PanelPoint(401, 300)
    controller.key_press(Qt.Key.Key_Up, shift=True)
    assert harness.session.cursor == PanelPoint(401, 290)


def test_arrow_keys_clamp_to_panel(make_harness):
    harness = make_harness()
    harness.session.cursor = PanelPoint(3, 598)
    harness.controller.key_press(Qt.Key.Key_Left, shift=True)
    harness.controller.key_press(Qt.Key.Key_Down, shift=True)
    assert harness.session.cursor == PanelPoint(0, 599)


def test_arrow_keys_ignored_outside_crop(make_harness):
    harness = make_harness()
    harness.controller.switch_tool(ToolMode.BRUSH)
    harness.controller.key_press(Qt.Key.Key_Right)
    assert not harness.session.is_keyboard_selecting
    assert harness.session.cursor is None


def test_keyboard_selection_and_enter_crops(make_harness):
    harness = make_harness()
    controller = harness.controller
    controller.key_press(Qt.Key.Key_Right)
    controller.key_press(Qt.Key.Key_Space)
    assert harness.session.selection_start == PanelPoint(401, 300)

    controller.key_press(Qt.Key.Key_Right, shift=True)
    controller.key_press(Qt.Key.Key_Down, shift=True)
    assert harness.session.selection_end == PanelPoint(411, 310)

    controller.key_press(Qt.Key.Key_Return)
    assert (harness.results[0].image.width(), harness.results[0].image.height()) == (10, 10)


def test_enter_needs_both_dimensions_above_threshold(make_harness):
    harness = make_harness()
    controller = harness.controller
    controller.key_press(Qt.Key.Key_Right)
    controller.key_press(Qt.Key.Key_Space)
    controller.key_press(Qt.Key.Key_Right, shift=True)
    controller.key_press(Qt.Key.Key_Enter)
    assert harness.results == []


def test_enter_on_hovered_window_in_keyboard_mode(make_harness, window_w1):
    harness = make_harness(windows=[window_w1])
    controller = harness.controller
    harness.session.cursor = PanelPoint(40, 40)
    controller.key_press(Qt.Key.Key_Left)
    assert harness.session.hovered_window == window_w1

    controller.key_press(Qt.Key.Key_Return)
    assert harness.results[0].window == window_w1


def test_space_without_keyboard_mode_does_nothing(make_harness):
    harness = make_harness()
    harness.session.cursor = PanelPoint(10, 10)
    harness.controller.key_press(Qt.Key.Key_Space)
    assert harness.session.selection_start is None


def test_mouse_press_leaves_keyboard_mode(make_harness):
    harness = make_harness()
    harness.controller.key_press(Qt.Key.Key_Right)
    harness.controller.mouse_press(PanelPoint(10, 10))
    assert not harness.session.is_keyboard_selecting


# ----------------------------------------------------------------------
# Escape
# ----------------------------------------------------------------------

def test_escape_cancels_pending_selection_first(make_harness):
    harness = make_harness()
    harness.controller.key_press(Qt.Key.Key_Right)
    harness.controller.key_press(Qt.Key.Key_Space)
    harness.controller.key_press(Qt.Key.Key_Escape)
    assert harness.session.selection_start is None
    assert harness.cancels == 0

    harness.controller.key_press(Qt.Key.Key_Escape)
    assert harness.cancels == 1
    assert harness.results == []


def test_escape_cancels_pending_stroke(make_harness):
    harness = make_harness()
    harness.controller.switch_tool(ToolMode.BRUSH)
    harness.controller.mouse_press(PanelPoint(1, 1))
    harness.controller.key_press(Qt.Key.Key_Escape)
    assert harness.session.brush_points == []
    assert harness.cancels == 0


# ----------------------------------------------------------------------
# Toolbar
# ----------------------------------------------------------------------

def test_toolbar_click_takes_priority(make_harness):
    harness = make_harness()
    harness.session.toolbar_bounds = {ToolbarButton.BRUSH: Rect(100.0, 50.0, 60.0, 28.0)}
    harness.controller.mouse_press(PanelPoint(110, 60))
    harness.controller.mouse_release(PanelPoint(110, 60))

    assert harness.session.tool == ToolMode.BRUSH
    assert harness.session.selection_start is None
    assert not harness.session.is_dragging
    assert harness.results == []


def test_toolbar_size_buttons(make_harness):
    harness = make_harness()
    harness.controller.switch_tool(ToolMode.BRUSH)
    harness.controller.handle_toolbar_click(ToolbarButton.SIZE_UP)
    assert harness.session.brush_width == Config.DEFAULT_BRUSH_WIDTH + 1
    harness.controller.handle_toolbar_click(ToolbarButton.SIZE_DOWN)
    harness.controller.handle_toolbar_click(ToolbarButton.SIZE_DOWN)
    assert harness.session.brush_width == Config.DEFAULT_BRUSH_WIDTH - 1


def test_toolbar_color_pick(make_harness):
    harness = make_harness(prompts=FakePrompts(color=QColor(0, 255, 0)))
    harness.controller.handle_toolbar_click(ToolbarButton.COLOR)
    assert harness.session.color == QColor(0, 255, 0)


def test_toolbar_color_cancel_keeps_color(make_harness):
    harness = make_harness(prompts=FakePrompts(color=None))
    harness.controller.handle_toolbar_click(ToolbarButton.COLOR)
    assert harness.session.color == QColor(255, 0, 0)


def test_toolbar_font_pick_only_in_text_mode(make_harness):
    prompts = FakePrompts(font="Monospace")
    harness = make_harness(prompts=prompts)
    harness.controller.handle_toolbar_click(ToolbarButton.FONT)
    assert prompts.font_calls == []

    harness.controller.switch_tool(ToolMode.TEXT)
    harness.controller.handle_toolbar_click(ToolbarButton.FONT)
    assert harness.session.font_family == "Monospace"
    assert prompts.font_calls[0][1] == "Sans Serif"


def test_toolbar_click_resets_in_progress_state(make_harness):
    harness = make_harness()
    harness.session.selection_start = PanelPoint(5, 5)
    harness.session.selection_end = PanelPoint(50, 50)
    harness.controller.handle_toolbar_click(ToolbarButton.COLOR)
    assert harness.session.selection_start is None
    assert harness.session.selection_end is None
