import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PyQt6.QtGui import QColor, QImage
from PyQt6.QtWidgets import QApplication

from annotations import DrawingModel, TextAnnotation
from config import AppSettings
from coordinate_converter import Rect
from overlay_session import OverlaySession
from tool_controller import ToolController
from window_registry import WindowInfo, WindowRegistry


@pytest.fixture(scope="session", autouse=True)
def qapp():
    app = QApplication.instance() or QApplication([])
    yield app


def fake_text_bounds(annotation: TextAnnotation) -> Rect:
    """Fixed metrics: 10px per character, ascent = font size, descent = a third of it"""
    return Rect(
        float(annotation.position.x),
        float(annotation.position.y - annotation.font_size),
        10.0 * len(annotation.text),
        annotation.font_size + annotation.font_size / 3,
    )


class FakePrompts:
    def __init__(self, texts=None, color=None, font=None):
        self.texts = list(texts or [])
        self.color = color
        self.font = font
        self.text_calls = []
        self.font_calls = []

    def pick_color(self, current):
        return self.color

    def font_families(self):
        return ["Sans Serif", "Monospace", "DejaVu Serif"]

    def pick_font(self, families, current):
        self.font_calls.append((families, current))
        return self.font

    def prompt_text(self, title, label, initial=None):
        self.text_calls.append((title, initial))
        return self.texts.pop(0) if self.texts else None


def solid_image(width, height, color=QColor(0, 128, 0)):
    image = QImage(width, height, QImage.Format.Format_ARGB32)
    image.fill(color)
    return image


def build_session(windows=(), monitor=Rect(0.0, 0.0, 800.0, 600.0), source_size=(800, 600),
                  panel_size=(800, 600), settings=None):
    return OverlaySession(
        screenshot=solid_image(*source_size),
        monitor_geometry=monitor,
        registry=WindowRegistry(windows, monitor),
        model=DrawingModel(fake_text_bounds),
        settings=settings or AppSettings(),
        panel_size=panel_size,
    )


class Harness:
    """Session plus controller with recorded outcomes"""

    def __init__(self, session, prompts=None):
        self.session = session
        self.prompts = prompts or FakePrompts()
        self.results = []
        self.cancels = 0
        self.controller = ToolController(session, self.prompts, self.results.append, self._cancel)

    def _cancel(self):
        self.cancels += 1


@pytest.fixture
def make_harness():
    def factory(windows=(), prompts=None, **kwargs):
        return Harness(build_session(windows=windows, **kwargs), prompts)
    return factory


@pytest.fixture
def window_w1():
    return WindowInfo("w1", Rect(10.0, 10.0, 100.0, 100.0), "konsole", 4242)
