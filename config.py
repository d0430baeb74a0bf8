import json
import logging
from dataclasses import dataclass, field, asdict
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from PyQt6.QtGui import QColor

logger = logging.getLogger(__name__)


class Config:
    # Drag vs. click cutoffs; each tool has its own
    CROP_DRAG_THRESHOLD = 5
    RECT_MIN_SIZE = 2
    TEXT_CLICK_THRESHOLD = 5
    MIN_STROKE_POINTS = 2

    DEFAULT_BRUSH_WIDTH = 3
    MIN_BRUSH_WIDTH = 1
    MAX_BRUSH_WIDTH = 20
    BRUSH_WIDTH_STEP = 1

    DEFAULT_FONT_SIZE = 18
    MIN_FONT_SIZE = 12
    MAX_FONT_SIZE = 48
    FONT_SIZE_STEP = 2

    KEYBOARD_STEP_SMALL = 1
    KEYBOARD_STEP_LARGE = 10

    DEFAULT_COLOR = QColor(255, 0, 0)
    OVERLAY_COLOR = QColor(0, 0, 0, 100)
    HOVER_FILL_COLOR = QColor(100, 150, 255, 80)
    HOVER_BORDER_COLOR = QColor(100, 150, 255)
    SELECTION_BORDER_WIDTH = 2
    UI_FONT_FAMILY = "Sans Serif"

    TOOLBAR_Y = 50
    TOOLBAR_BUTTON_WIDTH = 60
    TOOLBAR_BUTTON_HEIGHT = 28
    TOOLBAR_SPACING = 10
    TOOLBAR_SIZE_CONTROL_WIDTH = 80
    TOOLBAR_SIZE_BUTTON_WIDTH = 24
    TOOLBAR_SIZE_VALUE_WIDTH = 28
    TOOLBAR_COLOR_BUTTON_WIDTH = 50
    TOOLBAR_FONT_BUTTON_WIDTH = 80
    FONT_LABEL_MAX_CHARS = 10


class ToolMode(Enum):
    CROP = 1
    BRUSH = 2
    TEXT = 3
    RECTANGLE = 4


class ToolbarButton(Enum):
    CROP = "Crop"
    BRUSH = "Brush"
    TEXT = "Text"
    RECT = "Rect"
    SIZE_DOWN = "SizeDown"
    SIZE_UP = "SizeUp"
    COLOR = "Color"
    FONT = "Font"


TOOL_BUTTONS = {
    ToolbarButton.CROP: ToolMode.CROP,
    ToolbarButton.BRUSH: ToolMode.BRUSH,
    ToolbarButton.TEXT: ToolMode.TEXT,
    ToolbarButton.RECT: ToolMode.RECTANGLE,
}


DEFAULT_CONFIG_PATH = Path.home() / ".config" / "regionshot" / "config.json"


@dataclass
class MagnifierSettings:
    zoom: int = 8
    offset: int = 20
    size: int = 120


@dataclass
class AppSettings:
    """User settings stored as JSON next to the other desktop configs"""
    screenshots_folder: str = str(Path.home() / "Pictures" / "RegionShot")
    use_kdialog_for_color_picking: bool = False
    default_font_family: str = "Sans Serif"
    display_process_info_when_hovering: bool = False
    magnifier: MagnifierSettings = field(default_factory=MagnifierSettings)
    magnifier_in_all_tools: bool = False
    capture_backend: str = "auto"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AppSettings':
        """Build settings from a parsed JSON object, ignoring unknown keys"""
        defaults = cls()
        magnifier_data = data.get("magnifier") or {}
        magnifier = MagnifierSettings(
            zoom=int(magnifier_data.get("zoom", defaults.magnifier.zoom)),
            offset=int(magnifier_data.get("offset", defaults.magnifier.offset)),
            size=int(magnifier_data.get("size", defaults.magnifier.size)),
        )
        if magnifier.zoom < 1:
            logger.warning(f"Invalid magnifier zoom {magnifier.zoom}, using 1")
            magnifier.zoom = 1

        return cls(
            screenshots_folder=str(data.get("screenshots_folder", defaults.screenshots_folder)),
            use_kdialog_for_color_picking=bool(
                data.get("use_kdialog_for_color_picking", defaults.use_kdialog_for_color_picking)),
            default_font_family=str(data.get("default_font_family", defaults.default_font_family)),
            display_process_info_when_hovering=bool(
                data.get("display_process_info_when_hovering", defaults.display_process_info_when_hovering)),
            magnifier=magnifier,
            magnifier_in_all_tools=bool(data.get("magnifier_in_all_tools", defaults.magnifier_in_all_tools)),
            capture_backend=str(data.get("capture_backend", defaults.capture_backend)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @property
    def screenshots_path(self) -> Path:
        return Path(self.screenshots_folder).expanduser()


def load_settings(config_file: Optional[Path] = None) -> AppSettings:
    """
    Load settings from a JSON file.

    A missing file is created with the defaults. An unreadable or malformed
    file is reported and the defaults are used instead.
    """
    config_file = Path(config_file) if config_file else DEFAULT_CONFIG_PATH

    if not config_file.exists():
        settings = AppSettings()
        save_settings(settings, config_file)
        return settings

    try:
        with open(config_file, 'r') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Error loading config {config_file}: {e}")
        return AppSettings()

    if not isinstance(data, dict):
        logger.error(f"Config {config_file} is not a JSON object, using defaults")
        return AppSettings()

    return AppSettings.from_dict(data)


def save_settings(settings: AppSettings, config_file: Path):
    try:
        config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(config_file, 'w') as f:
            json.dump(settings.to_dict(), f, indent=2)
        logger.info(f"Wrote default config to {config_file}")
    except OSError as e:
        logger.error(f"Error saving config {config_file}: {e}")
