import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from PyQt6.QtGui import QImage

from window_registry import WindowInfo

logger = logging.getLogger(__name__)


class SaveFailed(Exception):
    """The cropped image could not be written"""


def screenshot_filename(timestamp: datetime, window: Optional[WindowInfo] = None) -> str:
    stamp = timestamp.strftime("%Y-%m-%d_%H-%M-%S")
    if window is not None and window.process_name:
        return f"{stamp}_{window.process_name}.png"
    return f"{stamp}.png"


class ScreenshotStore:
    """Writes finished crops into the screenshots folder"""

    def __init__(self, folder: Path):
        self.folder = Path(folder)

    def save(self, image: QImage, window: Optional[WindowInfo] = None,
             timestamp: Optional[datetime] = None) -> Path:
        self.folder.mkdir(parents=True, exist_ok=True)
        path = self.folder / screenshot_filename(timestamp or datetime.now(), window)

        if not image.save(str(path), "PNG"):
            raise SaveFailed(f"Could not write {path}")

        logger.info(f"Screenshot saved to: {path}")
        return path
