#!/usr/bin/env python3
"""
RegionShot - Region capture with annotations for KDE Plasma
Workflow: Start script → Pick region, window or annotate → Saved to the screenshots folder and clipboard
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from PyQt6.QtWidgets import QApplication, QMessageBox

from annotations import DrawingModel
from clipboard_manager import ClipboardManager
from compositor import CropResult
from config import AppSettings, load_settings
from display_info import DisplayQuery
from drawing_utils import DrawHelper
from overlay_session import OverlaySession
from persistence import ScreenshotStore, SaveFailed
from screenshot_overlay import ScreenshotOverlay
from screenshot_utils import CaptureFailed, MultiMonitorScreenshot
from window_list import KWinWindowEnumerator
from window_registry import WindowRegistry

logger = logging.getLogger("regionshot")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Capture and annotate a region of the active monitor")
    parser.add_argument("--config", type=Path, default=None, help="Path to the JSON settings file")
    parser.add_argument("--backend", default=None,
                        help="Screenshot backend: auto, spectacle, grim, imagemagick or qt")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def show_error(message: str):
    logger.error(message)
    QMessageBox.critical(None, "Error", message)


def save_result(result: CropResult, settings: AppSettings):
    store = ScreenshotStore(settings.screenshots_path)
    try:
        path = store.save(result.image, result.window)
    except (SaveFailed, OSError) as e:
        show_error(f"Failed to save screenshot: {e}")
        return

    if not ClipboardManager.copy_file_to_clipboard(path):
        logger.warning("Screenshot saved but not copied to the clipboard")


def main(argv: Optional[List[str]] = None):
    """Main function"""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    app = QApplication(sys.argv[:1])
    app.setApplicationName("RegionShot")
    app.setQuitOnLastWindowClosed(False)

    settings = load_settings(args.config)
    backend_name = args.backend or settings.capture_backend

    monitor = DisplayQuery().active_monitor()
    if monitor is None:
        show_error("Could not detect monitor geometry")
        sys.exit(1)

    # Window positions are read before the capture so they match the screenshot
    windows = KWinWindowEnumerator().list_windows()

    try:
        desktop = MultiMonitorScreenshot(backend_name).capture()
        screenshot = MultiMonitorScreenshot.crop_to_monitor(desktop, monitor.physical)
    except CaptureFailed as e:
        show_error(f"Failed to capture screenshot: {e}")
        sys.exit(1)

    session = OverlaySession(
        screenshot=screenshot,
        monitor_geometry=monitor.geometry,
        registry=WindowRegistry(windows, monitor.geometry),
        model=DrawingModel(DrawHelper.text_bounds),
        settings=settings,
    )

    overlay = ScreenshotOverlay(session)

    def on_crop_completed(result: CropResult):
        save_result(result, settings)
        app.quit()

    overlay.crop_completed.connect(on_crop_completed)
    overlay.cancelled.connect(app.quit)
    overlay.show_overlay()

    app.exec()
    # Cancel and completion both end normally
    sys.exit(0)


if __name__ == "__main__":
    main()
