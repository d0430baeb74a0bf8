import logging
import subprocess
from pathlib import Path

from PyQt6.QtWidgets import QApplication
from PyQt6.QtGui import QImage

logger = logging.getLogger(__name__)


class ClipboardManager:
    """Copies saved screenshots to the clipboard, preferring the Wayland/X11 tools"""

    TOOLS = [
        ['wl-copy', '--type', 'image/png'],
        ['xclip', '-selection', 'clipboard', '-t', 'image/png', '-i'],
    ]

    @staticmethod
    def copy_file_to_clipboard(path: Path) -> bool:
        """Copy a PNG file; failures are logged and reported, never raised"""
        try:
            data = Path(path).read_bytes()
        except OSError as e:
            logger.error(f"Could not read {path} for the clipboard: {e}")
            return False

        for tool in ClipboardManager.TOOLS:
            try:
                subprocess.run(tool, input=data, check=True)
                logger.info(f"{tool[0]} clipboard success")
                return True
            except (FileNotFoundError, subprocess.CalledProcessError) as e:
                logger.debug(f"{tool[0]} clipboard failed: {e}")
                continue

        return ClipboardManager._qt_clipboard_copy(data)

    @staticmethod
    def _qt_clipboard_copy(data: bytes) -> bool:
        image = QImage.fromData(data, "PNG")
        clipboard = QApplication.clipboard()
        if image.isNull() or clipboard is None:
            logger.error("Clipboard copy failed! Install 'wl-clipboard' or 'xclip'")
            return False
        clipboard.setImage(image)
        logger.info("Qt clipboard success")
        return True
