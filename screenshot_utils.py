import logging
import os
import shutil
import subprocess
import tempfile
from typing import List, Optional

from PyQt6.QtWidgets import QApplication
from PyQt6.QtGui import QImage, QPainter
from PyQt6.QtCore import QRect, Qt

logger = logging.getLogger(__name__)

CAPTURE_TIMEOUT = 10


class CaptureFailed(Exception):
    """No screenshot could be taken"""


class ScreenshotBackend:
    """Base class for screenshot backends"""

    name = "Base"

    def is_available(self) -> bool:
        """Check if this backend is available"""
        return False

    def capture_desktop(self) -> Optional[QImage]:
        """Capture the whole virtual desktop"""
        raise NotImplementedError


class CommandScreenshotBackend(ScreenshotBackend):
    """Backend driving an external tool that writes a PNG to a path"""

    executable = ""

    def is_available(self) -> bool:
        return shutil.which(self.executable) is not None

    def command(self, output_path: str) -> List[str]:
        raise NotImplementedError

    def capture_desktop(self) -> Optional[QImage]:
        with tempfile.NamedTemporaryFile(suffix='.png', delete=False) as temp_file:
            temp_path = temp_file.name

        try:
            result = subprocess.run(
                self.command(temp_path),
                capture_output=True,
                text=True,
                timeout=CAPTURE_TIMEOUT,
            )

            if result.returncode == 0 and os.path.exists(temp_path):
                image = QImage(temp_path)
                return image if not image.isNull() else None

            logger.error(f"{self.name} failed with exit code {result.returncode}: {result.stderr.strip()}")
            return None

        except (subprocess.SubprocessError, OSError) as e:
            logger.error(f"{self.name} capture failed: {e}")
            return None
        finally:
            try:
                os.unlink(temp_path)
            except OSError:
                pass


class SpectacleScreenshotBackend(CommandScreenshotBackend):
    """KDE Spectacle backend"""

    name = "Spectacle (KDE)"
    executable = "spectacle"

    def command(self, output_path: str) -> List[str]:
        return ['spectacle', '--fullscreen', '--background', '--nonotify', '--output', output_path]


class GrimScreenshotBackend(CommandScreenshotBackend):
    """Grim screenshot backend for Wayland (sway/wlroots)"""

    name = "Grim (Wayland)"
    executable = "grim"

    def command(self, output_path: str) -> List[str]:
        return ['grim', output_path]


class ImageMagickScreenshotBackend(CommandScreenshotBackend):
    """ImageMagick import backend (X11 fallback)"""

    name = "ImageMagick"
    executable = "import"

    def command(self, output_path: str) -> List[str]:
        return ['import', '-window', 'root', output_path]


class QtScreenshotBackend(ScreenshotBackend):
    """Qt native grab, only works under X11"""

    name = "Qt Native"

    def is_available(self) -> bool:
        session_type = os.environ.get('XDG_SESSION_TYPE', '').lower()
        if session_type == 'wayland' or os.environ.get('WAYLAND_DISPLAY'):
            return False
        return bool(QApplication.screens())

    def capture_desktop(self) -> Optional[QImage]:
        screens = QApplication.screens()
        virtual_rect = QRect()
        for screen in screens:
            virtual_rect = virtual_rect.united(screen.geometry())
        if virtual_rect.isEmpty():
            return None

        image = QImage(virtual_rect.size(), QImage.Format.Format_ARGB32)
        image.fill(Qt.GlobalColor.black)
        painter = QPainter(image)
        try:
            for screen in screens:
                grabbed = screen.grabWindow(0)
                if grabbed.isNull():
                    continue
                offset = screen.geometry().topLeft() - virtual_rect.topLeft()
                painter.drawPixmap(offset, grabbed)
        finally:
            painter.end()
        return image


BACKENDS = {
    "spectacle": SpectacleScreenshotBackend,
    "grim": GrimScreenshotBackend,
    "imagemagick": ImageMagickScreenshotBackend,
    "qt": QtScreenshotBackend,
}


class MultiMonitorScreenshot:
    """Picks a screenshot backend and crops its output to the active monitor"""

    def __init__(self, backend_name: str = "auto"):
        self.backend = self._select_backend(backend_name)

    @staticmethod
    def _select_backend(backend_name: str) -> Optional[ScreenshotBackend]:
        if backend_name != "auto":
            backend_class = BACKENDS.get(backend_name.lower())
            if backend_class is None:
                raise CaptureFailed(f"Unknown screenshot backend '{backend_name}', "
                                    f"choose one of: {', '.join(BACKENDS)}")
            backend = backend_class()
            return backend if backend.is_available() else None

        for backend_class in BACKENDS.values():
            backend = backend_class()
            if backend.is_available():
                return backend
        return None

    def capture(self) -> QImage:
        if self.backend is None:
            raise CaptureFailed("No screenshot backend available. "
                                "Install one of: spectacle, grim or imagemagick")

        logger.info(f"Using screenshot backend: {self.backend.name}")
        image = self.backend.capture_desktop()
        if image is None or image.isNull():
            raise CaptureFailed(f"Screenshot capture failed with {self.backend.name}")

        logger.debug(f"Full screenshot size: {image.width()}x{image.height()}")
        return image

    @staticmethod
    def crop_to_monitor(image: QImage, physical_bounds: QRect) -> QImage:
        """Cut the active monitor out of a full desktop capture"""
        clipped = physical_bounds.intersected(image.rect())
        if clipped.isEmpty():
            raise CaptureFailed(f"Monitor bounds {physical_bounds} lie outside the "
                                f"{image.width()}x{image.height()} screenshot")
        return image.copy(clipped)
