import logging

from PyQt6.QtWidgets import QApplication, QWidget
from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtGui import QPainter, QCursor

from compositor import CropResult
from coordinate_converter import PanelPoint
from dialogs import DialogPrompts
from overlay_renderer import OverlayRenderer
from overlay_session import OverlaySession
from tool_controller import ToolController

logger = logging.getLogger(__name__)


class ScreenshotOverlay(QWidget):
    """Fullscreen overlay for region selection and annotation on one monitor"""

    crop_completed = pyqtSignal(object)
    cancelled = pyqtSignal()

    def __init__(self, session: OverlaySession, prompts=None):
        super().__init__()
        self.session = session
        self.prompts = prompts or DialogPrompts(self, session.settings.use_kdialog_for_color_picking)
        self.renderer = OverlayRenderer()
        self.controller = ToolController(session, self.prompts, self._finish, self._cancel)
        self._is_exiting = False

        self.setup_ui()

    def setup_ui(self):
        """Setup the overlay UI"""
        self.setWindowTitle("RegionShot - Select Region")
        # Not stay-on-top: the prompts have to be able to rise above the overlay
        self.setWindowFlags(Qt.WindowType.FramelessWindowHint)

        geometry = self.session.monitor_geometry
        self.setGeometry(int(geometry.x), int(geometry.y), int(geometry.width), int(geometry.height))
        self.setAttribute(Qt.WidgetAttribute.WA_DeleteOnClose)
        self.setAttribute(Qt.WidgetAttribute.WA_OpaquePaintEvent)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setMouseTracking(True)
        self.setCursor(QCursor(Qt.CursorShape.CrossCursor))

    def _sync_panel_size(self):
        if self.width() > 0 and self.height() > 0:
            self.session.panel_size = (self.width(), self.height())

    def resizeEvent(self, event):
        self._sync_panel_size()
        super().resizeEvent(event)

    def paintEvent(self, event):
        """Paint the overlay"""
        if self._is_exiting:
            return

        self._sync_panel_size()
        painter = QPainter(self)
        try:
            self.renderer.paint(painter, self.session)
        finally:
            painter.end()

    @staticmethod
    def _panel_point(event) -> PanelPoint:
        pos = event.position().toPoint()
        return PanelPoint(pos.x(), pos.y())

    def mousePressEvent(self, event):
        if self._is_exiting or event.button() != Qt.MouseButton.LeftButton:
            return
        self._sync_panel_size()
        self.controller.mouse_press(self._panel_point(event))
        self.update()

    def mouseMoveEvent(self, event):
        if self._is_exiting:
            return
        self._sync_panel_size()
        was_keyboard_selecting = self.session.is_keyboard_selecting
        self.controller.mouse_move(self._panel_point(event))
        if self.session.is_dragging or not was_keyboard_selecting:
            self.update()

    def mouseReleaseEvent(self, event):
        if self._is_exiting or event.button() != Qt.MouseButton.LeftButton:
            return
        self._sync_panel_size()
        self.controller.mouse_release(self._panel_point(event))
        self.update()

    def keyPressEvent(self, event):
        """Handle keyboard input"""
        if self._is_exiting:
            return
        self._sync_panel_size()

        try:
            key = Qt.Key(event.key())
        except ValueError:
            event.ignore()
            return

        shift = bool(event.modifiers() & Qt.KeyboardModifier.ShiftModifier)
        self.controller.key_press(key, shift)
        self.update()
        event.accept()

    def _finish(self, result: CropResult):
        logger.info(f"Crop complete: {result.image.width()}x{result.image.height()}")
        self._prepare_exit()
        self.crop_completed.emit(result)
        self.close()

    def _cancel(self):
        self._prepare_exit()
        self.cancelled.emit()
        self.close()

    def _prepare_exit(self):
        if self._is_exiting:
            return
        self._is_exiting = True
        self.hide()
        QApplication.processEvents()

    def show_overlay(self):
        self.show()
        self.raise_()
        self.activateWindow()
        self.setFocus()

    def closeEvent(self, event):
        """Closing the window from outside counts as a cancel"""
        if not self._is_exiting:
            self._prepare_exit()
            self.cancelled.emit()
        super().closeEvent(event)
