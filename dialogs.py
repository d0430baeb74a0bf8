import logging
import shutil
import subprocess
from typing import List, Optional

from PyQt6.QtWidgets import QColorDialog, QInputDialog, QLineEdit, QWidget
from PyQt6.QtGui import QColor, QFontDatabase

logger = logging.getLogger(__name__)


class DialogPrompts:
    """Blocking prompts shown on top of the overlay"""

    def __init__(self, parent: Optional[QWidget] = None, use_kdialog_for_color_picking: bool = False):
        self.parent = parent
        self.use_kdialog = use_kdialog_for_color_picking

    def pick_color(self, current: QColor) -> Optional[QColor]:
        if self.use_kdialog:
            if shutil.which('kdialog') is not None:
                return self._pick_color_kdialog(current)
            logger.warning("kdialog not found, falling back to the Qt color dialog")

        color = QColorDialog.getColor(current, self.parent, "Choose Color")
        return color if color.isValid() else None

    def _pick_color_kdialog(self, current: QColor) -> Optional[QColor]:
        try:
            result = subprocess.run(
                ['kdialog', '--getcolor', '--default', current.name()],
                capture_output=True,
                text=True,
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.error(f"kdialog failed: {e}")
            return None

        # Non-zero exit means the dialog was closed
        if result.returncode != 0:
            return None

        color = QColor(result.stdout.strip())
        if not color.isValid():
            logger.warning(f"kdialog returned an invalid color: {result.stdout!r}")
            return None
        return color

    def font_families(self) -> List[str]:
        return QFontDatabase.families()

    def pick_font(self, families: List[str], current: str) -> Optional[str]:
        current_index = families.index(current) if current in families else 0
        family, ok = QInputDialog.getItem(
            self.parent, "Choose Font", "Select font:", families, current_index, False
        )
        return family if ok and family else None

    def prompt_text(self, title: str, label: str, initial: Optional[str] = None) -> Optional[str]:
        text, ok = QInputDialog.getText(
            self.parent, title, label, QLineEdit.EchoMode.Normal, initial or ""
        )
        return text if ok else None
