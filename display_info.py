import json
import logging
import subprocess
from dataclasses import dataclass
from typing import Any, Dict, Optional

from PyQt6.QtCore import QRect

from coordinate_converter import Rect

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MonitorInfo:
    # Logical geometry as the window manager reports it
    geometry: Rect
    # Same output in physical screenshot pixels
    physical: QRect
    scale: float


def monitor_from_kscreen(config: Dict[str, Any], output_name: str) -> Optional[MonitorInfo]:
    """Find an enabled output in `kscreen-doctor --json` output"""
    try:
        outputs = [output for output in config.get("outputs", [])
                   if output.get("name") == output_name and output.get("enabled")]
        if not outputs:
            return None
        output = outputs[0]

        scale = float(output.get("scale") or 1.0)
        pos_x, pos_y = int(output["pos"]["x"]), int(output["pos"]["y"])
        width, height = int(output["size"]["width"]), int(output["size"]["height"])
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        logger.error(f"Malformed kscreen-doctor output for {output_name}: {e!r}")
        return None

    if scale <= 0:
        logger.error(f"Invalid scale {scale} for {output_name}")
        return None

    return MonitorInfo(
        geometry=Rect(float(pos_x), float(pos_y), float(round(width / scale)), float(round(height / scale))),
        physical=QRect(round(pos_x * scale), round(pos_y * scale), width, height),
        scale=scale,
    )


class DisplayQuery:
    """Active monitor lookup through KWin and kscreen-doctor"""

    def active_output_name(self) -> Optional[str]:
        try:
            result = subprocess.run(
                ['qdbus6', 'org.kde.KWin', '/KWin', 'org.kde.KWin.activeOutputName'],
                capture_output=True,
                text=True,
                check=True,
            )
        except (OSError, subprocess.CalledProcessError) as e:
            logger.error(f"Could not query the active output: {e}")
            return None
        name = result.stdout.strip()
        return name or None

    def kscreen_config(self) -> Optional[Dict[str, Any]]:
        try:
            result = subprocess.run(
                ['kscreen-doctor', '--json'],
                capture_output=True,
                text=True,
                check=True,
            )
            return json.loads(result.stdout)
        except (OSError, subprocess.CalledProcessError) as e:
            logger.error(f"kscreen-doctor failed: {e}")
        except json.JSONDecodeError as e:
            logger.error(f"kscreen-doctor returned invalid JSON: {e}")
        return None

    def active_monitor(self) -> Optional[MonitorInfo]:
        output_name = self.active_output_name()
        if output_name is None:
            return None

        config = self.kscreen_config()
        if config is None:
            return None

        monitor = monitor_from_kscreen(config, output_name)
        if monitor is None:
            logger.error(f"Output {output_name} not found or disabled")
        else:
            logger.info(f"Active monitor {output_name}: {monitor.geometry} (scale {monitor.scale})")
        return monitor
