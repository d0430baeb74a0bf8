import json
import logging
import os
import subprocess
import tempfile
import time
import uuid
from typing import List, Optional

from coordinate_converter import Rect
from window_registry import WindowInfo

logger = logging.getLogger(__name__)

# Shell parts of the desktop that should never be offered as windows
DESKTOP_COMPONENTS = {
    "plasmashell",
    "krunner",
    "kded5",
    "kded6",
    "kwin_wayland",
    "kwin_x11",
    "xdg-desktop-portal",
    "xdg-desktop-portal-kde",
}

OUTPUT_MARKER = "REGIONSHOT_OUTPUT_"

# KWin logs the stacking order (bottom -> top) to the journal
STACKING_SCRIPT = """
var clients = workspace.stackingOrder;
var windows = [];
for (var i = 0; i < clients.length; i++) {
    var client = clients[i];
    windows.push({
        "caption": client.caption,
        "internalId": client.internalId,
        "geometry": {
            "x": client.frameGeometry.x,
            "y": client.frameGeometry.y,
            "width": client.frameGeometry.width,
            "height": client.frameGeometry.height
        },
        "minimized": client.minimized,
        "pid": client.pid,
        "resourceClass": client.resourceClass,
        "resourceName": client.resourceName
    });
}
console.log("%(marker)s:" + JSON.stringify(windows));
"""

SCRIPT_SETTLE_SECONDS = 0.1


def parse_stacking_output(payload: str) -> List[WindowInfo]:
    """Turn the script's bottom-to-top JSON into visible windows, topmost first"""
    windows = []
    for entry in reversed(json.loads(payload)):
        if entry.get("minimized"):
            continue
        if entry.get("resourceName") in DESKTOP_COMPONENTS:
            continue
        geometry = entry["geometry"]
        windows.append(WindowInfo(
            id=str(entry["internalId"]),
            geometry=Rect(float(geometry["x"]), float(geometry["y"]),
                          float(geometry["width"]), float(geometry["height"])),
            process_name=entry.get("resourceName"),
            pid=entry.get("pid"),
        ))
    return windows


def find_marked_output(lines: List[str], marker: str) -> Optional[str]:
    """Latest journal line carrying our marker, without the marker"""
    prefix = f"{marker}:"
    for line in reversed(lines):
        if line.startswith(prefix):
            return line[len(prefix):]
    return None


class KWinWindowEnumerator:
    """Lists windows in stacking order through a throwaway KWin script"""

    def _qdbus(self, *args: str) -> str:
        result = subprocess.run(
            ['qdbus6', 'org.kde.KWin', *args],
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout.strip()

    def _journal_lines(self) -> List[str]:
        result = subprocess.run(
            ['journalctl', '--user', '-t', 'kwin_wayland', '-n', '50', '--no-pager', '-o', 'cat'],
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout.splitlines()

    def list_windows(self) -> List[WindowInfo]:
        """Windows topmost first; an empty list when KWin cannot be queried"""
        marker = f"{OUTPUT_MARKER}{uuid.uuid4().hex}"
        with tempfile.NamedTemporaryFile('w', suffix='.js', prefix='regionshot_', delete=False) as script_file:
            script_file.write(STACKING_SCRIPT % {"marker": marker})
            script_path = script_file.name

        script_id = None
        try:
            script_id = self._qdbus('/Scripting', 'org.kde.kwin.Scripting.loadScript', script_path)
            logger.debug(f"Loaded KWin script {script_id} from {script_path}")
            self._qdbus(f'/Scripting/Script{script_id}', 'org.kde.kwin.Script.run')
            time.sleep(SCRIPT_SETTLE_SECONDS)

            payload = find_marked_output(self._journal_lines(), marker)
            if payload is None:
                logger.warning("KWin script output not found in the journal")
                return []

            windows = parse_stacking_output(payload)
            logger.debug("Visible windows (top -> bottom):")
            for window in windows:
                logger.debug(f"- {window}")
            return windows

        except (OSError, subprocess.CalledProcessError) as e:
            logger.warning(f"Could not list windows: {e}")
            return []
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            logger.warning(f"Could not parse window list: {e}")
            return []
        finally:
            if script_id:
                try:
                    self._qdbus(f'/Scripting/Script{script_id}', 'org.kde.kwin.Script.stop')
                except (OSError, subprocess.CalledProcessError) as e:
                    logger.debug(f"Could not stop KWin script {script_id}: {e}")
            os.unlink(script_path)
