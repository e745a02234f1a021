import json
import logging
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional

from PySide6.QtCore import QStandardPaths

logger = logging.getLogger(__name__)


@dataclass
class MonitorSettings:
    # read live by the engine, so edits apply to the next sample only
    drowsiness_threshold: int = 70    # percent
    normal_blink_rate: int = 15       # BPM, display reference only

    sim_tick_ms: int = 2000


def _clamp_int(v, lo: int, hi: int, default: int) -> int:
    try:
        return max(lo, min(hi, int(v)))
    except (TypeError, ValueError):
        return default


class SettingsStore:
    def __init__(self, path: Optional[Path] = None):
        if path is None:
            base = Path(QStandardPaths.writableLocation(QStandardPaths.AppDataLocation))
            base.mkdir(parents=True, exist_ok=True)
            path = base / "settings.json"
        self.path = path

    def load(self) -> MonitorSettings:
        if not self.path.exists():
            return MonitorSettings()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable settings %s: %r", self.path, e)
            return MonitorSettings()
        if not isinstance(data, dict):
            return MonitorSettings()

        s = MonitorSettings()
        for k, v in data.items():
            if hasattr(s, k):
                setattr(s, k, v)

        s.drowsiness_threshold = _clamp_int(s.drowsiness_threshold, 0, 100, 70)
        s.normal_blink_rate = _clamp_int(s.normal_blink_rate, 0, 60, 15)
        s.sim_tick_ms = _clamp_int(s.sim_tick_ms, 100, 60_000, 2000)
        return s

    def save(self, settings: MonitorSettings) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(asdict(settings), indent=2), encoding="utf-8")
