import json
import logging
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from PySide6.QtCore import QSettings, QStandardPaths

logger = logging.getLogger(__name__)

HISTORY_CAPACITY = 10
HISTORY_KEY = "history/sessions"


def _app_data_dir() -> Path:
    base = QStandardPaths.writableLocation(QStandardPaths.AppDataLocation)
    p = Path(base)
    p.mkdir(parents=True, exist_ok=True)
    return p


def history_path() -> Path:
    return _app_data_dir() / "session_history.json"


def _parse_iso(ts: str) -> datetime:
    dt = datetime.fromisoformat(ts)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


@dataclass(frozen=True)
class SessionSummary:
    start: datetime
    end: datetime
    duration_ms: int
    total_alerts: int
    avg_blink_rate: float
    peak_drowsiness: float
    sample_count: int

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["start"] = self.start.isoformat()
        d["end"] = self.end.isoformat()
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SessionSummary":
        return cls(
            start=_parse_iso(str(d["start"])),
            end=_parse_iso(str(d["end"])),
            duration_ms=int(d["duration_ms"]),
            total_alerts=int(d["total_alerts"]),
            avg_blink_rate=float(d["avg_blink_rate"]),
            peak_drowsiness=float(d["peak_drowsiness"]),
            sample_count=int(d["sample_count"]),
        )


class HistoryBackend(ABC):
    """Durable slot holding the history list. Must never raise."""

    @abstractmethod
    def load(self) -> Any:
        """Return whatever was stored, or None if nothing/unreadable."""
        raise NotImplementedError

    @abstractmethod
    def save(self, items: List[Dict[str, Any]]) -> bool:
        raise NotImplementedError


class JsonFileBackend(HistoryBackend):
    def __init__(self, path: Optional[Path] = None):
        self.path = path or history_path()

    def load(self) -> Any:
        if not self.path.exists():
            return None
        try:
            with self.path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except Exception as e:
            logger.warning("Unreadable history file %s: %r", self.path, e)
            return None

    def save(self, items: List[Dict[str, Any]]) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(".tmp")
            with tmp.open("w", encoding="utf-8") as f:
                json.dump(items, f, ensure_ascii=False, indent=2)
            tmp.replace(self.path)
            return True
        except OSError as e:
            logger.warning("Could not write history file %s: %r", self.path, e)
            return False


class QSettingsBackend(HistoryBackend):
    """History stored as one JSON string under a single QSettings key."""

    def __init__(self, settings: Optional[QSettings] = None, key: str = HISTORY_KEY):
        self.settings = settings or QSettings("Drowsiguard", "Drowsiguard")
        self.key = key

    def load(self) -> Any:
        v = self.settings.value(self.key, None)
        if not v:
            return None
        try:
            return json.loads(str(v))
        except Exception as e:
            logger.warning("Unreadable history slot %r: %r", self.key, e)
            return None

    def save(self, items: List[Dict[str, Any]]) -> bool:
        self.settings.setValue(self.key, json.dumps(items, ensure_ascii=False))
        self.settings.sync()
        return self.settings.status() == QSettings.NoError


class MemoryBackend(HistoryBackend):
    def __init__(self, data: Any = None):
        self.data = data

    def load(self) -> Any:
        return self.data

    def save(self, items: List[Dict[str, Any]]) -> bool:
        self.data = list(items)
        return True


class SessionHistory:
    """Most-recent-first list of completed session summaries."""

    def __init__(self, backend: Optional[HistoryBackend] = None, capacity: int = HISTORY_CAPACITY):
        self.backend = backend or JsonFileBackend()
        self.capacity = int(capacity)

    def load(self) -> List[SessionSummary]:
        data = self.backend.load()
        if not isinstance(data, list):
            if data is not None:
                logger.warning("Session history is not a list, treating as empty")
            return []

        items: List[SessionSummary] = []
        for entry in data[: self.capacity]:
            try:
                items.append(SessionSummary.from_dict(entry))
            except (KeyError, TypeError, ValueError, OverflowError) as e:
                logger.warning("Skipping malformed history entry: %r", e)
        return items

    def record(self, summary: SessionSummary) -> bool:
        items = [summary] + self.load()
        del items[self.capacity:]

        ok = self.backend.save([s.to_dict() for s in items])
        if not ok:
            logger.warning("Session summary was not persisted")
        return ok
