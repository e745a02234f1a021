# drowsiguard/core/session_engine.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence

from PySide6.QtCore import QObject, Signal

from drowsiguard.core.alerts import AlertDetector, AlertState
from drowsiguard.core.rolling_window import RollingWindow, WindowPoint
from drowsiguard.core.settings_store import MonitorSettings
from drowsiguard.core.stats import SessionStats, compute_stats
from drowsiguard.core.storage import SessionHistory, SessionSummary
from drowsiguard.sensor.feed_api import SampleFeed
from drowsiguard.sensor.sample import Sample
from drowsiguard.sensor.validator import Rejected, TimestampDecoder, validate

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"


@dataclass
class Session:
    start_time: datetime
    is_active: bool = True
    samples: Sequence[Sample] = ()
    alert_count: int = 0
    alert_flags: Sequence[bool] = ()   # evaluated state per sample

    def __post_init__(self):
        self.samples = list(self.samples)
        self.alert_flags = list(self.alert_flags)

    def close(self) -> None:
        self.is_active = False
        self.samples = tuple(self.samples)
        self.alert_flags = tuple(self.alert_flags)


@dataclass(frozen=True)
class DisplayUpdate:
    sample: Sample
    window: List[WindowPoint]
    alert_state: AlertState
    alert_count: int
    stats: SessionStats
    normal_blink_rate: int


@dataclass(frozen=True)
class SessionExport:
    start_time: datetime
    samples: Sequence[Sample]
    alert_count: int
    stats: Optional[SessionStats]
    alerts: Sequence[bool] = ()


class SessionEngine(QObject):
    """
    Owns the single monitoring session.

    - start(): idle -> active, resets everything and starts the feed
    - stop(): active -> idle, cancels the feed, records a summary if any
      sample was accepted
    - on_sample(raw): validate and ingest one message from the feed
    Display collaborators subscribe to the signals; the engine never renders.
    """

    session_started = Signal(object)     # start datetime
    session_stopped = Signal(object)     # SessionSummary | None
    sample_processed = Signal(object)    # DisplayUpdate
    sample_rejected = Signal(str)        # reason

    def __init__(
        self,
        settings: MonitorSettings,
        history: SessionHistory,
        feed: Optional[SampleFeed] = None,
        clock: Callable[[], datetime] = _utc_now,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self.settings = settings
        self.history = history
        self.clock = clock

        self.detector = AlertDetector()
        self.window = RollingWindow()
        self.decoder = TimestampDecoder()

        self._state = SessionState.IDLE
        self._session: Optional[Session] = None
        self._alert_state = AlertState.CLEAR
        self._stats: Optional[SessionStats] = None
        self._latest: Optional[Sample] = None

        self.feed: Optional[SampleFeed] = None
        if feed is not None:
            self.attach_feed(feed)

    # -----------------------
    # Feed wiring
    # -----------------------

    def attach_feed(self, feed: SampleFeed) -> None:
        if self.feed is not None:
            self.feed.stop()
            self.feed.sample_ready.disconnect(self.on_sample)
        self.feed = feed
        feed.sample_ready.connect(self.on_sample)
        if self.is_active:
            feed.start()

    # -----------------------
    # Read-only views
    # -----------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is SessionState.ACTIVE

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def alert_state(self) -> AlertState:
        return self._alert_state

    @property
    def stats(self) -> Optional[SessionStats]:
        return self._stats

    @property
    def latest_sample(self) -> Optional[Sample]:
        return self._latest

    # -----------------------
    # Lifecycle
    # -----------------------

    def start(self) -> bool:
        if self.is_active:
            logger.warning("start() ignored: a session is already active")
            return False

        now = self.clock()
        self._session = Session(start_time=now)
        self._state = SessionState.ACTIVE

        self.window.reset()
        self.decoder.reset()
        self._alert_state = AlertState.CLEAR
        self._stats = None
        self._latest = None

        if self.feed is not None:
            self.feed.start()

        logger.info("Session started at %s", now.isoformat())
        self.session_started.emit(now)
        return True

    def stop(self) -> Optional[SessionSummary]:
        # always cancel the feed, even on a repeated stop
        if self.feed is not None:
            self.feed.stop()

        if not self.is_active:
            logger.debug("stop() ignored: no active session")
            return None

        session = self._session
        self._state = SessionState.IDLE
        session.close()
        end = self.clock()

        summary = None
        if session.samples:
            summary = self._summarize(session, end)
            try:
                self.history.record(summary)
            except Exception:
                logger.exception("Failed to record session summary")

        logger.info(
            "Session ended. Total alerts: %d, data points: %d",
            session.alert_count,
            len(session.samples),
        )
        self.session_stopped.emit(summary)
        return summary

    def _summarize(self, session: Session, end: datetime) -> SessionSummary:
        stats = compute_stats(session.samples, session.start_time, end)
        return SessionSummary(
            start=session.start_time,
            end=end,
            duration_ms=stats.duration_ms,
            total_alerts=session.alert_count,
            avg_blink_rate=stats.avg_blink_rate,
            peak_drowsiness=stats.peak_drowsiness,
            sample_count=stats.sample_count,
        )

    # -----------------------
    # Ingest
    # -----------------------

    def on_sample(self, raw: Any) -> bool:
        result = validate(raw, decoder=self.decoder, received_at=self.clock())
        if isinstance(result, Rejected):
            logger.warning("Invalid sensor data: %s", result.reason)
            self.sample_rejected.emit(result.reason)
            return False
        return self.ingest(result)

    def ingest(self, sample: Sample) -> bool:
        if not self.is_active:
            logger.debug("Sample dropped: no active session")
            return False

        session = self._session
        session.samples.append(sample)
        self.window.push(sample)

        threshold = self.settings.drowsiness_threshold
        self._alert_state = self.detector.evaluate(sample, threshold)
        alerted = self._alert_state is AlertState.ACTIVE
        session.alert_flags.append(alerted)
        if alerted:
            session.alert_count += 1
            logger.info("Drowsiness alert at %.1f%%", sample.drowsiness_level)

        self._stats = compute_stats(session.samples, session.start_time, self.clock())
        self._latest = sample

        self.sample_processed.emit(
            DisplayUpdate(
                sample=sample,
                window=self.window.points(),
                alert_state=self._alert_state,
                alert_count=session.alert_count,
                stats=self._stats,
                normal_blink_rate=int(self.settings.normal_blink_rate),
            )
        )
        return True

    # -----------------------
    # Export
    # -----------------------

    def export_snapshot(self) -> Optional[SessionExport]:
        session = self._session
        if session is None:
            return None
        return SessionExport(
            start_time=session.start_time,
            samples=tuple(session.samples),
            alert_count=session.alert_count,
            stats=self._stats,
            alerts=tuple(session.alert_flags),
        )
