"""Tests for the timer-driven simulated feed."""

from __future__ import annotations

import random

from PySide6.QtCore import QEventLoop, QTimer

from drowsiguard.core.session_engine import SessionEngine
from drowsiguard.core.settings_store import MonitorSettings
from drowsiguard.core.storage import MemoryBackend, SessionHistory
from drowsiguard.sensor.sim_feed import DEFAULT_TICK_MS, SimulatedFeed


def _feed(tick_ms: int = DEFAULT_TICK_MS) -> SimulatedFeed:
    return SimulatedFeed(threshold=lambda: 70, tick_ms=tick_ms, rng=random.Random(0))


class TestSimulatedFeed:
    def test_default_interval(self) -> None:
        assert _feed().timer.interval() == 2000

    def test_idle_until_started(self) -> None:
        feed = _feed()
        assert not feed.is_running()
        assert feed.status()["level"] == "disconnected"

    def test_start_stop(self) -> None:
        feed = _feed()
        feed.start()
        assert feed.is_running()
        assert feed.status()["ready"] is True
        feed.stop()
        assert not feed.is_running()

    def test_restart_does_not_double_schedule(self) -> None:
        feed = _feed(50)
        got = []
        feed.sample_ready.connect(got.append)
        feed.start()
        feed.start()

        loop = QEventLoop()
        QTimer.singleShot(180, loop.quit)
        loop.exec()
        feed.stop()

        # one 50 ms timer over ~180 ms, never two
        assert 1 <= len(got) <= 4

    def test_start_resets_simulator(self) -> None:
        feed = _feed()
        for _ in range(50):
            feed.tick()
        assert feed.simulator.state.battery_level < 100.0
        feed.start()
        feed.stop()
        assert feed.simulator.state.battery_level == 100.0

    def test_connection_signal(self) -> None:
        feed = _feed()
        seen = []
        feed.connection_changed.connect(seen.append)
        feed.start()
        feed.stop()
        feed.stop()
        assert seen == [True, False]


class TestSimulatedSession:
    def test_ticks_flow_through_engine(self) -> None:
        settings = MonitorSettings()
        feed = _feed()
        engine = SessionEngine(settings, SessionHistory(MemoryBackend()), feed=feed)

        engine.start()
        assert feed.is_running()
        for _ in range(30):
            feed.tick()
        summary = engine.stop()

        assert not feed.is_running()
        assert summary.sample_count == 30
        assert len(engine.window) == 20
        flagged = sum(1 for s in engine.session.samples if s.alert_triggered)
        assert summary.total_alerts == flagged

    def test_stop_twice_leaves_timer_stopped(self) -> None:
        feed = _feed()
        engine = SessionEngine(MonitorSettings(), SessionHistory(MemoryBackend()), feed=feed)
        engine.start()
        engine.stop()
        engine.stop()
        assert not feed.is_running()
        engine.start()
        assert feed.is_running()
        engine.stop()
