from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from hypothesis import settings
from PySide6.QtCore import QCoreApplication

from drowsiguard.sensor.sample import HeadMovement, Sample

# CI profile: more examples for thorough testing
settings.register_profile("ci", max_examples=200)
settings.register_profile("dev", max_examples=100)
settings.load_profile("dev")

T0 = datetime(2025, 3, 1, 9, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="session", autouse=True)
def qapp():
    """QTimer needs a core application instance."""
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    return app


class FakeClock:
    """Wall clock that only moves when told to."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def make_sample(blink: float = 17.0, drowsy: float = 40.0, alert=False, at: datetime = T0) -> Sample:
    return Sample(
        timestamp=at,
        eye_blink_rate=blink,
        eye_closure_duration=0.0,
        head_movement=HeadMovement(pitch=0.0, roll=0.0, yaw=0.0),
        drowsiness_level=drowsy,
        alert_triggered=alert,
        battery_level=90.0,
    )


def make_raw(blink=17.0, drowsy=40.0, alert=False, timestamp=1_740_819_600_000, **extra) -> dict:
    raw = {
        "timestamp": timestamp,
        "eyeBlinkRate": blink,
        "eyeClosureDuration": 0.1,
        "headMovement": {"pitch": 1.0, "roll": -2.0, "yaw": 3.0},
        "drowsinessLevel": drowsy,
        "alertTriggered": alert,
        "batteryLevel": 88.0,
    }
    raw.update(extra)
    return raw
