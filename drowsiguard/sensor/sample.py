# drowsiguard/sensor/sample.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True, slots=True)
class HeadMovement:
    pitch: float   # degrees
    roll: float    # degrees
    yaw: float     # degrees

    def max_abs(self) -> float:
        return max(abs(self.pitch), abs(self.roll), abs(self.yaw))


@dataclass(frozen=True, slots=True)
class Sample:
    """One telemetry reading from the wearable (or the simulator).

    - `eye_blink_rate` is blinks per minute.
    - `drowsiness_level` and `battery_level` are percentages 0..100.
    - `alert_triggered` is None when the producer did not send the flag.
    """

    timestamp: datetime
    eye_blink_rate: float
    eye_closure_duration: float
    head_movement: HeadMovement
    drowsiness_level: float
    alert_triggered: Optional[bool]
    battery_level: float
