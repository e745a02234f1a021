from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import List

from drowsiguard.sensor.sample import Sample

WINDOW_SIZE = 20


@dataclass(frozen=True, slots=True)
class WindowPoint:
    timestamp: datetime
    drowsiness_level: float
    eye_blink_rate: float


class RollingWindow:
    """Last-N projections of accepted samples, for the live chart only."""

    def __init__(self, capacity: int = WINDOW_SIZE):
        self.capacity = int(capacity)
        self._points: deque[WindowPoint] = deque(maxlen=self.capacity)

    def push(self, sample: Sample) -> None:
        self._points.append(
            WindowPoint(
                timestamp=sample.timestamp,
                drowsiness_level=sample.drowsiness_level,
                eye_blink_rate=sample.eye_blink_rate,
            )
        )

    def reset(self) -> None:
        self._points.clear()

    def points(self) -> List[WindowPoint]:
        return list(self._points)

    def __len__(self) -> int:
        return len(self._points)
