from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

import numpy as np

from drowsiguard.sensor.sample import Sample


@dataclass(frozen=True)
class SessionStats:
    duration_ms: int
    avg_blink_rate: float
    peak_drowsiness: float
    avg_drowsiness: float
    sample_count: int


def compute_stats(
    samples: Sequence[Sample],
    start_time: datetime,
    now: datetime,
) -> Optional[SessionStats]:
    """Recompute the running statistics over the whole session. None if empty."""
    if not samples:
        return None

    blink = np.fromiter((s.eye_blink_rate for s in samples), dtype=np.float64, count=len(samples))
    drowsy = np.fromiter((s.drowsiness_level for s in samples), dtype=np.float64, count=len(samples))

    duration_ms = max(0, int((now - start_time).total_seconds() * 1000))

    return SessionStats(
        duration_ms=duration_ms,
        avg_blink_rate=float(np.mean(blink)),
        peak_drowsiness=float(np.max(drowsy)),
        avg_drowsiness=float(np.mean(drowsy)),
        sample_count=len(samples),
    )


def format_duration(ms: int) -> str:
    """HH:MM:SS"""
    seconds = max(0, int(ms) // 1000)
    h = seconds // 3600
    m = (seconds % 3600) // 60
    s = seconds % 60
    return f"{h:02d}:{m:02d}:{s:02d}"
