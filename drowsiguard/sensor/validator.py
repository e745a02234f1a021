# drowsiguard/sensor/validator.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional, Union

import numpy as np

from drowsiguard.sensor.sample import HeadMovement, Sample

# Epoch-ms values below this are boot-relative offsets (ms since device boot).
EPOCH_MS_FLOOR = 946_684_800_000  # 2000-01-01T00:00:00Z


@dataclass(frozen=True)
class Rejected:
    reason: str


def _field(raw: Mapping[str, Any], name: str) -> Any:
    """Look up a wire field in camelCase first, then PascalCase."""
    if name in raw:
        return raw[name]
    return raw.get(name[:1].upper() + name[1:])


def _is_finite_number(v: Any) -> bool:
    if isinstance(v, bool) or not isinstance(v, (int, float, np.number)):
        return False
    try:
        f = float(v)
    except OverflowError:
        # ints beyond float range
        return False
    return bool(np.isfinite(f))


def _as_float(v: Any, default: float = 0.0) -> float:
    return float(v) if _is_finite_number(v) else default


def _now() -> datetime:
    return datetime.now(timezone.utc)


class TimestampDecoder:
    """
    Converts wire timestamps into absolute UTC instants.

    - epoch milliseconds (>= 2000-01-01) are used as-is
    - smaller integers are ms since device boot; the first one seen after
      reset() is pinned to the receive time
    - decoded instants never go backwards within a session
    """

    def __init__(self):
        self._boot_anchor: Optional[datetime] = None
        self._last: Optional[datetime] = None

    def reset(self) -> None:
        self._boot_anchor = None
        self._last = None

    def decode(self, value: Any, received_at: Optional[datetime] = None) -> datetime:
        received_at = received_at or _now()
        ts = self._convert(value, received_at)
        if self._last is not None and ts < self._last:
            ts = self._last
        self._last = ts
        return ts

    def _convert(self, value: Any, received_at: datetime) -> datetime:
        if isinstance(value, datetime):
            return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

        if isinstance(value, str):
            try:
                dt = datetime.fromisoformat(value)
            except ValueError:
                return received_at
            return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)

        if not _is_finite_number(value) or value < 0:
            return received_at

        ms = int(value)
        if ms >= EPOCH_MS_FLOOR:
            try:
                return datetime.fromtimestamp(ms / 1000.0, tz=timezone.utc)
            except (ValueError, OverflowError, OSError):
                return received_at

        if self._boot_anchor is None:
            self._boot_anchor = received_at - timedelta(milliseconds=ms)
        return self._boot_anchor + timedelta(milliseconds=ms)


def validate(
    raw: Any,
    decoder: Optional[TimestampDecoder] = None,
    received_at: Optional[datetime] = None,
) -> Union[Sample, Rejected]:
    """Turn a decoded wire message into a Sample, or say why it was dropped."""
    if raw is None:
        return Rejected("sample is missing")
    if not isinstance(raw, Mapping):
        return Rejected(f"sample is not a mapping: {type(raw).__name__}")

    head = _field(raw, "headMovement")
    if not isinstance(head, Mapping):
        return Rejected("headMovement is missing")

    blink = _field(raw, "eyeBlinkRate")
    if not _is_finite_number(blink):
        return Rejected(f"eyeBlinkRate is not a finite number: {blink!r}")

    drowsiness = _field(raw, "drowsinessLevel")
    if not _is_finite_number(drowsiness):
        return Rejected(f"drowsinessLevel is not a finite number: {drowsiness!r}")

    decoder = decoder or TimestampDecoder()
    timestamp = decoder.decode(_field(raw, "timestamp"), received_at)

    alert = _field(raw, "alertTriggered")

    return Sample(
        timestamp=timestamp,
        eye_blink_rate=float(blink),
        eye_closure_duration=_as_float(_field(raw, "eyeClosureDuration")),
        head_movement=HeadMovement(
            pitch=_as_float(_field(head, "pitch")),
            roll=_as_float(_field(head, "roll")),
            yaw=_as_float(_field(head, "yaw")),
        ),
        drowsiness_level=float(drowsiness),
        alert_triggered=bool(alert) if isinstance(alert, bool) else None,
        battery_level=_as_float(_field(raw, "batteryLevel")),
    )
