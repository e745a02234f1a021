# drowsiguard/sensor/sim_session.py
from __future__ import annotations

import random
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

AXES = ("pitch", "roll", "yaw")

BLINK_INTERVAL_MS = 3000     # ~20 blinks/min
BLINK_RATE_ON_BLINK = 20.0
TILT_SPIKE_PROBABILITY = 0.08
TILT_LIMIT_DEG = 30.0
BATTERY_FLOOR = 5.0


def _epoch_ms() -> int:
    return int(time.time() * 1000)


def _clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


@dataclass
class SimulatorState:
    last_blink_ms: int = 0
    blink_interval_ms: int = BLINK_INTERVAL_MS
    battery_level: float = 100.0
    tilt_cooldown_ticks: int = 0
    base_tilt: Dict[str, float] = field(default_factory=lambda: {a: 0.0 for a in AXES})


@dataclass
class SimulatedReading:
    sample: Dict[str, Any]   # wire-shaped, same as a device message
    blink: bool
    tilt_exceeded: bool


class SampleSimulator:
    """
    Simulates the wearable's output for one session:
    - blink cycle on its own timer
    - occasional head-tilt spikes on a single axis, held for 2-3 ticks
    - battery drain
    The alert flag is computed the same way the device does it.
    """

    def __init__(
        self,
        threshold: Callable[[], float],
        rng: Optional[random.Random] = None,
        clock: Callable[[], int] = _epoch_ms,
    ):
        self._threshold = threshold
        self._rng = rng or random.Random()
        self._clock = clock
        self.state = SimulatorState(last_blink_ms=self._clock())

    def reset(self) -> None:
        self.state = SimulatorState(last_blink_ms=self._clock())

    def step(self) -> SimulatedReading:
        rng = self._rng
        st = self.state
        now_ms = self._clock()

        # blink cycle
        blink = (now_ms - st.last_blink_ms) >= st.blink_interval_ms
        if blink:
            st.last_blink_ms = now_ms
            blink_rate = BLINK_RATE_ON_BLINK
            closure = rng.uniform(0.15, 0.35)
        else:
            blink_rate = rng.uniform(15.0, 21.0)
            closure = 0.0

        # tilt spike
        if st.tilt_cooldown_ticks == 0:
            if rng.random() < TILT_SPIKE_PROBABILITY:
                axis = rng.choice(AXES)
                sign = rng.choice((-1.0, 1.0))
                st.base_tilt = {a: 0.0 for a in AXES}
                st.base_tilt[axis] = sign * rng.uniform(30.0, 50.0)
                st.tilt_cooldown_ticks = rng.randint(2, 3)
        else:
            st.tilt_cooldown_ticks -= 1
            if st.tilt_cooldown_ticks == 0:
                st.base_tilt = {a: 0.0 for a in AXES}

        head = {a: st.base_tilt[a] + rng.uniform(-2.0, 2.0) for a in AXES}
        tilt_exceeded = max(abs(v) for v in head.values()) > TILT_LIMIT_DEG

        drowsiness = rng.uniform(35.0, 50.0)
        if blink:
            drowsiness += rng.uniform(20.0, 30.0)
        if tilt_exceeded:
            drowsiness += rng.uniform(20.0, 35.0)
        drowsiness = _clamp(drowsiness, 0.0, 100.0)

        st.battery_level = max(BATTERY_FLOOR, st.battery_level - rng.uniform(0.15, 0.25))

        alert = drowsiness >= float(self._threshold()) or tilt_exceeded

        sample = {
            "timestamp": now_ms,
            "eyeBlinkRate": blink_rate,
            "eyeClosureDuration": closure,
            "headMovement": head,
            "drowsinessLevel": drowsiness,
            "alertTriggered": bool(alert),
            "batteryLevel": st.battery_level,
        }
        return SimulatedReading(sample=sample, blink=blink, tilt_exceeded=tilt_exceeded)
