from __future__ import annotations

from enum import Enum

from drowsiguard.sensor.sample import Sample


class AlertState(str, Enum):
    ACTIVE = "active"
    CLEAR = "clear"


class AlertDetector:
    """
    Per-sample alert predicate.

    The producer already decided (drowsiness over threshold or head tilt over
    the limit) and sends `alertTriggered`. Producers that omit the flag are
    judged on drowsiness alone against the current threshold.
    """

    def evaluate(self, sample: Sample, threshold: float) -> AlertState:
        if sample.alert_triggered is None:
            triggered = sample.drowsiness_level >= float(threshold)
        else:
            triggered = sample.alert_triggered
        return AlertState.ACTIVE if triggered else AlertState.CLEAR
