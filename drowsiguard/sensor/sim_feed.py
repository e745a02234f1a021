# drowsiguard/sensor/sim_feed.py
from __future__ import annotations

import logging
import random
from typing import Callable, Optional

from PySide6.QtCore import QObject, QTimer

from drowsiguard.sensor.feed_api import FeedStatus, SampleFeed
from drowsiguard.sensor.sim_session import SampleSimulator

logger = logging.getLogger(__name__)

DEFAULT_TICK_MS = 2000


class SimulatedFeed(SampleFeed):
    """
    SampleFeed implementation backed by SampleSimulator on a QTimer.
    Downstream it looks exactly like a live device.
    """

    def __init__(
        self,
        threshold: Callable[[], float],
        tick_ms: int = DEFAULT_TICK_MS,
        rng: Optional[random.Random] = None,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self.simulator = SampleSimulator(threshold=threshold, rng=rng)

        self.timer = QTimer(self)
        self.timer.setInterval(int(tick_ms))
        self.timer.timeout.connect(self.tick)

    def start(self) -> None:
        # restart, never double-schedule
        if self.timer.isActive():
            self.timer.stop()
        self.simulator.reset()
        self.timer.start()
        self.connection_changed.emit(True)
        logger.info("Simulated feed started (%d ms tick)", self.timer.interval())

    def stop(self) -> None:
        if not self.timer.isActive():
            return
        self.timer.stop()
        self.connection_changed.emit(False)
        logger.info("Simulated feed stopped")

    def is_running(self) -> bool:
        return self.timer.isActive()

    def status(self) -> FeedStatus:
        if self.timer.isActive():
            return {"level": "ready", "message": "Simulator running", "ready": True}
        return {"level": "disconnected", "message": "Simulator idle", "ready": False}

    def tick(self) -> None:
        reading = self.simulator.step()
        self.sample_ready.emit(reading.sample)
