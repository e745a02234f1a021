from __future__ import annotations

import logging
from abc import ABCMeta, abstractmethod
from typing import Any, Literal, TypedDict

from PySide6.QtCore import QObject, Signal

logger = logging.getLogger(__name__)

StatusLevel = Literal["disconnected", "connecting", "ready", "error"]


class FeedStatus(TypedDict):
    level: StatusLevel
    message: str
    ready: bool


class _FeedMeta(type(QObject), ABCMeta):
    """Lets a QObject subclass declare abstract methods."""


class SampleFeed(QObject, metaclass=_FeedMeta):
    """
    Source of raw sample messages.

    Emits `sample_ready(raw)` for every decoded message and
    `connection_changed(bool)` when the link to the device goes up or down.
    The session engine starts/stops the feed with the session.
    """

    sample_ready = Signal(object)
    connection_changed = Signal(bool)

    @abstractmethod
    def start(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def stop(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def is_running(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    def status(self) -> FeedStatus:
        raise NotImplementedError


class RelayFeed(SampleFeed):
    """
    Adapter for an external relay client (hub/websocket/serial bridge).

    The client calls push() with each decoded message and set_connected()
    on link changes. Messages pushed while the feed is stopped are dropped.
    """

    def __init__(self, parent: QObject | None = None):
        super().__init__(parent)
        self._running = False
        self._connected = False

    def start(self) -> None:
        self._running = True

    def stop(self) -> None:
        self._running = False

    def is_running(self) -> bool:
        return self._running

    def set_connected(self, connected: bool) -> None:
        connected = bool(connected)
        if connected == self._connected:
            return
        self._connected = connected
        logger.info("Device %s", "connected" if connected else "disconnected")
        self.connection_changed.emit(connected)

    def push(self, raw: Any) -> None:
        if not self._running:
            logger.debug("Dropping relay message, feed not running")
            return
        self.sample_ready.emit(raw)

    def status(self) -> FeedStatus:
        if self._connected:
            return {"level": "ready", "message": "Device connected", "ready": True}
        return {"level": "disconnected", "message": "Device disconnected", "ready": False}
