"""Publish/subscribe stream of recognition progress events."""

from __future__ import annotations

import logging
import threading
from typing import Callable, List

from .types import ProgressEvent

logger = logging.getLogger(__name__)

Subscriber = Callable[[ProgressEvent], None]


class ProgressFeed:
    """Fan progress events out to subscribers and keep the latest one.

    Subscribers are called synchronously in the publishing thread. A
    subscriber that raises is logged and dropped from that delivery only.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscribers: List[Subscriber] = []
        self._latest: ProgressEvent | None = None

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    @property
    def latest(self) -> ProgressEvent | None:
        with self._lock:
            return self._latest

    def publish(self, stage: str, progress: float, message: str = "") -> ProgressEvent:
        event: ProgressEvent = {
            "stage": stage,
            "progress": max(0.0, min(1.0, float(progress))),
            "message": message,
        }
        with self._lock:
            self._latest = event
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(event)
            except Exception:  # noqa: BLE001
                logger.exception("Progress subscriber %r failed", callback)
        return event


__all__ = ["ProgressFeed", "Subscriber"]
