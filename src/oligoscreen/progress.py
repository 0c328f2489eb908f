"""Progress reporting for screening runs."""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Callable, Deque, List, Protocol

from .model import ProgressUpdate

LOGGER = logging.getLogger(__name__)

PROGRESS_EVERY = 10


class ProgressSink(Protocol):
    def publish(self, event: ProgressUpdate) -> None:
        ...


class ProgressBus:
    """Bounded channel of progress events; old events drop once full.

    Subscribers run on the publishing worker thread. A subscriber that raises
    is logged and skipped, it never aborts the run.
    """

    def __init__(self, capacity: int = 1024):
        self.capacity = capacity
        self._events: Deque[ProgressUpdate] = deque(maxlen=capacity)
        self._subscribers: List[Callable[[ProgressUpdate], None]] = []
        self._lock = threading.Lock()

    def publish(self, event: ProgressUpdate) -> None:
        with self._lock:
            self._events.append(event)
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(event)
            except Exception:
                LOGGER.exception("progress subscriber %r failed on %r", callback, event.message)

    def subscribe(self, callback: Callable[[ProgressUpdate], None]) -> None:
        with self._lock:
            self._subscribers.append(callback)

    def drain(self) -> List[ProgressUpdate]:
        with self._lock:
            events = list(self._events)
            self._events.clear()
        return events

    def __len__(self) -> int:  # pragma: no cover - trivial
        return len(self._events)


class CompletionCounter:
    """Thread-safe counter of completed positions."""

    def __init__(self) -> None:
        self._value = 0
        self._lock = threading.Lock()

    def increment(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


def should_emit(completed: int, total: int) -> bool:
    return completed % PROGRESS_EVERY == 0 or completed == total


__all__ = ["PROGRESS_EVERY", "CompletionCounter", "ProgressBus", "ProgressSink", "should_emit"]
