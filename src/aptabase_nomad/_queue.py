"""Mutex-guarded FIFO of pending events."""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Iterable

from aptabase_nomad._types import EventRecord


class EventQueue:
    """Thread-safe, unbounded event buffer backed by collections.deque.

    Unlike a plain deque, draining must be atomic with respect to enqueues:
    a drain takes every queued event in one step, so a lock guards all
    mutations.
    """

    def __init__(self) -> None:
        self._events: deque[EventRecord] = deque()
        self._lock = threading.Lock()

    def enqueue(self, event: EventRecord) -> None:
        """Append an event at the tail."""
        with self._lock:
            self._events.append(event)

    def drain_all(self) -> list[EventRecord]:
        """Remove and return every queued event in insertion order."""
        with self._lock:
            items = list(self._events)
            self._events.clear()
        return items

    def restore(self, events: Iterable[EventRecord]) -> None:
        """Put events back at the head, ahead of anything enqueued since."""
        with self._lock:
            self._events.extendleft(reversed(list(events)))

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
