"""Arena event feed shared between the engine thread and the API."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class SimEvent:
    """One arena event (knockout, pickup, match end, ...)."""

    tick: int
    category: str
    message: str
    entity_ids: tuple[int, ...] = ()
    metadata: dict[str, Any] | None = field(default=None, compare=False)


class EventLog:
    """Bounded feed of recent events.

    The engine thread appends one batch per tick; API readers take copies.
    Oldest events fall off once ``maxlen`` is reached.
    """

    __slots__ = ("_buffer", "_lock")

    def __init__(self, maxlen: int = 2000) -> None:
        self._buffer: deque[SimEvent] = deque(maxlen=maxlen)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffer)

    def append(self, event: SimEvent) -> None:
        with self._lock:
            self._buffer.append(event)

    def append_many(self, events: list[SimEvent]) -> None:
        with self._lock:
            self._buffer.extend(events)

    def since_tick(self, tick: int) -> list[SimEvent]:
        """Events with tick >= *tick*."""
        with self._lock:
            return [e for e in self._buffer if e.tick >= tick]

    def latest(self, count: int = 50) -> list[SimEvent]:
        with self._lock:
            items = list(self._buffer)
        return items[-count:]

    def clear(self) -> None:
        with self._lock:
            self._buffer.clear()
