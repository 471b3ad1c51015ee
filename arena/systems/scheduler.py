"""Deferred callback scheduler driven by simulation time.

Every pending callback remembers:
  - the match epoch it was scheduled in (``None`` for service timers that
    outlive matches, e.g. MVP voting),
  - an optional owner entity id.

On firing, a timer runs only if it has not been cancelled, its epoch is
still current, and its owner (if any) is still live.  ``new_epoch()``
invalidates every match timer in one step, so the reset transition never
has to hunt down individual handles.
"""

from __future__ import annotations

import heapq
import logging
from dataclasses import dataclass, field
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass(order=True, slots=True)
class Timer:
    """Handle for one scheduled callback.  Ordered by (due_ms, seq)."""

    due_ms: int
    seq: int
    callback: Callable[[], None] = field(compare=False)
    owner_id: int | None = field(default=None, compare=False)
    epoch: int | None = field(default=None, compare=False)
    interval_ms: int | None = field(default=None, compare=False)
    label: str = field(default="", compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class Scheduler:
    """Single-threaded timer heap advanced once per tick by the arena loop."""

    __slots__ = ("_heap", "_seq", "_epoch", "_now_ms", "_liveness")

    def __init__(self, liveness: Callable[[int], bool] | None = None) -> None:
        self._heap: list[Timer] = []
        self._seq: int = 0
        self._epoch: int = 0
        self._now_ms: int = 0
        self._liveness = liveness

    @property
    def now_ms(self) -> int:
        return self._now_ms

    @property
    def epoch(self) -> int:
        return self._epoch

    def schedule(
        self,
        delay_ms: int,
        callback: Callable[[], None],
        owner_id: int | None = None,
        repeat: bool = False,
        service: bool = False,
        label: str = "",
    ) -> Timer:
        """Run *callback* after *delay_ms* (and every *delay_ms* if *repeat*)."""
        if repeat and delay_ms <= 0:
            raise ValueError("repeating timers need a positive interval")
        self._seq += 1
        timer = Timer(
            due_ms=self._now_ms + max(0, int(delay_ms)),
            seq=self._seq,
            callback=callback,
            owner_id=owner_id,
            epoch=None if service else self._epoch,
            interval_ms=int(delay_ms) if repeat else None,
            label=label,
        )
        heapq.heappush(self._heap, timer)
        return timer

    def advance(self, now_ms: int) -> int:
        """Fire every timer due at or before *now_ms*.  Returns how many ran."""
        self._now_ms = now_ms
        fired = 0
        while self._heap and self._heap[0].due_ms <= now_ms:
            timer = heapq.heappop(self._heap)
            if not self._should_fire(timer):
                continue
            if timer.interval_ms is not None:
                self._seq += 1
                timer.due_ms += timer.interval_ms
                timer.seq = self._seq
                heapq.heappush(self._heap, timer)
            timer.callback()
            fired += 1
        return fired

    def _should_fire(self, timer: Timer) -> bool:
        if timer.cancelled:
            return False
        if timer.epoch is not None and timer.epoch != self._epoch:
            logger.debug("Dropped stale timer %r (epoch %d != %d)", timer.label, timer.epoch, self._epoch)
            return False
        if timer.owner_id is not None and self._liveness is not None and not self._liveness(timer.owner_id):
            logger.debug("Dropped timer %r: owner %d no longer live", timer.label, timer.owner_id)
            return False
        return True

    def new_epoch(self) -> int:
        """Invalidate all match timers.  Service timers are kept.  Returns the new epoch."""
        self._epoch += 1
        self._heap = [t for t in self._heap if t.epoch is None and not t.cancelled]
        heapq.heapify(self._heap)
        return self._epoch

    def pending(self, include_service: bool = True) -> int:
        return sum(
            1 for t in self._heap
            if not t.cancelled and (include_service or t.epoch is not None)
        )
