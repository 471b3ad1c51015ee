"""EngineManager: runs the ArenaLoop on a background thread.

The API reads an atomically swapped ArenaSnapshot.  Anything that mutates
the arena (ticks, gladiator selection, predictions, votes) goes through
one engine lock, so commands always land between two ticks.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import TYPE_CHECKING, Any

from arena.core.snapshot import ArenaSnapshot
from arena.engine.arena_loop import ArenaLoop
from arena.services.ledger import InMemoryLedger, TransactionResult
from arena.services.match_history import MatchHistory
from arena.utils.event_log import EventLog

if TYPE_CHECKING:
    from arena.config import ArenaConfig
    from arena.services.mvp_voting import MVPVoteResult, VoteResult
    from arena.services.predictions import PredictionResult

logger = logging.getLogger(__name__)


class EngineManager:
    """Manages the arena lifecycle on a background thread.

    Provides thread-safe access to:
      - latest snapshot (atomic reference swap)
      - event log (lock-guarded ring buffer)
      - control commands (start / pause / resume / step / stop / reset)
      - spectator commands (select / predict / vote / free tokens)

    The ledger and match history outlive ``reset()``; the arena does not.
    """

    def __init__(self, config: ArenaConfig) -> None:
        self._config = config
        self.config = config
        self._tick_rate: float = config.tick_ms / 1000.0

        # Services that survive resets
        self._ledger = InMemoryLedger()
        self._history = MatchHistory(config)

        self._loop: ArenaLoop | None = None
        self._engine_lock = threading.RLock()

        # Thread-safe shared state
        self._snapshot_lock = threading.Lock()
        self._latest_snapshot: ArenaSnapshot | None = None
        self._event_log = EventLog()

        # Control
        self._thread: threading.Thread | None = None
        self._running = threading.Event()
        self._paused = threading.Event()
        self._step_requested = threading.Event()
        self._stop_requested = threading.Event()

        self._build()

    # -- public properties --

    @property
    def running(self) -> bool:
        return self._running.is_set()

    @property
    def paused(self) -> bool:
        return self._paused.is_set()

    @property
    def tick_rate(self) -> float:
        return self._tick_rate

    @tick_rate.setter
    def tick_rate(self, value: float) -> None:
        self._tick_rate = max(0.01, min(value, 2.0))

    @property
    def event_log(self) -> EventLog:
        return self._event_log

    @property
    def ledger(self) -> InMemoryLedger:
        return self._ledger

    @property
    def history(self) -> MatchHistory:
        return self._history

    @property
    def loop(self) -> ArenaLoop:
        assert self._loop is not None
        return self._loop

    # -- snapshot access --

    def get_snapshot(self) -> ArenaSnapshot | None:
        with self._snapshot_lock:
            return self._latest_snapshot

    # -- lifecycle --

    def start(self) -> None:
        if self._running.is_set():
            return
        self._stop_requested.clear()
        self._paused.clear()
        self._running.set()
        self._thread = threading.Thread(target=self._run_loop, name="arena-loop", daemon=True)
        self._thread.start()
        logger.info("EngineManager started (tick_rate=%.3fs)", self._tick_rate)

    def pause(self) -> None:
        self._paused.set()
        logger.info("EngineManager paused at tick %d", self._current_tick())

    def resume(self) -> None:
        self._paused.clear()
        logger.info("EngineManager resumed at tick %d", self._current_tick())

    def step(self) -> None:
        """Execute exactly one tick on the engine thread (pauses first)."""
        if not self._paused.is_set():
            self.pause()
        self._step_requested.set()

    def stop(self) -> None:
        self._stop_requested.set()
        self._paused.clear()
        self._running.clear()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)
        self._thread = None
        logger.info("EngineManager stopped.")

    def reset(self) -> None:
        """Stop, rebuild the arena, and leave it stopped with a fresh snapshot.

        Open predictions and MVP votes are refunded; the ledger itself survives.
        """
        self.stop()
        with self._engine_lock:
            self.loop.refund_open_stakes()
        self._event_log.clear()
        self._build()
        logger.info("EngineManager reset.")

    def advance(self, ticks: int = 1) -> int:
        """Run *ticks* ticks synchronously on the calling thread.  Returns the new tick."""
        for _ in range(ticks):
            with self._engine_lock:
                self.loop.tick_once()
                self._publish_snapshot_and_events()
        return self._current_tick()

    # -- spectator commands --

    def gladiator(self, gladiator_id: int) -> dict[str, Any] | None:
        with self._engine_lock:
            agent = self.loop.registry.get_agent(gladiator_id)
            return self.loop.gladiator_view(agent) if agent is not None else None

    def select_gladiator(self, gladiator_id: int) -> dict[str, Any] | None:
        with self._engine_lock:
            view = self.loop.select_gladiator(gladiator_id)
            self._publish_snapshot_and_events()
        return view

    def predict(self, address: str, gladiator_id: int, amount: int) -> PredictionResult:
        with self._engine_lock:
            result = self.loop.predict(address, gladiator_id, amount)
            self._publish_snapshot_and_events()
        return result

    def vote(self, address: str, gladiator_id: int) -> VoteResult:
        with self._engine_lock:
            return self.loop.voting.vote(address, gladiator_id)

    def mvp_result(self, match_id: int) -> MVPVoteResult | None:
        with self._engine_lock:
            return self.loop.voting.result_for(match_id)

    def give_free_tokens(self, address: str) -> TransactionResult:
        return self._ledger.give_free_tokens(address, self._config.free_token_grant)

    # -- internals --

    def _build(self) -> None:
        with self._engine_lock:
            self._loop = ArenaLoop(self._config, ledger=self._ledger, sinks=[self._history])
            self._loop.start_match()
            self._publish_snapshot_and_events()

    def _run_loop(self) -> None:
        """Background thread main loop."""
        logger.info("Arena thread started.")
        while not self._stop_requested.is_set():
            if self._paused.is_set() and not self._step_requested.is_set():
                time.sleep(0.01)
                continue

            single_step = self._step_requested.is_set()
            if single_step:
                self._step_requested.clear()

            started = time.perf_counter()
            try:
                with self._engine_lock:
                    self.loop.tick_once()
                    self._publish_snapshot_and_events()
            except Exception:
                logger.exception("Tick %d failed; pausing the arena", self._current_tick())
                self._paused.set()
                continue

            if not single_step:
                time.sleep(max(0.0, self._tick_rate - (time.perf_counter() - started)))

        self._running.clear()
        logger.info("Arena thread exited.")

    def _publish_snapshot_and_events(self) -> None:
        """Swap the snapshot and move pending events into the feed.  Caller holds the engine lock."""
        snap = self.loop.create_snapshot()
        with self._snapshot_lock:
            self._latest_snapshot = snap
        events = self.loop.drain_events()
        if events:
            self._event_log.append_many(events)

    def _current_tick(self) -> int:
        return self._loop.tick if self._loop else 0
