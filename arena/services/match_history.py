"""Match history: in-memory result sink with per-address prediction stats."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from arena.config import ArenaConfig
    from arena.engine.match import MatchResult


class ResultSink(Protocol):
    """Anything that wants finalized match results."""

    def record(self, result: MatchResult) -> None: ...


@dataclass(slots=True)
class PlayerStats:
    address: str
    predictions: int = 0
    correct: int = 0
    wagered: int = 0
    winnings: int = 0

    @property
    def win_rate(self) -> float:
        return self.correct / self.predictions if self.predictions else 0.0


class MatchHistory:
    """Keeps the most recent results and running prediction stats."""

    def __init__(self, config: ArenaConfig, max_results: int = 500) -> None:
        self._config = config
        self._results: deque[MatchResult] = deque(maxlen=max_results)
        self._players: dict[str, PlayerStats] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)

    def record(self, result: MatchResult) -> None:
        payout = self._config.prediction_payout
        with self._lock:
            self._results.append(result)
            for p in result.predictions:
                stats = self._players.setdefault(p.address, PlayerStats(address=p.address))
                stats.predictions += 1
                stats.wagered += p.amount
                if p.was_correct:
                    stats.correct += 1
                    stats.winnings += p.amount * payout

    def recent(self, limit: int = 20) -> list[MatchResult]:
        with self._lock:
            items = list(self._results)
        return items[-limit:][::-1]

    def get(self, match_id: int) -> MatchResult | None:
        with self._lock:
            for r in self._results:
                if r.match_id == match_id:
                    return r
        return None

    def player(self, address: str) -> PlayerStats | None:
        with self._lock:
            return self._players.get(address)

    def leaderboard(self, limit: int = 10) -> list[PlayerStats]:
        """Best win rate first among addresses with enough predictions."""
        minimum = self._config.leaderboard_min_predictions
        with self._lock:
            eligible = [s for s in self._players.values() if s.predictions >= minimum]
        eligible.sort(key=lambda s: (-s.win_rate, -s.predictions, s.address))
        return eligible[:limit]
