"""Match record and the finalized result reported to result sinks."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from arena.core.enums import EndReason, MatchState


@dataclass(frozen=True, slots=True)
class PredictionRecord:
    """One spectator prediction, with its correctness once settled."""

    address: str
    gladiator_id: int
    amount: int
    was_correct: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "gladiator_id": self.gladiator_id,
            "amount": self.amount,
            "was_correct": self.was_correct,
        }


@dataclass(frozen=True, slots=True)
class MatchResult:
    """Finalized outcome of one match.  ``winner_id`` None means a draw."""

    match_id: int
    winner_id: int | None
    winner_name: str | None
    duration_s: float
    timestamp: float
    end_reason: EndReason
    powerups_collected: int = 0
    hazards_triggered: int = 0
    predictions: tuple[PredictionRecord, ...] = ()

    @property
    def is_draw(self) -> bool:
        return self.winner_id is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "match_id": self.match_id,
            "winner_id": self.winner_id,
            "winner_name": self.winner_name,
            "duration_s": self.duration_s,
            "timestamp": self.timestamp,
            "end_reason": self.end_reason.name.lower(),
            "powerups_collected": self.powerups_collected,
            "hazards_triggered": self.hazards_triggered,
            "predictions": [p.to_dict() for p in self.predictions],
        }


@dataclass(slots=True)
class Match:
    """The one live match.  Superseded entirely by the next ``start_match``."""

    match_id: int
    state: MatchState = MatchState.SPAWNING
    started_at_ms: int = 0
    time_remaining_s: int = 60
    gladiator_ids: list[int] = field(default_factory=list)
    gladiator_names: dict[int, str] = field(default_factory=dict)   # fixed at spawn
    powerups_collected: int = 0
    hazards_triggered: int = 0
    ending: bool = False                  # idempotency guard for end_match
    ended_at_ms: int | None = None
    reset_at_ms: int | None = None
    winner_id: int | None = None
    end_reason: EndReason | None = None
    selected_gladiator_id: int | None = None

    @property
    def accepting_predictions(self) -> bool:
        return self.state in (MatchState.SPAWNING, MatchState.RUNNING)

    def elapsed_s(self, now_ms: int) -> float:
        end = self.ended_at_ms if self.ended_at_ms is not None else now_ms
        return max(0, end - self.started_at_ms) / 1000.0
