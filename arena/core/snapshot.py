"""Immutable view of the arena handed to presentation hosts."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Mapping

from arena.core.effects import Hazard, PowerUp
from arena.core.enums import MatchState
from arena.core.models import Agent

if TYPE_CHECKING:
    from arena.core.registry import EntityRegistry
    from arena.engine.match import Match, MatchResult


@dataclass(frozen=True, slots=True)
class ArenaSnapshot:
    """Read-only copy of one tick, safe to share with the API thread.

    Gladiators, power-ups and hazards are deep copies; knocked-out
    gladiators stay visible until their removal delay runs out.
    """

    tick: int
    now_ms: int
    match_id: int
    match_state: MatchState
    time_remaining_s: int
    reset_in_s: float | None
    selected_gladiator_id: int | None
    powerups_collected: int
    hazards_triggered: int
    gladiators: Mapping[int, Agent]
    power_ups: tuple[PowerUp, ...]
    hazards: tuple[Hazard, ...]
    last_result: MatchResult | None = None

    @classmethod
    def capture(
        cls,
        tick: int,
        now_ms: int,
        match: Match,
        registry: EntityRegistry,
        last_result: MatchResult | None = None,
    ) -> ArenaSnapshot:
        reset_in = None
        if match.reset_at_ms is not None:
            reset_in = max(0, match.reset_at_ms - now_ms) / 1000.0
        return cls(
            tick=tick,
            now_ms=now_ms,
            match_id=match.match_id,
            match_state=match.state,
            time_remaining_s=match.time_remaining_s,
            reset_in_s=reset_in,
            selected_gladiator_id=match.selected_gladiator_id,
            powerups_collected=match.powerups_collected,
            hazards_triggered=match.hazards_triggered,
            gladiators=MappingProxyType({aid: a.copy() for aid, a in registry.agents.items()}),
            power_ups=tuple(p.copy() for p in registry.live_power_ups()),
            hazards=tuple(h.copy() for h in registry.live_hazards()),
            last_result=last_result,
        )

    @property
    def alive_count(self) -> int:
        return sum(1 for a in self.gladiators.values() if a.active)
