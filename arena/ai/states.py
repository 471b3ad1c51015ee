"""Gladiator FSM: ordered priority rules plus one handler per state.

Architecture:
  - AIContext bundles everything a rule or handler reads (actor, registry,
    config, rng, clock).  Target references are resolved through the
    registry here, once per tick; a stale id resolves to None.
  - ``choose_state`` evaluates the priority rules top to bottom, first
    match wins.
  - Each state handler is a class implementing ``handle`` and returns an
    ``Intent``; handlers never touch physics or other agents directly.
  - Handlers are registered in STATE_HANDLERS by AgentState key.

Priority rules:
  1. health < 30% max            -> EVADE
  2. power-up in range, INT roll -> COLLECT_POWERUP
  3. enemy, aggression roll      -> ATTACK (within range) | SEEK
  4. SEEK, anti-stall roll       -> IDLE
  5. enemy, re-engage roll       -> SEEK
  6. otherwise                   -> IDLE
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from arena.core.enums import AgentState, Domain
from arena.core.models import Vector2, ZERO

if TYPE_CHECKING:
    from arena.config import ArenaConfig
    from arena.core.effects import PowerUp
    from arena.core.models import Agent
    from arena.core.registry import EntityRegistry
    from arena.systems.rng import ArenaRNG


@dataclass(frozen=True, slots=True)
class Intent:
    """What an agent wants this tick.

    ``velocity`` of None means "leave the current velocity alone".
    ``attack_target_id`` is set only when the attack cooldown has elapsed.
    """

    actor_id: int
    velocity: Vector2 | None = None
    attack_target_id: int | None = None
    reason: str = ""

    def __repr__(self) -> str:
        return f"Intent(agent={self.actor_id}, v={self.velocity}, attack={self.attack_target_id}, reason={self.reason!r})"


# =====================================================================
# AI Context
# =====================================================================

@dataclass(slots=True)
class AIContext:
    """All data a rule or handler might need."""

    actor: Agent
    registry: EntityRegistry
    config: ArenaConfig
    rng: ArenaRNG
    now_ms: int

    _target: Agent | None = None
    _power_up: PowerUp | None = None
    _resolved: bool = False

    def _resolve(self) -> None:
        if not self._resolved:
            self._target = self.registry.live_agent(self.actor.target_id)
            self._power_up = self.registry.live_power_up(self.actor.powerup_target_id)
            self._resolved = True

    @property
    def target(self) -> Agent | None:
        self._resolve()
        return self._target

    @property
    def power_up(self) -> PowerUp | None:
        self._resolve()
        return self._power_up

    def roll(self) -> float:
        return self.rng.random(Domain.AI_DECISION)

    def no_op(self, reason: str) -> Intent:
        return Intent(actor_id=self.actor.id, reason=reason)


# =====================================================================
# Priority rules
# =====================================================================

def choose_state(ctx: AIContext) -> AgentState:
    """Evaluate the priority rules in order; first match wins."""
    actor = ctx.actor
    stats = actor.stats
    cfg = ctx.config

    if stats.health < stats.max_health * cfg.evade_health_ratio:
        return AgentState.EVADE

    if ctx.power_up is not None and ctx.roll() < stats.intelligence / 3:
        return AgentState.COLLECT_POWERUP

    target = ctx.target
    if target is not None and ctx.roll() < stats.aggression:
        if actor.pos.distance(target.pos) < cfg.attack_range:
            return AgentState.ATTACK
        return AgentState.SEEK

    if actor.state == AgentState.SEEK and ctx.roll() < cfg.seek_idle_chance:
        return AgentState.IDLE

    if target is not None and ctx.roll() < cfg.reengage_chance:
        return AgentState.SEEK

    return AgentState.IDLE


# =====================================================================
# Shared helpers
# =====================================================================

def heading_toward(origin: Vector2, dest: Vector2, speed: float) -> Vector2:
    return Vector2.from_angle(origin.angle_to(dest), speed)


def in_world(point: Vector2, config: ArenaConfig) -> bool:
    return 0.0 <= point.x <= config.world_width and 0.0 <= point.y <= config.world_height


def crowd_distance(point: Vector2, actor: Agent, registry: EntityRegistry) -> float:
    """Distance from *point* to the closest other live agent."""
    best = math.inf
    for other in registry.live_agents():
        if other.id == actor.id:
            continue
        best = min(best, point.distance(other.pos))
    return best


# =====================================================================
# State handlers
# =====================================================================

class StateHandler(ABC):
    """Base class for per-state motion intent."""

    @abstractmethod
    def handle(self, ctx: AIContext) -> Intent:
        """Return the intent for this tick."""


class IdleHandler(StateHandler):
    """Occasionally wander off in a random direction at reduced speed."""

    def handle(self, ctx: AIContext) -> Intent:
        if ctx.roll() >= ctx.config.idle_turn_chance:
            return ctx.no_op("idle")
        angle = ctx.roll() * 2 * math.pi
        speed = ctx.actor.effective_speed() * ctx.config.idle_speed_factor
        return Intent(actor_id=ctx.actor.id, velocity=Vector2.from_angle(angle, speed), reason="idle wander")


class SeekHandler(StateHandler):
    """Close in on the hostile target at full speed."""

    def handle(self, ctx: AIContext) -> Intent:
        target = ctx.target
        if target is None:
            return ctx.no_op("seek: target gone")
        actor = ctx.actor
        return Intent(
            actor_id=actor.id,
            velocity=heading_toward(actor.pos, target.pos, actor.effective_speed()),
            reason=f"seek {target.id}",
        )


class AttackHandler(StateHandler):
    """Hold position and strike whenever the cooldown has elapsed."""

    def handle(self, ctx: AIContext) -> Intent:
        target = ctx.target
        if target is None:
            return ctx.no_op("attack: target gone")
        actor = ctx.actor
        if actor.cooldown_ready(ctx.now_ms):
            return Intent(actor_id=actor.id, velocity=ZERO, attack_target_id=target.id,
                          reason=f"strike {target.id}")
        return Intent(actor_id=actor.id, velocity=ZERO, reason="attack cooldown")


class EvadeHandler(StateHandler):
    """Run for the least crowded point away from the threat.

    Probes up to ``evade_probe_count`` points at ``speed * evade_probe_factor``
    around the agent, starting directly away from the threat and turning in
    45 degree steps.  Points outside the world are rejected; the remaining
    ones are scored by distance to the nearest other live agent.
    """

    def handle(self, ctx: AIContext) -> Intent:
        threat = ctx.target
        if threat is None:
            return ctx.no_op("evade: no threat")
        actor = ctx.actor
        cfg = ctx.config
        speed = actor.effective_speed()
        away = threat.pos.angle_to(actor.pos)
        probe = speed * cfg.evade_probe_factor

        best: Vector2 | None = None
        best_score = -math.inf
        for k in range(cfg.evade_probe_count):
            point = actor.pos + Vector2.from_angle(away + k * math.pi / 4, probe)
            if not in_world(point, cfg):
                continue
            score = crowd_distance(point, actor, ctx.registry)
            if score > best_score:
                best, best_score = point, score

        run_speed = speed * cfg.evade_speed_factor
        if best is None:
            return Intent(actor_id=actor.id, velocity=Vector2.from_angle(away, run_speed),
                          reason=f"evade {threat.id} (straight away)")
        return Intent(actor_id=actor.id, velocity=heading_toward(actor.pos, best, run_speed),
                      reason=f"evade {threat.id}")


class CollectPowerUpHandler(StateHandler):
    """Head for the power-up target at full speed."""

    def handle(self, ctx: AIContext) -> Intent:
        power_up = ctx.power_up
        if power_up is None:
            return ctx.no_op("collect: power-up gone")
        actor = ctx.actor
        return Intent(
            actor_id=actor.id,
            velocity=heading_toward(actor.pos, power_up.pos, actor.effective_speed()),
            reason=f"collect {power_up.kind.name.lower()} {power_up.id}",
        )


# =====================================================================
# Handler registry, one entry per AgentState
# =====================================================================

STATE_HANDLERS: dict[AgentState, StateHandler] = {
    AgentState.IDLE: IdleHandler(),
    AgentState.SEEK: SeekHandler(),
    AgentState.ATTACK: AttackHandler(),
    AgentState.EVADE: EvadeHandler(),
    AgentState.COLLECT_POWERUP: CollectPowerUpHandler(),
}
