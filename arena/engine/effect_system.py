"""Effect system: power-up and hazard spawners plus effect application.

Spawning:
  - Each spawner fires once after its first delay and then re-arms itself
    with a fresh random interval drawn from its configured window.
  - ``stop()`` disables both spawners; a disabled spawner neither spawns
    nor re-arms.

Application:
  - Dispatch is an exhaustive ``match`` on the kind enum.
  - Timed stat changes are StatModifiers on the agent, reverted by a timer
    owned by the agent id, so a removed agent's reversal never runs and
    overlapping effects can never drift the base stat.
"""

from __future__ import annotations

import itertools
import logging
import math
from functools import partial
from typing import TYPE_CHECKING, Callable

from arena.core.effects import make_fireball, make_power_up, make_spike_wall
from arena.core.enums import ChaosOutcome, Domain, HazardKind, PowerUpKind
from arena.core.models import StatModifier, Vector2
from arena.systems.physics import AGENT, HAZARD, POWERUP

if TYPE_CHECKING:
    from arena.config import ArenaConfig
    from arena.core.effects import Hazard, PowerUp
    from arena.core.models import Agent
    from arena.core.registry import EntityRegistry
    from arena.systems.physics import PhysicsHost
    from arena.systems.rng import ArenaRNG
    from arena.systems.scheduler import Scheduler, Timer

logger = logging.getLogger(__name__)

EmitFn = Callable[..., None]

_POWER_UP_KINDS = (PowerUpKind.SHIELD, PowerUpKind.TRAP, PowerUpKind.CHAOS)
_HAZARD_KINDS = (HazardKind.SPIKE_WALL, HazardKind.FIREBALL)
_CHAOS_OUTCOMES = (ChaosOutcome.INVINCIBILITY, ChaosOutcome.CONFUSION, ChaosOutcome.HEALTH_SWING)


class EffectSystem:
    """Owns the spawners and applies power-up / hazard payloads."""

    __slots__ = (
        "_config", "_rng", "_registry", "_physics", "_scheduler", "_emit",
        "_enabled", "_power_up_timer", "_hazard_timer", "_modifier_ids", "_confusions",
    )

    def __init__(
        self,
        config: ArenaConfig,
        rng: ArenaRNG,
        registry: EntityRegistry,
        physics: PhysicsHost,
        scheduler: Scheduler,
        emit: EmitFn | None = None,
    ) -> None:
        self._config = config
        self._rng = rng
        self._registry = registry
        self._physics = physics
        self._scheduler = scheduler
        self._emit = emit
        self._enabled = False
        self._power_up_timer: Timer | None = None
        self._hazard_timer: Timer | None = None
        self._modifier_ids = itertools.count(1)
        self._confusions: dict[int, list[Timer]] = {}   # agent id -> live confusion tickers

    @property
    def enabled(self) -> bool:
        return self._enabled

    # -- spawner lifecycle --

    def start(self) -> None:
        """Arm both spawners for a freshly started match."""
        self._enabled = True
        self._confusions.clear()
        self._power_up_timer = self._scheduler.schedule(
            self._config.powerup_first_delay_ms, self._on_power_up_timer, label="powerup-spawn")
        self._hazard_timer = self._scheduler.schedule(
            self._config.hazard_first_delay_ms, self._on_hazard_timer, label="hazard-spawn")

    def stop(self) -> None:
        """Disable both spawners.  Effects already in play are left alone."""
        self._enabled = False
        for timer in (self._power_up_timer, self._hazard_timer):
            if timer is not None:
                timer.cancel()
        self._power_up_timer = None
        self._hazard_timer = None

    def _next_interval(self, window: tuple[int, int]) -> int:
        return int(self._rng.uniform(Domain.EFFECT, window[0], window[1]))

    def _on_power_up_timer(self) -> None:
        if not self._enabled:
            return
        self.spawn_power_up()
        self._power_up_timer = self._scheduler.schedule(
            self._next_interval(self._config.powerup_interval_ms),
            self._on_power_up_timer, label="powerup-spawn")

    def _on_hazard_timer(self) -> None:
        if not self._enabled:
            return
        self.spawn_hazard()
        self._hazard_timer = self._scheduler.schedule(
            self._next_interval(self._config.hazard_interval_ms),
            self._on_hazard_timer, label="hazard-spawn")

    # -- spawning --

    def spawn_power_up(self, kind: PowerUpKind | None = None, pos: Vector2 | None = None) -> PowerUp:
        cfg = self._config
        now = self._scheduler.now_ms
        if kind is None:
            kind = self._rng.choice(Domain.EFFECT, _POWER_UP_KINDS)
        if pos is None:
            margin = cfg.powerup_spawn_margin
            pos = Vector2(
                self._rng.uniform(Domain.EFFECT, margin, cfg.world_width - margin),
                self._rng.uniform(Domain.EFFECT, margin, cfg.world_height - margin),
            )
        power_up = make_power_up(self._registry.allocate_id(), kind, pos, now, cfg, self._rng)
        self._registry.add_power_up(power_up)
        half = float(cfg.powerup_half_size)
        self._physics.add_body(POWERUP, power_up.id, power_up.pos, (half, half))
        logger.debug("Spawned %s power-up #%d at %s", kind.name, power_up.id, power_up.pos)
        self._publish("spawn", f"{kind.name.title()} power-up appeared", (power_up.id,),
                      {"kind": kind.name.lower(), "x": pos.x, "y": pos.y})
        return power_up

    def spawn_hazard(self, kind: HazardKind | None = None) -> Hazard:
        cfg = self._config
        now = self._scheduler.now_ms
        if kind is None:
            kind = self._rng.choice(Domain.HAZARD, _HAZARD_KINDS)
        hid = self._registry.allocate_id()
        match kind:
            case HazardKind.SPIKE_WALL:
                hazard = make_spike_wall(hid, now, cfg, self._rng)
            case HazardKind.FIREBALL:
                hazard = make_fireball(hid, now, cfg, self._rng)
            case _:
                raise ValueError(f"unhandled hazard kind {kind!r}")
        self._registry.add_hazard(hazard)
        self._physics.add_body(
            HAZARD, hazard.id, hazard.pos, hazard.half_extents,
            velocity=hazard.velocity, gravity=hazard.gravity, bounce=hazard.bounce,
        )
        logger.info("Hazard %s #%d entered at %s", kind.name, hazard.id, hazard.pos)
        self._publish("spawn", f"{kind.name.replace('_', ' ').title()} incoming", (hazard.id,),
                      {"kind": kind.name.lower()})
        return hazard

    def destroy_power_up(self, power_up_id: int) -> None:
        self._registry.remove_power_up(power_up_id)
        self._physics.remove_body(POWERUP, power_up_id)

    def destroy_hazard(self, hazard_id: int) -> None:
        self._registry.remove_hazard(hazard_id)
        self._physics.remove_body(HAZARD, hazard_id)

    def expire(self, now_ms: int) -> int:
        """Remove power-ups past their lifespan and hazards that are done.  Returns the count."""
        cfg = self._config
        removed = 0
        for p in self._registry.live_power_ups():
            if p.expired(now_ms):
                self.destroy_power_up(p.id)
                removed += 1
        for h in self._registry.live_hazards():
            if h.expired(now_ms) or h.out_of_bounds(cfg.world_width, cfg.world_height, cfg.hazard_bounds_padding):
                self.destroy_hazard(h.id)
                removed += 1
        return removed

    # -- power-ups --

    def apply_power_up(self, agent: Agent, power_up: PowerUp) -> ChaosOutcome | PowerUpKind | None:
        """Apply *power_up* to *agent* and consume it.

        Returns what was applied (the Chaos outcome for Chaos pick-ups), or
        None when either party is no longer active.
        """
        if not agent.active or not power_up.active:
            return None

        payload = power_up.payload
        applied: ChaosOutcome | PowerUpKind = power_up.kind
        match power_up.kind:
            case PowerUpKind.SHIELD:
                self._add_modifier(agent, "defense", 1.0 + payload.multiplier, payload.duration_ms, "shield")
            case PowerUpKind.TRAP:
                self._add_modifier(agent, "speed", payload.multiplier, payload.duration_ms, "trap")
                agent.take_damage(payload.damage, self._scheduler.now_ms)
            case PowerUpKind.CHAOS:
                applied = self._apply_chaos(agent, power_up)
            case _:
                raise ValueError(f"unhandled power-up kind {power_up.kind!r}")

        self.destroy_power_up(power_up.id)
        logger.debug("Gladiator %d collected %s #%d -> %s", agent.id, power_up.kind.name, power_up.id, applied.name)
        return applied

    def _add_modifier(self, agent: Agent, stat: str, multiplier: float, duration_ms: int, source: str) -> StatModifier:
        mod = StatModifier(
            modifier_id=next(self._modifier_ids),
            stat=stat,
            multiplier=multiplier,
            source=source,
        )
        agent.add_modifier(mod)
        self._scheduler.schedule(
            duration_ms, partial(self._revert_modifier, agent.id, mod.modifier_id),
            owner_id=agent.id, label=f"{source}-revert",
        )
        return mod

    def _revert_modifier(self, agent_id: int, modifier_id: int) -> None:
        agent = self._registry.live_agent(agent_id)
        if agent is None:
            return
        mod = agent.remove_modifier(modifier_id)
        if mod is not None:
            logger.debug("Gladiator %d: %s on %s expired", agent_id, mod.source, mod.stat)

    def _apply_chaos(self, agent: Agent, power_up: PowerUp) -> ChaosOutcome:
        cfg = self._config
        payload = power_up.payload
        outcome = self._rng.choice(Domain.EFFECT, _CHAOS_OUTCOMES)
        match outcome:
            case ChaosOutcome.INVINCIBILITY:
                self._add_modifier(agent, "defense", cfg.chaos_defense_multiplier, payload.duration_ms, "chaos")
            case ChaosOutcome.CONFUSION:
                self._start_confusion(agent, payload.duration_ms, payload.multiplier)
            case ChaosOutcome.HEALTH_SWING:
                if self._rng.chance(Domain.EFFECT, 0.5):
                    agent.heal(cfg.chaos_heal)
                else:
                    agent.take_damage(payload.damage, self._scheduler.now_ms)
            case _:
                raise ValueError(f"unhandled chaos outcome {outcome!r}")
        return outcome

    def _start_confusion(self, agent: Agent, duration_ms: int, speed_factor: float) -> None:
        interval = self._config.confusion_interval_ms
        self._confuse(agent.id, speed_factor)
        ticker = self._scheduler.schedule(
            interval, partial(self._confuse, agent.id, speed_factor),
            owner_id=agent.id, repeat=True, label="chaos-confusion",
        )
        self._confusions.setdefault(agent.id, []).append(ticker)
        self._scheduler.schedule(
            duration_ms, partial(self._end_confusion, agent.id, ticker),
            owner_id=agent.id, label="chaos-confusion-end",
        )

    def _confuse(self, agent_id: int, speed_factor: float) -> None:
        agent = self._registry.live_agent(agent_id)
        if agent is None or not self._enabled:
            return
        angle = self._rng.random(Domain.EFFECT) * 2 * math.pi
        velocity = Vector2.from_angle(angle, agent.effective_speed() * speed_factor)
        now = self._scheduler.now_ms
        agent.force_velocity(velocity, now + self._config.confusion_interval_ms)
        agent.velocity = velocity
        self._physics.set_velocity(AGENT, agent.id, velocity)

    def _end_confusion(self, agent_id: int, ticker: Timer) -> None:
        ticker.cancel()
        live = [t for t in self._confusions.get(agent_id, ()) if t is not ticker and not t.cancelled]
        if live:
            # Another confusion is still steering this agent
            self._confusions[agent_id] = live
            return
        self._confusions.pop(agent_id, None)
        agent = self._registry.live_agent(agent_id)
        if agent is not None:
            agent.forced_velocity = None

    # -- hazards --

    def apply_hazard(self, agent: Agent, hazard: Hazard) -> int | None:
        """Damage *agent* with *hazard*.  Returns the damage dealt, or None if nothing happened."""
        if not agent.active or not hazard.active:
            return None

        damage = hazard.payload.damage
        match hazard.kind:
            case HazardKind.SPIKE_WALL:
                if agent.id in hazard.victims:
                    return None
                hazard.victims.append(agent.id)
                agent.take_damage(damage, self._scheduler.now_ms)
            case HazardKind.FIREBALL:
                agent.take_damage(damage, self._scheduler.now_ms)
                self.destroy_hazard(hazard.id)
            case _:
                raise ValueError(f"unhandled hazard kind {hazard.kind!r}")

        logger.debug("Gladiator %d hit by %s #%d for %d", agent.id, hazard.kind.name, hazard.id, damage)
        return damage

    def _publish(self, category: str, message: str, entity_ids: tuple[int, ...], metadata: dict) -> None:
        if self._emit is not None:
            self._emit(category, message, entity_ids, metadata)
