"""Effect entities: power-ups and hazards.

Design:
  - Both are plain dataclasses tagged with a kind enum; behaviour is
    dispatched with ``match`` on the kind in the effect system, never by
    subclassing.  Adding a kind means one enum entry, one factory here and
    one ``case`` in ``arena.engine.effect_system``.
  - A power-up never outlives its own contact: the reversal of its payload
    is scheduled against the *agent* that picked it up.
  - Hazards persist until their lifespan or until they leave the world.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from arena.core.enums import Domain, HazardKind, PowerUpKind
from arena.core.models import Vector2, ZERO

if TYPE_CHECKING:
    from arena.config import ArenaConfig
    from arena.systems.rng import ArenaRNG


@dataclass(frozen=True, slots=True)
class EffectPayload:
    """What an effect does on contact."""

    duration_ms: int = 0
    multiplier: float = 1.0
    damage: int = 0


@dataclass(slots=True)
class PowerUp:
    """A single-use pick-up lying in the arena."""

    id: int
    kind: PowerUpKind
    pos: Vector2
    payload: EffectPayload
    created_at_ms: int
    lifespan_ms: int | None = None
    active: bool = True

    def expired(self, now_ms: int) -> bool:
        return self.lifespan_ms is not None and now_ms - self.created_at_ms > self.lifespan_ms

    def copy(self) -> PowerUp:
        return PowerUp(
            id=self.id, kind=self.kind, pos=self.pos, payload=self.payload,
            created_at_ms=self.created_at_ms, lifespan_ms=self.lifespan_ms,
            active=self.active,
        )


@dataclass(slots=True)
class Hazard:
    """A moving environmental hazard."""

    id: int
    kind: HazardKind
    pos: Vector2
    payload: EffectPayload
    created_at_ms: int
    velocity: Vector2 = ZERO
    half_extents: tuple[float, float] = (16.0, 16.0)
    gravity: float = 0.0
    bounce: bool = False
    lifespan_ms: int | None = None
    active: bool = True
    victims: list[int] = field(default_factory=list)

    def expired(self, now_ms: int) -> bool:
        return self.lifespan_ms is not None and now_ms - self.created_at_ms > self.lifespan_ms

    def out_of_bounds(self, width: float, height: float, padding: float) -> bool:
        return (
            self.pos.x < -padding or self.pos.x > width + padding
            or self.pos.y < -padding or self.pos.y > height + padding
        )

    def copy(self) -> Hazard:
        return Hazard(
            id=self.id, kind=self.kind, pos=self.pos, payload=self.payload,
            created_at_ms=self.created_at_ms, velocity=self.velocity,
            half_extents=self.half_extents, gravity=self.gravity,
            bounce=self.bounce, lifespan_ms=self.lifespan_ms,
            active=self.active, victims=list(self.victims),
        )


# ---------------------------------------------------------------------------
# Factory helpers
# ---------------------------------------------------------------------------

def power_up_payload(kind: PowerUpKind, config: ArenaConfig, rng: ArenaRNG) -> EffectPayload:
    """Build the payload for a freshly spawned power-up of *kind*."""
    match kind:
        case PowerUpKind.SHIELD:
            return EffectPayload(
                duration_ms=config.shield_duration_ms,
                multiplier=config.shield_multiplier,
            )
        case PowerUpKind.TRAP:
            return EffectPayload(
                duration_ms=config.trap_duration_ms,
                multiplier=config.trap_multiplier,
                damage=config.trap_damage,
            )
        case PowerUpKind.CHAOS:
            lo, hi = config.chaos_duration_ms
            mlo, mhi = config.chaos_multiplier
            return EffectPayload(
                duration_ms=int(rng.uniform(Domain.EFFECT, lo, hi)),
                multiplier=rng.uniform(Domain.EFFECT, mlo, mhi),
                damage=config.chaos_damage,
            )
    raise ValueError(f"unhandled power-up kind {kind!r}")


def make_power_up(
    pid: int,
    kind: PowerUpKind,
    pos: Vector2,
    now_ms: int,
    config: ArenaConfig,
    rng: ArenaRNG,
) -> PowerUp:
    return PowerUp(
        id=pid,
        kind=kind,
        pos=pos,
        payload=power_up_payload(kind, config, rng),
        created_at_ms=now_ms,
        lifespan_ms=config.powerup_lifespan_ms,
    )


def make_spike_wall(hid: int, now_ms: int, config: ArenaConfig, rng: ArenaRNG) -> Hazard:
    """A lethal wall entering from a random edge and sweeping across.

    Horizontal walls travel along x and are tall; vertical walls travel
    along y and are wide.  No lifespan.
    """
    w, h = config.world_width, config.world_height
    long_half, short_half = config.spike_wall_half_extents[1], config.spike_wall_half_extents[0]
    speed = config.spike_wall_speed
    if rng.random(Domain.HAZARD) < 0.5:
        from_start = rng.random(Domain.HAZARD) < 0.5
        x = 0.0 if from_start else float(w)
        y = rng.uniform(Domain.HAZARD, 100.0, h - 100.0)
        velocity = Vector2(speed if from_start else -speed, 0.0)
        extents = (float(short_half), float(long_half))
    else:
        from_start = rng.random(Domain.HAZARD) < 0.5
        x = rng.uniform(Domain.HAZARD, 100.0, w - 100.0)
        y = 0.0 if from_start else float(h)
        velocity = Vector2(0.0, speed if from_start else -speed)
        extents = (float(long_half), float(short_half))
    return Hazard(
        id=hid,
        kind=HazardKind.SPIKE_WALL,
        pos=Vector2(x, y),
        payload=EffectPayload(damage=config.spike_wall_damage),
        created_at_ms=now_ms,
        velocity=velocity,
        half_extents=extents,
        bounce=True,
    )


def make_fireball(hid: int, now_ms: int, config: ArenaConfig, rng: ArenaRNG) -> Hazard:
    """A fireball dropping from above the arena with slight sideways drift."""
    lo, hi = config.fireball_damage
    x = rng.uniform(Domain.HAZARD, 50.0, config.world_width - 50.0)
    vy = rng.uniform(Domain.HAZARD, *config.fireball_speed)
    vx = rng.uniform(Domain.HAZARD, -config.fireball_drift, config.fireball_drift)
    half = float(config.fireball_half_size)
    return Hazard(
        id=hid,
        kind=HazardKind.FIREBALL,
        pos=Vector2(x, -50.0),
        payload=EffectPayload(damage=rng.randint(Domain.HAZARD, lo, hi)),
        created_at_ms=now_ms,
        velocity=Vector2(vx, vy),
        half_extents=(half, half),
        gravity=config.fireball_gravity,
        lifespan_ms=config.fireball_lifespan_ms,
    )
