"""Core data models: Vector2, AgentStats, StatModifier, Agent."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from arena.core.enums import AgentLifecycle, AgentState


@dataclass(frozen=True, slots=True)
class Vector2:
    """Immutable 2D float vector (positions in world units, velocities in units/s)."""

    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: Vector2) -> Vector2:
        return Vector2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vector2) -> Vector2:
        return Vector2(self.x - other.x, self.y - other.y)

    def scaled(self, factor: float) -> Vector2:
        return Vector2(self.x * factor, self.y * factor)

    def length(self) -> float:
        return math.hypot(self.x, self.y)

    def distance(self, other: Vector2) -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def angle_to(self, other: Vector2) -> float:
        """Heading in radians from *self* toward *other*."""
        return math.atan2(other.y - self.y, other.x - self.x)

    @staticmethod
    def from_angle(angle: float, magnitude: float) -> Vector2:
        return Vector2(math.cos(angle) * magnitude, math.sin(angle) * magnitude)

    def __repr__(self) -> str:
        return f"({self.x:.1f}, {self.y:.1f})"


ZERO = Vector2(0.0, 0.0)


@dataclass(slots=True)
class AgentStats:
    """Combat attributes of a gladiator.

    The six base attributes are fixed at creation.  ``health`` is only
    changed through ``Agent.take_damage`` / ``Agent.heal``.
    """

    strength: float = 10.0
    speed: float = 150.0
    defense: float = 3.0
    intelligence: float = 2.0
    aggression: float = 0.6
    luck: float = 0.1
    health: int = 160
    max_health: int = 160

    @property
    def health_ratio(self) -> float:
        return self.health / self.max_health if self.max_health > 0 else 0.0

    def copy(self) -> AgentStats:
        return AgentStats(
            strength=self.strength, speed=self.speed, defense=self.defense,
            intelligence=self.intelligence, aggression=self.aggression,
            luck=self.luck, health=self.health, max_health=self.max_health,
        )


@dataclass(frozen=True, slots=True)
class StatModifier:
    """A multiplicative modifier on one base stat, owned by a timed effect.

    Base stats are never rewritten, so dropping the modifier is the whole
    reversal.
    """

    modifier_id: int
    stat: str                # "strength" | "speed" | "defense"
    multiplier: float
    source: str = ""


@dataclass(slots=True)
class Agent:
    """A gladiator: stats, health, FSM state and weak target references.

    ``target_id`` and ``powerup_target_id`` are plain ids resolved through
    the EntityRegistry on every use, never object handles.
    """

    id: int
    name: str
    pos: Vector2
    stats: AgentStats | None = field(default_factory=AgentStats)
    state: AgentState = AgentState.IDLE
    lifecycle: AgentLifecycle = AgentLifecycle.ACTIVE
    target_id: int | None = None
    powerup_target_id: int | None = None
    last_attack_ms: int | None = None       # None = never attacked
    attack_cooldown_ms: int = 1000
    velocity: Vector2 = ZERO
    modifiers: list[StatModifier] = field(default_factory=list)
    forced_velocity: Vector2 | None = None
    forced_until_ms: int = 0
    knocked_out_at_ms: int | None = None
    damage_dealt: int = 0
    knockouts: int = 0

    @property
    def active(self) -> bool:
        return self.lifecycle == AgentLifecycle.ACTIVE

    @property
    def health(self) -> int:
        return self.stats.health if self.stats else 0

    @property
    def max_health(self) -> int:
        return self.stats.max_health if self.stats else 0

    # -- effective stats (base x active modifiers) --

    def _modifier_mult(self, stat: str) -> float:
        m = 1.0
        for mod in self.modifiers:
            if mod.stat == stat:
                m *= mod.multiplier
        return m

    def effective_strength(self) -> float:
        return self.stats.strength * self._modifier_mult("strength")

    def effective_speed(self) -> float:
        return self.stats.speed * self._modifier_mult("speed")

    def effective_defense(self) -> float:
        return self.stats.defense * self._modifier_mult("defense")

    def add_modifier(self, modifier: StatModifier) -> None:
        self.modifiers.append(modifier)

    def remove_modifier(self, modifier_id: int) -> StatModifier | None:
        for i, mod in enumerate(self.modifiers):
            if mod.modifier_id == modifier_id:
                return self.modifiers.pop(i)
        return None

    # -- health --

    def take_damage(self, amount: int, now_ms: int = 0) -> bool:
        """Subtract *amount* health.  Returns True if this hit knocked the agent out.

        Knocked-out agents are immutable: further damage is ignored.
        """
        if not self.active or self.stats is None or amount <= 0:
            return False
        self.stats.health = max(0, self.stats.health - amount)
        if self.stats.health <= 0:
            self.lifecycle = AgentLifecycle.KNOCKED_OUT
            self.knocked_out_at_ms = now_ms
            self.velocity = ZERO
            self.target_id = None
            self.powerup_target_id = None
            self.modifiers.clear()
            self.forced_velocity = None
            return True
        return False

    def heal(self, amount: int) -> int:
        """Restore up to *amount* health, capped at max.  Returns the amount healed."""
        if not self.active or self.stats is None or amount <= 0:
            return 0
        before = self.stats.health
        self.stats.health = min(self.stats.max_health, before + amount)
        return self.stats.health - before

    # -- timing helpers --

    def cooldown_ready(self, now_ms: int) -> bool:
        return self.last_attack_ms is None or now_ms - self.last_attack_ms >= self.attack_cooldown_ms

    def force_velocity(self, velocity: Vector2, until_ms: int) -> None:
        """Override the FSM motion intent until *until_ms*."""
        self.forced_velocity = velocity
        self.forced_until_ms = until_ms

    def forced_at(self, now_ms: int) -> Vector2 | None:
        if self.forced_velocity is not None and now_ms < self.forced_until_ms:
            return self.forced_velocity
        return None

    def get_stats(self) -> AgentStats | None:
        """Read-only copy of the current stat block."""
        return self.stats.copy() if self.stats else None

    def copy(self) -> Agent:
        """Deep copy for snapshot generation."""
        return Agent(
            id=self.id,
            name=self.name,
            pos=self.pos,
            stats=self.stats.copy() if self.stats else None,
            state=self.state,
            lifecycle=self.lifecycle,
            target_id=self.target_id,
            powerup_target_id=self.powerup_target_id,
            last_attack_ms=self.last_attack_ms,
            attack_cooldown_ms=self.attack_cooldown_ms,
            velocity=self.velocity,
            modifiers=list(self.modifiers),
            forced_velocity=self.forced_velocity,
            forced_until_ms=self.forced_until_ms,
            knocked_out_at_ms=self.knocked_out_at_ms,
            damage_dealt=self.damage_dealt,
            knockouts=self.knockouts,
        )
