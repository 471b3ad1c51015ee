"""Enumerations used throughout the arena."""

from __future__ import annotations

from enum import IntEnum, unique


@unique
class AgentState(IntEnum):
    """Finite-state-machine states for gladiator AI."""

    IDLE = 0
    SEEK = 1
    ATTACK = 2
    EVADE = 3
    COLLECT_POWERUP = 4


@unique
class AgentLifecycle(IntEnum):
    """Lifetime of a gladiator inside one match.

    ACTIVE -> KNOCKED_OUT (health hit 0, still registered during the grace
    delay) -> REMOVED (dropped from the registry).  Never goes backwards.
    """

    ACTIVE = 0
    KNOCKED_OUT = 1
    REMOVED = 2


@unique
class MatchState(IntEnum):
    """Match lifecycle phases."""

    SPAWNING = 0
    RUNNING = 1
    ENDING = 2
    RESETTING = 3


@unique
class EndReason(IntEnum):
    """Why a match ended."""

    ELIMINATION = 0
    TIMEOUT = 1


@unique
class PowerUpKind(IntEnum):
    """Pick-up effects.  Single-use, destroyed on contact."""

    SHIELD = 0      # DEF x (1 + multiplier) for duration
    TRAP = 1        # SPD x multiplier for duration + fixed pickup damage
    CHAOS = 2       # one of ChaosOutcome, chosen on pickup


@unique
class ChaosOutcome(IntEnum):
    """Possible results of a Chaos pick-up."""

    INVINCIBILITY = 0   # temporary DEF x10
    CONFUSION = 1       # repeating random heading for duration
    HEALTH_SWING = 2    # 50/50 heal or damage


@unique
class HazardKind(IntEnum):
    """Environmental hazards."""

    SPIKE_WALL = 0      # bouncing lethal wall, leaves only by exiting bounds
    FIREBALL = 1        # falling, single-use, expires by lifespan


@unique
class Domain(IntEnum):
    """RNG domains for stream isolation."""

    COMBAT = 0
    AI_DECISION = 1
    SPAWN = 2
    EFFECT = 3
    HAZARD = 4
    ECONOMY = 5
