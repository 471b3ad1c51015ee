"""Core data models and the live-entity registry."""

from arena.core.enums import (
    AgentLifecycle, AgentState, ChaosOutcome, Domain, EndReason, HazardKind, MatchState, PowerUpKind,
)
from arena.core.models import Agent, AgentStats, StatModifier, Vector2
from arena.core.effects import EffectPayload, Hazard, PowerUp
from arena.core.registry import EntityRegistry
from arena.core.snapshot import ArenaSnapshot

__all__ = [
    "Agent",
    "AgentLifecycle",
    "AgentState",
    "AgentStats",
    "ArenaSnapshot",
    "ChaosOutcome",
    "Domain",
    "EffectPayload",
    "EndReason",
    "EntityRegistry",
    "Hazard",
    "HazardKind",
    "MatchState",
    "PowerUp",
    "PowerUpKind",
    "StatModifier",
    "Vector2",
]
