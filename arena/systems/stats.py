"""Stat generator: bounded random attribute sets for new gladiators."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from arena.core.enums import Domain
from arena.core.models import AgentStats

if TYPE_CHECKING:
    from arena.config import ArenaConfig
    from arena.systems.rng import ArenaRNG


def max_health_for(defense: float, config: ArenaConfig) -> int:
    """maxHealth = floor(base + defense * per_defense)"""
    return math.floor(config.base_health + defense * config.health_per_defense)


class StatGenerator:
    """Draws each attribute uniformly from its configured [min, max] range."""

    __slots__ = ("_config", "_rng")

    def __init__(self, config: ArenaConfig, rng: ArenaRNG) -> None:
        self._config = config
        self._rng = rng

    def generate(self) -> AgentStats:
        cfg = self._config
        roll = self._rng.uniform
        defense = roll(Domain.SPAWN, *cfg.defense_range)
        max_hp = max_health_for(defense, cfg)
        return AgentStats(
            strength=roll(Domain.SPAWN, *cfg.strength_range),
            speed=roll(Domain.SPAWN, *cfg.speed_range),
            defense=defense,
            intelligence=roll(Domain.SPAWN, *cfg.intelligence_range),
            aggression=roll(Domain.SPAWN, *cfg.aggression_range),
            luck=roll(Domain.SPAWN, *cfg.luck_range),
            health=max_hp,
            max_health=max_hp,
        )
