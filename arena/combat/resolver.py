"""Combat resolution: dodge, critical and damage between two gladiators.

Damage models follow a strategy pattern.  To add a model:
  1. Subclass DamageModel.
  2. Register it in DAMAGE_MODELS under the name used by
     ``ArenaConfig.damage_model``.

The canonical model is "flat": a floor of ``min_damage`` with half the
defender's defense subtracted from strength before the crit multiplier.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from arena.core.enums import Domain

if TYPE_CHECKING:
    from arena.config import ArenaConfig
    from arena.core.models import Agent
    from arena.systems.rng import ArenaRNG

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AttackOutcome:
    """Result of one attack roll."""

    dodged: bool
    critical: bool
    damage: int
    knocked_out: bool = False


# ---------------------------------------------------------------------------
# Damage models
# ---------------------------------------------------------------------------

class DamageModel(ABC):
    """Turns attacker strength and defender defense into a hit amount."""

    @abstractmethod
    def damage(self, strength: float, defense: float, crit_mult: float) -> int:
        """Return the damage of one non-dodged hit."""


class FlatFloorDamageModel(DamageModel):
    """damage = max(floor, floor((strength - defense / 2) * crit_mult))"""

    __slots__ = ("_floor",)

    def __init__(self, floor: int) -> None:
        self._floor = floor

    def damage(self, strength: float, defense: float, crit_mult: float) -> int:
        return max(self._floor, math.floor((strength - defense / 2) * crit_mult))


class ProportionalDamageModel(DamageModel):
    """damage = strength * crit_mult * (1 - min(cap, defense / divisor)), at least 1"""

    __slots__ = ("_divisor", "_cap")

    def __init__(self, divisor: float, cap: float) -> None:
        self._divisor = divisor
        self._cap = cap

    def damage(self, strength: float, defense: float, crit_mult: float) -> int:
        reduction = min(self._cap, defense / self._divisor)
        return max(1, math.floor(strength * crit_mult * (1.0 - reduction)))


def build_damage_model(config: ArenaConfig) -> DamageModel:
    """Look up the configured damage model."""
    factory = DAMAGE_MODELS[config.damage_model]
    return factory(config)


DAMAGE_MODELS = {
    "flat": lambda cfg: FlatFloorDamageModel(cfg.min_damage),
    "proportional": lambda cfg: ProportionalDamageModel(
        cfg.defense_reduction_divisor, cfg.max_defense_reduction),
}


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------

class CombatResolver:
    """Rolls and applies attacks.

    ``roll`` is side-effect free apart from RNG consumption; ``resolve``
    also applies the damage to the defender.
    """

    __slots__ = ("_config", "_rng", "_model")

    def __init__(self, config: ArenaConfig, rng: ArenaRNG, model: DamageModel | None = None) -> None:
        self._config = config
        self._rng = rng
        self._model = model or build_damage_model(config)

    @property
    def model(self) -> DamageModel:
        return self._model

    def roll(self, attacker: Agent, defender: Agent) -> AttackOutcome:
        cfg = self._config
        # Dodge first: a dodged attack never rolls for crit
        if self._rng.random(Domain.COMBAT) < defender.stats.luck * cfg.dodge_factor:
            return AttackOutcome(dodged=True, critical=False, damage=0)

        critical = self._rng.random(Domain.COMBAT) < attacker.stats.luck * cfg.crit_factor
        crit_mult = cfg.crit_multiplier if critical else 1.0
        dmg = self._model.damage(attacker.effective_strength(), defender.effective_defense(), crit_mult)
        return AttackOutcome(dodged=False, critical=critical, damage=dmg)

    def resolve(self, attacker: Agent, defender: Agent, now_ms: int = 0) -> AttackOutcome | None:
        """Attack *defender*.  Returns None if either party is no longer active."""
        if not attacker.active or not defender.active:
            logger.debug("Attack %d -> %d skipped: inactive party", attacker.id, defender.id)
            return None

        outcome = self.roll(attacker, defender)
        if outcome.dodged:
            logger.debug("Gladiator %d dodged attack from %d", defender.id, attacker.id)
            return outcome

        knocked_out = defender.take_damage(outcome.damage, now_ms)
        attacker.damage_dealt += outcome.damage
        if knocked_out:
            attacker.knockouts += 1
        logger.debug(
            "Gladiator %d hit %d for %d%s (hp %d/%d)",
            attacker.id, defender.id, outcome.damage,
            " CRIT" if outcome.critical else "",
            defender.health, defender.max_health,
        )
        return AttackOutcome(
            dodged=False, critical=outcome.critical,
            damage=outcome.damage, knocked_out=knocked_out,
        )


def resolve_attack(
    attacker: Agent,
    defender: Agent,
    rng: ArenaRNG,
    config: ArenaConfig,
    now_ms: int = 0,
) -> AttackOutcome | None:
    """Convenience wrapper: resolve one attack with the configured damage model."""
    return CombatResolver(config, rng).resolve(attacker, defender, now_ms)
