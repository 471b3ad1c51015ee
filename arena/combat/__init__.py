"""Combat resolution and damage models."""

from arena.combat.resolver import AttackOutcome, CombatResolver, DAMAGE_MODELS, resolve_attack

__all__ = ["AttackOutcome", "CombatResolver", "DAMAGE_MODELS", "resolve_attack"]
