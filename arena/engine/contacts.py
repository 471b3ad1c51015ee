"""Contact resolution: routes host overlap notifications to combat and effects.

Every handler re-resolves both parties through the registry and checks
they are still active: an earlier contact in the same step may already
have knocked an agent out or consumed the effect.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from arena.core.enums import AgentState

if TYPE_CHECKING:
    from arena.core.models import Agent
    from arena.core.registry import EntityRegistry
    from arena.engine.effect_system import EffectSystem
    from arena.engine.match import Match
    from arena.systems.physics import Contact

logger = logging.getLogger(__name__)

StrikeFn = Callable[["Agent", "Agent"], object]
EmitFn = Callable[..., None]


class ContactResolver:
    """Applies one step's worth of contacts to the live match."""

    __slots__ = ("_registry", "_effects", "_strike", "_emit")

    def __init__(
        self,
        registry: EntityRegistry,
        effects: EffectSystem,
        strike: StrikeFn,
        emit: EmitFn | None = None,
    ) -> None:
        self._registry = registry
        self._effects = effects
        self._strike = strike
        self._emit = emit

    def resolve(self, contacts: list[Contact], current: Match, now_ms: int) -> None:
        for contact in contacts:
            match contact.kind:
                case "agent_agent":
                    self._agent_agent(contact.first_id, contact.second_id, now_ms)
                case "agent_powerup":
                    self._agent_power_up(contact.first_id, contact.second_id, current)
                case "agent_hazard":
                    self._agent_hazard(contact.first_id, contact.second_id, current)
                case _:
                    logger.warning("Ignoring unknown contact kind %r", contact.kind)

    def _agent_agent(self, first_id: int, second_id: int, now_ms: int) -> None:
        a = self._registry.live_agent(first_id)
        b = self._registry.live_agent(second_id)
        if a is None or b is None:
            return
        for attacker, defender in ((a, b), (b, a)):
            if not (attacker.active and defender.active):
                continue
            # Same cooldown gate as the Attack behaviour: contact never adds strikes
            if (attacker.state == AgentState.ATTACK
                    and attacker.target_id == defender.id
                    and attacker.cooldown_ready(now_ms)):
                self._strike(attacker, defender)

    def _agent_power_up(self, agent_id: int, power_up_id: int, current: Match) -> None:
        agent = self._registry.live_agent(agent_id)
        power_up = self._registry.live_power_up(power_up_id)
        if agent is None or power_up is None:
            logger.debug("Stale power-up contact %d/%d ignored", agent_id, power_up_id)
            return
        applied = self._effects.apply_power_up(agent, power_up)
        if applied is None:
            return
        current.powerups_collected += 1
        self._publish(
            "powerUpCollected",
            f"{agent.name} picked up {power_up.kind.name.title()} ({applied.name.lower()})",
            (agent.id, power_up.id),
            {"gladiator_id": agent.id, "kind": power_up.kind.name.lower(), "effect": applied.name.lower()},
        )

    def _agent_hazard(self, agent_id: int, hazard_id: int, current: Match) -> None:
        agent = self._registry.live_agent(agent_id)
        hazard = self._registry.live_hazard(hazard_id)
        if agent is None or hazard is None:
            return
        damage = self._effects.apply_hazard(agent, hazard)
        if damage is None:
            return
        current.hazards_triggered += 1
        self._publish(
            "hazardTriggered",
            f"{agent.name} hit by {hazard.kind.name.replace('_', ' ').lower()} for {damage}",
            (agent.id, hazard.id),
            {"gladiator_id": agent.id, "kind": hazard.kind.name.lower(), "damage": damage},
        )

    def _publish(self, category: str, message: str, entity_ids: tuple[int, ...], metadata: dict) -> None:
        if self._emit is not None:
            self._emit(category, message, entity_ids, metadata)
