"""AgentBrain: runs the FSM for one gladiator per tick.

Two steps:
  1. ``choose_state`` re-evaluates the priority rules and sets the state.
  2. The state's handler turns it into an Intent.

A forced-velocity window on the agent (confusion, post-attack recovery)
overrides the handler's movement but never its attack.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from arena.ai.states import AIContext, IdleHandler, Intent, STATE_HANDLERS, choose_state

if TYPE_CHECKING:
    from arena.config import ArenaConfig
    from arena.core.models import Agent
    from arena.core.registry import EntityRegistry
    from arena.systems.rng import ArenaRNG

logger = logging.getLogger(__name__)

_FALLBACK = IdleHandler()


class AgentBrain:
    """Dispatches gladiator decisions based on their current state."""

    __slots__ = ("_config", "_rng")

    def __init__(self, config: ArenaConfig, rng: ArenaRNG) -> None:
        self._config = config
        self._rng = rng

    def update(self, actor: Agent, registry: EntityRegistry, now_ms: int) -> Intent | None:
        """Run the FSM for *actor*.  Knocked-out agents get None and stay frozen."""
        if not actor.active:
            return None

        ctx = AIContext(
            actor=actor,
            registry=registry,
            config=self._config,
            rng=self._rng,
            now_ms=now_ms,
        )

        new_state = choose_state(ctx)
        if new_state != actor.state:
            logger.debug("Gladiator %d: %s -> %s", actor.id, actor.state.name, new_state.name)
            actor.state = new_state

        handler = STATE_HANDLERS.get(actor.state, _FALLBACK)
        intent = handler.handle(ctx)

        forced = actor.forced_at(now_ms)
        if forced is not None:
            intent = replace(intent, velocity=forced)
        return intent
