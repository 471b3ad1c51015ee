"""Live-entity registry: the single source of truth for one match.

Every cross-entity reference in the arena (agent -> target, agent ->
power-up, timer -> owner) is a plain integer id resolved here on use.
Removed entities simply stop resolving.
"""

from __future__ import annotations

from arena.core.effects import Hazard, PowerUp
from arena.core.enums import AgentLifecycle
from arena.core.models import Agent


class EntityRegistry:
    """Agents and effects of the current match, keyed by id.

    Ids are allocated from one counter shared by every entity kind, so an
    id never refers to two live things at once.  Dict insertion order is
    the iteration order used for tie-breaking.
    """

    __slots__ = ("agents", "power_ups", "hazards", "_next_id")

    def __init__(self) -> None:
        self.agents: dict[int, Agent] = {}
        self.power_ups: dict[int, PowerUp] = {}
        self.hazards: dict[int, Hazard] = {}
        self._next_id: int = 1

    def allocate_id(self) -> int:
        eid = self._next_id
        self._next_id += 1
        return eid

    # -- agents --

    def add_agent(self, agent: Agent) -> None:
        self.agents[agent.id] = agent

    def get_agent(self, agent_id: int | None) -> Agent | None:
        """Registered agent regardless of lifecycle (knocked-out agents included)."""
        if agent_id is None:
            return None
        return self.agents.get(agent_id)

    def live_agent(self, agent_id: int | None) -> Agent | None:
        """Resolve *agent_id* to an active agent, or None if it is gone."""
        agent = self.get_agent(agent_id)
        if agent is None or not agent.active:
            return None
        return agent

    def live_agents(self) -> list[Agent]:
        return [a for a in self.agents.values() if a.active]

    def live_count(self) -> int:
        return sum(1 for a in self.agents.values() if a.active)

    def remove_agent(self, agent_id: int) -> Agent | None:
        agent = self.agents.pop(agent_id, None)
        if agent is not None:
            agent.lifecycle = AgentLifecycle.REMOVED
        return agent

    # -- effects --

    def add_power_up(self, power_up: PowerUp) -> None:
        self.power_ups[power_up.id] = power_up

    def live_power_up(self, power_up_id: int | None) -> PowerUp | None:
        if power_up_id is None:
            return None
        p = self.power_ups.get(power_up_id)
        return p if p is not None and p.active else None

    def live_power_ups(self) -> list[PowerUp]:
        return [p for p in self.power_ups.values() if p.active]

    def remove_power_up(self, power_up_id: int) -> PowerUp | None:
        p = self.power_ups.pop(power_up_id, None)
        if p is not None:
            p.active = False
        return p

    def add_hazard(self, hazard: Hazard) -> None:
        self.hazards[hazard.id] = hazard

    def live_hazard(self, hazard_id: int | None) -> Hazard | None:
        if hazard_id is None:
            return None
        h = self.hazards.get(hazard_id)
        return h if h is not None and h.active else None

    def live_hazards(self) -> list[Hazard]:
        return [h for h in self.hazards.values() if h.active]

    def remove_hazard(self, hazard_id: int) -> Hazard | None:
        h = self.hazards.pop(hazard_id, None)
        if h is not None:
            h.active = False
        return h

    # -- liveness --

    def is_active(self, entity_id: int) -> bool:
        """Liveness predicate used by the scheduler for owned timers."""
        agent = self.agents.get(entity_id)
        if agent is not None:
            return agent.active
        return self.live_power_up(entity_id) is not None or self.live_hazard(entity_id) is not None

    def clear(self) -> None:
        """Drop everything.  Ids keep counting up across matches."""
        for agent in self.agents.values():
            agent.lifecycle = AgentLifecycle.REMOVED
        for p in self.power_ups.values():
            p.active = False
        for h in self.hazards.values():
            h.active = False
        self.agents.clear()
        self.power_ups.clear()
        self.hazards.clear()
