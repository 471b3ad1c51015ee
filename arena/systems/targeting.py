"""Targeting service: nearest hostile and nearest in-range power-up per agent.

Brute-force O(n^2) scan each tick; match populations are single digits.
Ties on distance go to the first candidate in registry order.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from arena.core.effects import PowerUp
    from arena.core.models import Agent
    from arena.core.registry import EntityRegistry


class TargetingService:
    """Assigns ``target_id`` and ``powerup_target_id`` on every live agent."""

    __slots__ = ("_powerup_radius",)

    def __init__(self, powerup_radius: float) -> None:
        self._powerup_radius = powerup_radius

    def assign(self, registry: EntityRegistry) -> None:
        agents = registry.live_agents()
        power_ups = registry.live_power_ups()
        for agent in agents:
            enemy = self.nearest_enemy(agent, agents)
            agent.target_id = enemy.id if enemy is not None else None
            pick = self.nearest_power_up(agent, power_ups)
            agent.powerup_target_id = pick.id if pick is not None else None

    @staticmethod
    def nearest_enemy(agent: Agent, candidates: list[Agent]) -> Agent | None:
        best: Agent | None = None
        best_dist = float("inf")
        for other in candidates:
            if other.id == agent.id or not other.active:
                continue
            d = agent.pos.distance(other.pos)
            if d < best_dist:
                best, best_dist = other, d
        return best

    def nearest_power_up(self, agent: Agent, power_ups: list[PowerUp]) -> PowerUp | None:
        best: PowerUp | None = None
        best_dist = float("inf")
        for p in power_ups:
            if not p.active:
                continue
            d = agent.pos.distance(p.pos)
            if d < best_dist:
                best, best_dist = p, d
        if best is None or best_dist > self._powerup_radius:
            return None
        return best
