"""Tests for nearest-enemy and power-up targeting."""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from arena.core.effects import EffectPayload, PowerUp
from arena.core.enums import PowerUpKind
from arena.core.models import Vector2
from arena.core.registry import EntityRegistry
from arena.systems.targeting import TargetingService
from tests.helpers.arena_harness import make_agent


def _registry(*agents):
    reg = EntityRegistry()
    for a in agents:
        reg.add_agent(a)
    return reg


def _power_up(pid, pos):
    return PowerUp(id=pid, kind=PowerUpKind.SHIELD, pos=Vector2(*pos),
                   payload=EffectPayload(8000, 0.5), created_at_ms=0)


class TestEnemyTargeting:

    def test_nearest_enemy(self):
        a = make_agent(1, pos=(0, 0))
        b = make_agent(2, pos=(50, 0))
        c = make_agent(3, pos=(300, 0))
        TargetingService(300.0).assign(_registry(a, b, c))
        assert a.target_id == 2
        assert b.target_id == 1
        assert c.target_id == 2

    def test_tie_goes_to_first_in_registry_order(self):
        a = make_agent(1, pos=(100, 100))
        b = make_agent(2, pos=(50, 100))
        c = make_agent(3, pos=(150, 100))
        TargetingService(300.0).assign(_registry(a, b, c))
        assert a.target_id == 2

    def test_knocked_out_agents_are_not_targets(self):
        a = make_agent(1, pos=(0, 0))
        b = make_agent(2, pos=(10, 0), health=1)
        c = make_agent(3, pos=(200, 0))
        b.take_damage(5)
        TargetingService(300.0).assign(_registry(a, b, c))
        assert a.target_id == 3

    def test_alone_has_no_target(self):
        a = make_agent(1)
        a.target_id = 99
        TargetingService(300.0).assign(_registry(a))
        assert a.target_id is None


class TestPowerUpTargeting:

    def test_in_range_power_up(self):
        a = make_agent(1, pos=(0, 0))
        reg = _registry(a)
        reg.add_power_up(_power_up(10, (100, 0)))
        reg.add_power_up(_power_up(11, (50, 0)))
        TargetingService(300.0).assign(reg)
        assert a.powerup_target_id == 11

    def test_out_of_range_power_up_ignored(self):
        a = make_agent(1, pos=(0, 0))
        reg = _registry(a)
        reg.add_power_up(_power_up(10, (301, 0)))
        TargetingService(300.0).assign(reg)
        assert a.powerup_target_id is None

    def test_consumed_power_up_ignored(self):
        a = make_agent(1, pos=(0, 0))
        reg = _registry(a)
        reg.add_power_up(_power_up(10, (10, 0)))
        reg.remove_power_up(10)
        TargetingService(300.0).assign(reg)
        assert a.powerup_target_id is None
