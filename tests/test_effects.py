"""Tests for power-up application and timed stat reversal."""

import math
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from arena.core.enums import ChaosOutcome, Domain, PowerUpKind
from arena.core.models import Vector2
from tests.helpers.arena_harness import EffectBench


def _spawn(bench, kind):
    return bench.effects.spawn_power_up(kind, Vector2(300, 300))


class TestShield:

    def test_defense_boost_and_revert(self):
        bench = EffectBench()
        agent = bench.add_agent(defense=4.0)
        assert bench.effects.apply_power_up(agent, _spawn(bench, PowerUpKind.SHIELD)) == PowerUpKind.SHIELD
        assert agent.effective_defense() == pytest.approx(6.0)
        bench.advance(7999)
        assert agent.effective_defense() == pytest.approx(6.0)
        bench.advance(1)
        assert agent.effective_defense() == pytest.approx(4.0)
        assert agent.stats.defense == 4.0

    def test_overlapping_shields_return_to_base(self):
        bench = EffectBench()
        agent = bench.add_agent(defense=4.0)
        bench.effects.apply_power_up(agent, _spawn(bench, PowerUpKind.SHIELD))
        bench.advance(4000)
        bench.effects.apply_power_up(agent, _spawn(bench, PowerUpKind.SHIELD))
        assert agent.effective_defense() == pytest.approx(9.0)
        bench.advance(4000)
        assert agent.effective_defense() == pytest.approx(6.0)
        bench.advance(4000)
        assert agent.effective_defense() == pytest.approx(4.0)
        assert agent.modifiers == []

    def test_power_up_is_consumed(self):
        bench = EffectBench()
        agent = bench.add_agent()
        pu = _spawn(bench, PowerUpKind.SHIELD)
        bench.effects.apply_power_up(agent, pu)
        assert bench.registry.live_power_up(pu.id) is None
        assert bench.physics.position("powerup", pu.id) is None
        assert bench.effects.apply_power_up(agent, pu) is None


class TestTrap:

    def test_slow_and_damage_then_restore(self):
        bench = EffectBench()
        agent = bench.add_agent(speed=150.0)
        bench.effects.apply_power_up(agent, _spawn(bench, PowerUpKind.TRAP))
        assert agent.effective_speed() == pytest.approx(75.0)
        assert agent.health == 170
        bench.advance(3000)
        assert agent.effective_speed() == pytest.approx(150.0)
        assert agent.health == 170

    def test_trap_can_knock_out(self):
        bench = EffectBench()
        agent = bench.add_agent(health=5)
        bench.effects.apply_power_up(agent, _spawn(bench, PowerUpKind.TRAP))
        assert not agent.active

    def test_reversal_skipped_for_removed_agent(self):
        bench = EffectBench()
        agent = bench.add_agent(speed=150.0)
        bench.effects.apply_power_up(agent, _spawn(bench, PowerUpKind.TRAP))
        bench.registry.remove_agent(agent.id)
        bench.advance(3000)
        assert len(agent.modifiers) == 1


class TestChaos:

    def _chaos(self, bench, outcome_roll, *extra):
        # duration -> 3000 ms, multiplier -> 0.3, then the outcome pick
        bench.rng.script(Domain.EFFECT, 0.0, 0.0, outcome_roll, *extra)
        return _spawn(bench, PowerUpKind.CHAOS)

    def test_invincibility(self):
        bench = EffectBench()
        agent = bench.add_agent(defense=4.0)
        pu = self._chaos(bench, 0.0)
        assert pu.payload.duration_ms == 3000
        assert bench.effects.apply_power_up(agent, pu) == ChaosOutcome.INVINCIBILITY
        assert agent.effective_defense() == pytest.approx(40.0)
        bench.advance(3000)
        assert agent.effective_defense() == pytest.approx(4.0)

    def test_confusion_forces_velocity_until_it_ends(self):
        bench = EffectBench()
        agent = bench.add_agent(speed=100.0)
        assert bench.effects.apply_power_up(agent, self._chaos(bench, 0.5)) == ChaosOutcome.CONFUSION
        now = bench.scheduler.now_ms
        forced = agent.forced_at(now)
        assert forced is not None
        assert forced.length() == pytest.approx(30.0)
        bench.advance(1500)
        assert agent.forced_at(bench.scheduler.now_ms) is not None
        bench.advance(1500)
        assert agent.forced_velocity is None

    def test_overlapping_confusion_keeps_steering_until_last_ends(self):
        bench = EffectBench()
        agent = bench.add_agent(speed=100.0)
        bench.effects.apply_power_up(agent, self._chaos(bench, 0.5))    # ends at 3000
        bench.advance(2200)
        bench.effects.apply_power_up(agent, self._chaos(bench, 0.5))    # ticks 2700, 3200, ...; ends at 5200
        bench.advance(800)
        assert bench.scheduler.now_ms == 3000
        assert agent.forced_at(3000) is not None
        bench.advance(2199)
        assert agent.forced_velocity is not None
        bench.advance(1)
        assert agent.forced_velocity is None

    def test_invincibility_over_shield_unwinds_in_any_order(self):
        bench = EffectBench()
        agent = bench.add_agent(defense=4.0)
        bench.effects.apply_power_up(agent, _spawn(bench, PowerUpKind.SHIELD))
        bench.effects.apply_power_up(agent, self._chaos(bench, 0.0))
        assert agent.effective_defense() == pytest.approx(60.0)
        bench.advance(3000)
        assert agent.effective_defense() == pytest.approx(6.0)
        bench.advance(5000)
        assert agent.effective_defense() == pytest.approx(4.0)
        assert agent.modifiers == []
        assert agent.stats.defense == 4.0

    def test_confusion_stops_with_spawners(self):
        bench = EffectBench()
        agent = bench.add_agent(speed=100.0)
        bench.effects.apply_power_up(agent, self._chaos(bench, 0.5))
        bench.effects.stop()
        bench.advance(600)
        assert agent.forced_at(bench.scheduler.now_ms) is None

    def test_health_swing_heal(self):
        bench = EffectBench()
        agent = bench.add_agent(health=100, max_health=180)
        outcome = bench.effects.apply_power_up(agent, self._chaos(bench, 0.9, 0.1))
        assert outcome == ChaosOutcome.HEALTH_SWING
        assert agent.health == 150

    def test_health_swing_damage(self):
        bench = EffectBench()
        agent = bench.add_agent()
        bench.effects.apply_power_up(agent, self._chaos(bench, 0.9, 0.9))
        assert agent.health == 150


class TestPickupGuards:

    def test_knocked_out_agent_cannot_collect(self):
        bench = EffectBench()
        agent = bench.add_agent(health=1)
        agent.take_damage(5)
        pu = _spawn(bench, PowerUpKind.SHIELD)
        assert bench.effects.apply_power_up(agent, pu) is None
        assert bench.registry.live_power_up(pu.id) is pu

    def test_spawn_event_emitted(self):
        bench = EffectBench()
        pu = _spawn(bench, PowerUpKind.TRAP)
        category, _, ids, meta = bench.events[-1]
        assert category == "spawn"
        assert ids == (pu.id,)
        assert meta["kind"] == "trap"


class TestSpawners:

    def test_power_up_spawner_rearms_until_stopped(self):
        bench = EffectBench(powerup_first_delay_ms=1000, powerup_interval_ms=(2000, 2000))
        bench.advance(1000)
        assert len(bench.registry.live_power_ups()) == 1
        bench.advance(2000)
        assert len(bench.registry.live_power_ups()) == 2
        bench.effects.stop()
        bench.advance(5000)
        assert len(bench.registry.live_power_ups()) == 2
        assert not bench.effects.enabled

    def test_power_ups_expire(self):
        bench = EffectBench()
        pu = _spawn(bench, PowerUpKind.SHIELD)
        assert bench.effects.expire(bench.config.powerup_lifespan_ms) == 0
        assert bench.effects.expire(bench.config.powerup_lifespan_ms + 1) == 1
        assert bench.registry.live_power_up(pu.id) is None
