"""Tests for stat generation and effective stats."""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from arena.config import ArenaConfig
from arena.core.models import StatModifier
from arena.systems.rng import ArenaRNG
from arena.systems.stats import StatGenerator, max_health_for
from tests.helpers.arena_harness import make_agent


class TestStatGenerator:

    def test_attributes_within_ranges(self):
        cfg = ArenaConfig(rng_seed=5)
        gen = StatGenerator(cfg, ArenaRNG(5))
        for _ in range(200):
            s = gen.generate()
            assert cfg.strength_range[0] <= s.strength <= cfg.strength_range[1]
            assert cfg.speed_range[0] <= s.speed <= cfg.speed_range[1]
            assert cfg.defense_range[0] <= s.defense <= cfg.defense_range[1]
            assert cfg.intelligence_range[0] <= s.intelligence <= cfg.intelligence_range[1]
            assert cfg.aggression_range[0] <= s.aggression <= cfg.aggression_range[1]
            assert cfg.luck_range[0] <= s.luck <= cfg.luck_range[1]

    def test_health_starts_full_and_follows_defense(self):
        cfg = ArenaConfig(rng_seed=5)
        gen = StatGenerator(cfg, ArenaRNG(5))
        for _ in range(50):
            s = gen.generate()
            assert s.health == s.max_health
            assert s.max_health == max_health_for(s.defense, cfg)

    def test_max_health_formula(self):
        cfg = ArenaConfig()
        assert max_health_for(1.0, cfg) == 120
        assert max_health_for(3.49, cfg) == 169
        assert max_health_for(5.0, cfg) == 200

    def test_same_seed_same_stats(self):
        cfg = ArenaConfig(rng_seed=9)
        a = StatGenerator(cfg, ArenaRNG(9)).generate()
        b = StatGenerator(cfg, ArenaRNG(9)).generate()
        assert a == b


class TestEffectiveStats:

    def test_no_modifiers_is_base(self):
        agent = make_agent(1, strength=12.0, speed=150.0, defense=4.0)
        assert agent.effective_strength() == 12.0
        assert agent.effective_speed() == 150.0
        assert agent.effective_defense() == 4.0

    def test_modifiers_stack_multiplicatively(self):
        agent = make_agent(1, defense=4.0)
        agent.add_modifier(StatModifier(1, "defense", 1.5))
        agent.add_modifier(StatModifier(2, "defense", 2.0))
        assert agent.effective_defense() == 12.0
        agent.remove_modifier(1)
        assert agent.effective_defense() == 8.0
        agent.remove_modifier(2)
        assert agent.effective_defense() == 4.0

    def test_remove_unknown_modifier_is_noop(self):
        agent = make_agent(1)
        assert agent.remove_modifier(42) is None


class TestHealth:

    def test_damage_clamps_at_zero_and_knocks_out(self):
        agent = make_agent(1, health=15)
        assert agent.take_damage(40, now_ms=500) is True
        assert agent.health == 0
        assert not agent.active
        assert agent.knocked_out_at_ms == 500

    def test_knocked_out_agent_ignores_damage_and_heal(self):
        agent = make_agent(1, health=5)
        agent.take_damage(10)
        assert agent.take_damage(10) is False
        assert agent.heal(50) == 0
        assert agent.health == 0

    def test_heal_caps_at_max(self):
        agent = make_agent(1, health=160, max_health=180)
        assert agent.heal(50) == 20
        assert agent.health == 180

    def test_get_stats_is_a_copy(self):
        agent = make_agent(1)
        copy = agent.get_stats()
        copy.health = 1
        assert agent.health == 180
