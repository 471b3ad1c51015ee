"""Tests for contact routing between the physics host and the arena."""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from arena.core.enums import AgentState, HazardKind, MatchState, PowerUpKind
from arena.core.models import Vector2
from arena.engine.contacts import ContactResolver
from arena.engine.match import Match
from arena.systems.physics import Contact
from tests.helpers.arena_harness import EffectBench


def _resolver(bench):
    strikes = []
    resolver = ContactResolver(
        bench.registry, bench.effects,
        strike=lambda a, d: strikes.append((a.id, d.id)),
        emit=lambda *args: bench.events.append(args),
    )
    return resolver, strikes


def _match():
    return Match(match_id=1, state=MatchState.RUNNING)


class TestAgentContacts:

    def test_attacker_in_attack_state_strikes(self):
        bench = EffectBench()
        a = bench.add_agent()
        b = bench.add_agent()
        a.state, a.target_id = AgentState.ATTACK, b.id
        resolver, strikes = _resolver(bench)
        resolver.resolve([Contact("agent_agent", a.id, b.id)], _match(), now_ms=0)
        assert strikes == [(a.id, b.id)]

    def test_contact_respects_cooldown(self):
        bench = EffectBench()
        a = bench.add_agent()
        b = bench.add_agent()
        a.state, a.target_id = AgentState.ATTACK, b.id
        a.last_attack_ms = 500
        resolver, strikes = _resolver(bench)
        resolver.resolve([Contact("agent_agent", a.id, b.id)], _match(), now_ms=1000)
        assert strikes == []

    def test_bumping_without_intent_does_nothing(self):
        bench = EffectBench()
        a = bench.add_agent()
        b = bench.add_agent()
        resolver, strikes = _resolver(bench)
        resolver.resolve([Contact("agent_agent", a.id, b.id)], _match(), now_ms=0)
        assert strikes == []


class TestEffectContacts:

    def test_power_up_pickup_counts_and_emits(self):
        bench = EffectBench()
        agent = bench.add_agent()
        pu = bench.effects.spawn_power_up(PowerUpKind.SHIELD, Vector2(100, 100))
        resolver, _ = _resolver(bench)
        m = _match()
        resolver.resolve([Contact("agent_powerup", agent.id, pu.id)], m, now_ms=0)
        assert m.powerups_collected == 1
        category, _, ids, meta = bench.events[-1]
        assert category == "powerUpCollected"
        assert ids == (agent.id, pu.id)
        assert meta["kind"] == "shield"

    def test_second_contact_same_step_is_ignored(self):
        bench = EffectBench()
        a = bench.add_agent()
        b = bench.add_agent()
        pu = bench.effects.spawn_power_up(PowerUpKind.SHIELD, Vector2(100, 100))
        resolver, _ = _resolver(bench)
        m = _match()
        resolver.resolve([
            Contact("agent_powerup", a.id, pu.id),
            Contact("agent_powerup", b.id, pu.id),
        ], m, now_ms=0)
        assert m.powerups_collected == 1
        assert b.modifiers == []

    def test_hazard_hit_counts(self):
        bench = EffectBench()
        agent = bench.add_agent()
        fb = bench.effects.spawn_hazard(HazardKind.FIREBALL)
        resolver, _ = _resolver(bench)
        m = _match()
        resolver.resolve([Contact("agent_hazard", agent.id, fb.id)], m, now_ms=0)
        assert m.hazards_triggered == 1
        assert bench.events[-1][0] == "hazardTriggered"

    def test_unknown_contact_kind_is_skipped(self):
        bench = EffectBench()
        resolver, strikes = _resolver(bench)
        resolver.resolve([Contact("hazard_hazard", 1, 2)], _match(), now_ms=0)
        assert strikes == []
