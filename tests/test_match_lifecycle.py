"""Tests for the match lifecycle: start, termination, results, reset."""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from arena.config import ArenaConfig
from arena.core.enums import AgentLifecycle, EndReason, MatchState, PowerUpKind
from arena.core.models import Vector2
from arena.engine.arena_loop import ArenaLoop
from arena.services.match_history import MatchHistory


def _loop(**overrides):
    settings = dict(rng_seed=21, reset_delay_s=1)
    settings.update(overrides)
    loop = ArenaLoop(ArenaConfig(**settings))
    loop.start_match()
    return loop


def _ticks_for(loop, ms):
    return ms // loop.config.tick_ms


def _knock_out(loop, agents):
    for a in agents:
        a.take_damage(10_000, loop.now_ms)


class TestMatchStart:

    def test_spawns_configured_gladiators(self):
        loop = _loop(agent_count=4)
        m = loop.match
        assert m.match_id == 1
        assert m.state == MatchState.RUNNING
        assert len(m.gladiator_ids) == 4
        assert loop.registry.live_count() == 4
        names = [loop.registry.get_agent(gid).name for gid in m.gladiator_ids]
        assert names == ["Gladiator 1", "Gladiator 2", "Gladiator 3", "Gladiator 4"]

    def test_gladiators_spawn_in_corner_zones(self):
        loop = _loop()
        cfg = loop.config
        first = loop.registry.get_agent(loop.match.gladiator_ids[0])
        last = loop.registry.get_agent(loop.match.gladiator_ids[3])
        assert first.pos.x < cfg.world_width / 2 and first.pos.y < cfg.world_height / 2
        assert last.pos.x > cfg.world_width / 2 and last.pos.y > cfg.world_height / 2

    def test_more_agents_than_zones_wrap(self):
        loop = _loop(agent_count=6)
        assert loop.registry.live_count() == 6

    def test_match_start_event(self):
        loop = _loop()
        events = loop.drain_events()
        assert events[-1].category == "matchStart"
        assert events[-1].metadata["match_id"] == 1


class TestElimination:

    def test_last_one_standing_wins(self):
        loop = _loop()
        agents = loop.registry.live_agents()
        survivor = agents[0]
        _knock_out(loop, agents[1:])
        loop.tick_once()
        result = loop.last_result
        assert result is not None
        assert result.end_reason == EndReason.ELIMINATION
        assert result.winner_id == survivor.id
        assert result.winner_name == survivor.name
        assert loop.match.state == MatchState.ENDING

    def test_simultaneous_knockout_is_a_draw(self):
        loop = _loop()
        _knock_out(loop, loop.registry.live_agents())
        loop.tick_once()
        assert loop.last_result.is_draw
        assert loop.last_result.winner_name is None

    def test_knockouts_announced_once_and_removed_after_grace(self):
        loop = _loop(agent_count=3)
        victim = loop.registry.live_agents()[0]
        _knock_out(loop, [victim])
        loop.tick_once()
        loop.tick_once()
        knockouts = [e for e in loop.drain_events() if e.category == "knockout"]
        assert len(knockouts) == 1
        assert loop.registry.get_agent(victim.id) is not None
        for _ in range(_ticks_for(loop, loop.config.knockout_grace_ms)):
            loop.tick_once()
        assert loop.registry.get_agent(victim.id) is None
        assert victim.lifecycle == AgentLifecycle.REMOVED

    def test_match_end_event_carries_winner_and_stats(self):
        loop = _loop()
        agents = loop.registry.live_agents()
        _knock_out(loop, agents[1:])
        loop.drain_events()
        loop.tick_once()
        end = [e for e in loop.drain_events() if e.category == "matchEnd"][0]
        assert end.metadata["winner"]["id"] == agents[0].id
        assert end.metadata["stats"]["end_reason"] == "elimination"

    def test_mvp_candidates_keep_names_of_removed_gladiators(self):
        loop = _loop(agent_count=3)
        first, second, _ = loop.registry.live_agents()
        _knock_out(loop, [first])
        for _ in range(_ticks_for(loop, loop.config.knockout_grace_ms) + 2):
            loop.tick_once()
        assert loop.registry.get_agent(first.id) is None
        _knock_out(loop, [second])
        loop.tick_once()
        assert loop.match.state == MatchState.ENDING
        candidates = loop.voting.candidates()
        assert candidates == {
            gid: f"Gladiator {i + 1}" for i, gid in enumerate(loop.match.gladiator_ids)
        }
        assert candidates[first.id] == "Gladiator 1"


class TestTimeout:

    def test_countdown_ends_match(self):
        loop = _loop(match_duration_s=2)
        for _ in range(_ticks_for(loop, 1000)):
            loop.tick_once()
        assert loop.match.time_remaining_s == 1
        for _ in range(_ticks_for(loop, 1000)):
            loop.tick_once()
        result = loop.last_result
        assert result.end_reason == EndReason.TIMEOUT
        assert result.duration_s == 2.0

    def test_healthiest_survivor_wins_at_timeout(self):
        loop = _loop(match_duration_s=60)
        agents = loop.registry.live_agents()
        for a in agents[1:]:
            a.stats.health = 1
        agents[0].stats.health = agents[0].max_health
        result = loop.end_match(EndReason.TIMEOUT)
        assert result.winner_id == agents[0].id

    def test_health_tie_at_timeout_is_draw(self):
        loop = _loop()
        for a in loop.registry.live_agents():
            a.stats.health = 50
        assert loop.end_match(EndReason.TIMEOUT).is_draw

    def test_default_duration_is_sixty_seconds(self):
        loop = _loop(reset_delay_s=5)
        assert loop.match.time_remaining_s == 60


class TestEndMatch:

    def test_end_is_idempotent(self):
        loop = _loop()
        first = loop.end_match(EndReason.TIMEOUT)
        assert first is not None
        assert loop.end_match(EndReason.ELIMINATION) is None
        assert loop.matches_completed == 1

    def test_ending_freezes_the_arena(self):
        loop = _loop()
        loop.effects.spawn_power_up(PowerUpKind.SHIELD, Vector2(400, 300))
        loop.end_match(EndReason.TIMEOUT)
        assert not loop.effects.enabled
        for a in loop.registry.agents.values():
            assert a.velocity == Vector2(0.0, 0.0)
        positions = {a.id: a.pos for a in loop.registry.agents.values()}
        loop.tick_once()
        assert {a.id: a.pos for a in loop.registry.agents.values()} == positions

    def test_result_sinks_receive_results(self):
        loop = _loop()
        history = MatchHistory(loop.config)
        loop.add_result_sink(history)
        loop.end_match(EndReason.TIMEOUT)
        assert len(history) == 1

    def test_failing_sink_does_not_break_the_match(self):
        class Broken:
            def record(self, result):
                raise RuntimeError("boom")

        loop = _loop()
        loop.add_result_sink(Broken())
        assert loop.end_match(EndReason.TIMEOUT) is not None

    def test_listeners_get_published_events(self):
        loop = _loop()
        seen = []
        unsubscribe = loop.subscribe("matchEnd", seen.append)
        loop.end_match(EndReason.TIMEOUT)
        assert len(seen) == 1
        unsubscribe()
        loop.start_match()
        loop.end_match(EndReason.TIMEOUT)
        assert len(seen) == 1


class TestReset:

    def test_next_match_starts_after_delay(self):
        loop = _loop(reset_delay_s=1)
        old_ids = set(loop.match.gladiator_ids)
        loop.end_match(EndReason.TIMEOUT)
        assert loop.create_snapshot().reset_in_s == 1.0
        for _ in range(_ticks_for(loop, 1000)):
            loop.tick_once()
        assert loop.match.match_id == 2
        assert loop.match.state == MatchState.RUNNING
        assert not old_ids & set(loop.registry.agents)
        assert loop.registry.live_count() == loop.config.agent_count
        assert loop.registry.live_power_ups() == []
        assert loop.registry.live_hazards() == []

    def test_stale_timers_never_fire_in_next_match(self):
        loop = _loop(reset_delay_s=1)
        fired = []
        loop.scheduler.schedule(3000, lambda: fired.append("stale"))
        loop.end_match(EndReason.TIMEOUT)
        for _ in range(_ticks_for(loop, 4000)):
            loop.tick_once()
        assert fired == []

    def test_counters_reset_per_match(self):
        loop = _loop(reset_delay_s=1)
        loop.match.powerups_collected = 3
        loop.end_match(EndReason.TIMEOUT)
        for _ in range(_ticks_for(loop, 1000)):
            loop.tick_once()
        assert loop.match.powerups_collected == 0
        assert loop.match.selected_gladiator_id is None


class TestHeadlessRun:

    def test_run_plays_whole_matches(self):
        loop = ArenaLoop(ArenaConfig(rng_seed=4, match_duration_s=5, reset_delay_s=1))
        results = loop.run(max_matches=2)
        assert len(results) == 2
        assert [r.match_id for r in results] == [1, 2]

    def test_run_respects_tick_limit(self):
        loop = ArenaLoop(ArenaConfig(rng_seed=4))
        assert loop.run(max_matches=1, max_ticks=10) == []
        assert loop.tick == 10
