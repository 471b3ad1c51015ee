"""ArenaLoop: the arena orchestrator and match lifecycle.

Tick order:
  1. Advance the simulation clock.
  2. Targeting: nearest enemy and in-range power-up per live agent.
  3. Agent updates: FSM decision, strikes, velocity intents.
  4. Scheduler: due timers (countdown, spawners, reversals, removals).
  5. Physics step, position sync and contact resolution.
  6. Effect expiry, knockout sweep, termination check.

Steps 2, 3 and 5 run only while the match is Running.

Match lifecycle:
  SPAWNING -> RUNNING -> ENDING -> RESETTING -> SPAWNING (next match id)
"""

from __future__ import annotations

import logging
import math
import time
from collections import deque
from dataclasses import asdict
from functools import partial
from typing import TYPE_CHECKING, Any, Callable

from arena.ai.brain import AgentBrain
from arena.combat.resolver import CombatResolver
from arena.core.enums import AgentLifecycle, AgentState, Domain, EndReason, MatchState
from arena.core.models import Agent, Vector2, ZERO
from arena.core.registry import EntityRegistry
from arena.core.snapshot import ArenaSnapshot
from arena.engine.contacts import ContactResolver
from arena.engine.effect_system import EffectSystem
from arena.engine.match import Match, MatchResult
from arena.services.ledger import InMemoryLedger
from arena.services.mvp_voting import MVPVoting
from arena.services.predictions import PredictionBook, PredictionResult
from arena.systems.physics import AGENT, HAZARD, KinematicPhysics
from arena.systems.rng import ArenaRNG
from arena.systems.scheduler import Scheduler
from arena.systems.stats import StatGenerator
from arena.systems.targeting import TargetingService
from arena.utils.event_log import SimEvent

if TYPE_CHECKING:
    from arena.combat.resolver import AttackOutcome
    from arena.config import ArenaConfig
    from arena.core.models import AgentStats
    from arena.services.ledger import Ledger
    from arena.services.match_history import ResultSink
    from arena.services.mvp_voting import MVPVoteResult
    from arena.systems.physics import PhysicsHost
    from arena.systems.scheduler import Timer

logger = logging.getLogger(__name__)

Listener = Callable[[dict[str, Any]], None]


class ArenaLoop:
    """Owns one arena: its agents, effects, timers and the live match.

    Single-threaded.  The host calls ``tick_once`` at a fixed rate and
    feeds external commands (selection, predictions) between ticks.
    """

    def __init__(
        self,
        config: ArenaConfig,
        physics: PhysicsHost | None = None,
        rng: ArenaRNG | None = None,
        ledger: Ledger | None = None,
        sinks: list[ResultSink] | None = None,
    ) -> None:
        self._config = config
        self._rng = rng or ArenaRNG(config.rng_seed)
        self._registry = EntityRegistry()
        self._scheduler = Scheduler(liveness=self._registry.is_active)
        self._physics = physics or KinematicPhysics(config.world_width, config.world_height)
        self._stats = StatGenerator(config, self._rng)
        self._targeting = TargetingService(config.powerup_target_radius)
        self._resolver = CombatResolver(config, self._rng)
        self._brain = AgentBrain(config, self._rng)
        self._effects = EffectSystem(config, self._rng, self._registry, self._physics,
                                     self._scheduler, emit=self._emit)
        self._contacts = ContactResolver(self._registry, self._effects, self._strike, emit=self._emit)

        self._ledger = ledger or InMemoryLedger()
        self._predictions = PredictionBook(config, self._ledger)
        self._voting = MVPVoting(config, self._ledger, self._scheduler, self._rng,
                                 on_end=self._on_voting_ended)
        self._sinks: list[ResultSink] = list(sinks or [])

        self._match: Match | None = None
        self._countdown: Timer | None = None
        self._knockouts_seen: set[int] = set()
        self._listeners: dict[str, list[Listener]] = {}
        self._tick: int = 0
        self._now_ms: int = 0
        self._pending_events: list[SimEvent] = []
        self._recent_results: deque[MatchResult] = deque(maxlen=50)
        self._completed: int = 0

    # -- public properties --

    @property
    def config(self) -> ArenaConfig:
        return self._config

    @property
    def tick(self) -> int:
        return self._tick

    @property
    def now_ms(self) -> int:
        return self._now_ms

    @property
    def match(self) -> Match | None:
        return self._match

    @property
    def registry(self) -> EntityRegistry:
        return self._registry

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @property
    def physics(self) -> PhysicsHost:
        return self._physics

    @property
    def effects(self) -> EffectSystem:
        return self._effects

    @property
    def rng(self) -> ArenaRNG:
        return self._rng

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    @property
    def predictions(self) -> PredictionBook:
        return self._predictions

    @property
    def voting(self) -> MVPVoting:
        return self._voting

    def drain_events(self) -> list[SimEvent]:
        """Events emitted since the last drain (ticks and external commands alike)."""
        events, self._pending_events = self._pending_events, []
        return events

    @property
    def last_result(self) -> MatchResult | None:
        return self._recent_results[-1] if self._recent_results else None

    @property
    def matches_completed(self) -> int:
        return self._completed

    def add_result_sink(self, sink: ResultSink) -> None:
        self._sinks.append(sink)

    # -- listeners & events --

    def subscribe(self, name: str, handler: Listener) -> Callable[[], None]:
        """Register *handler* for event *name*.  Returns an unsubscribe callable."""
        handlers = self._listeners.setdefault(name, [])
        handlers.append(handler)

        def unsubscribe() -> None:
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def _emit(self, category: str, message: str,
              entity_ids: tuple[int, ...] = (), metadata: dict | None = None) -> None:
        self._pending_events.append(SimEvent(
            tick=self._tick,
            category=category,
            message=message,
            entity_ids=entity_ids,
            metadata=metadata,
        ))

    def _publish(self, name: str, message: str, payload: dict[str, Any],
                 entity_ids: tuple[int, ...] = ()) -> None:
        """Record an event in the feed and hand it to every listener."""
        self._emit(name, message, entity_ids, payload)
        for handler in list(self._listeners.get(name, ())):
            try:
                handler(payload)
            except Exception:
                logger.exception("Listener for %r failed", name)

    # -- tick --

    def tick_once(self) -> bool:
        """Advance the arena by one tick.  Always returns True; the arena never stops itself."""
        if self._match is None:
            self.start_match()

        self._tick += 1
        self._now_ms += self._config.tick_ms
        now = self._now_ms

        if self._match.state == MatchState.RUNNING:
            self._targeting.assign(self._registry)
            self._update_agents(now)

        self._scheduler.advance(now)

        if self._match.state == MatchState.RUNNING:
            contacts = self._physics.step(self._config.tick_ms / 1000.0)
            self._sync_positions()
            self._contacts.resolve(contacts, self._match, now)
            self._effects.expire(now)

        self._sweep_knockouts()
        self._check_termination()
        return True

    def _update_agents(self, now: int) -> None:
        for agent in self._registry.live_agents():
            if not agent.active:
                continue
            self.ensure_stats(agent)
            intent = self._brain.update(agent, self._registry, now)
            if intent is None:
                continue
            if intent.attack_target_id is not None:
                target = self._registry.live_agent(intent.attack_target_id)
                if target is not None:
                    self._strike(agent, target)
            if intent.velocity is not None and agent.active:
                agent.velocity = intent.velocity
                self._physics.set_velocity(AGENT, agent.id, intent.velocity)

    def _strike(self, attacker: Agent, defender: Agent) -> AttackOutcome | None:
        """One attack from *attacker* on *defender*, with cooldown reset and recovery nudge."""
        now = self._now_ms
        outcome = self._resolver.resolve(attacker, defender, now)
        if outcome is None:
            return None
        attacker.last_attack_ms = now
        self._scheduler.schedule(
            self._config.attack_recovery_delay_ms, partial(self._recover, attacker.id),
            owner_id=attacker.id, label="attack-recovery",
        )
        if outcome.dodged:
            self._emit("attack", f"{defender.name} dodged {attacker.name}", (attacker.id, defender.id),
                       {"dodged": True})
        else:
            crit = " (critical)" if outcome.critical else ""
            self._emit("attack", f"{attacker.name} hit {defender.name} for {outcome.damage}{crit}",
                       (attacker.id, defender.id),
                       {"damage": outcome.damage, "critical": outcome.critical})
        return outcome

    def _recover(self, agent_id: int) -> None:
        """Brief random sidestep after an attack so locked pairs break apart."""
        agent = self._registry.live_agent(agent_id)
        if agent is None or agent.state != AgentState.ATTACK:
            return
        if self._match is None or self._match.state != MatchState.RUNNING:
            return
        cfg = self._config
        angle = self._rng.random(Domain.AI_DECISION) * 2 * math.pi
        velocity = Vector2.from_angle(angle, agent.effective_speed() * cfg.recovery_speed_factor)
        agent.force_velocity(velocity, self._now_ms + cfg.attack_recovery_ms)
        agent.velocity = velocity
        self._physics.set_velocity(AGENT, agent.id, velocity)

    def _sync_positions(self) -> None:
        for agent in self._registry.agents.values():
            pos = self._physics.position(AGENT, agent.id)
            if pos is not None:
                agent.pos = pos
        for hazard in self._registry.live_hazards():
            pos = self._physics.position(HAZARD, hazard.id)
            if pos is not None:
                hazard.pos = pos
                hazard.velocity = self._physics.velocity(HAZARD, hazard.id)

    def _sweep_knockouts(self) -> None:
        """Announce fresh knockouts and schedule their removal after the grace delay."""
        for agent in list(self._registry.agents.values()):
            if agent.lifecycle != AgentLifecycle.KNOCKED_OUT or agent.id in self._knockouts_seen:
                continue
            self._knockouts_seen.add(agent.id)
            self._physics.set_velocity(AGENT, agent.id, ZERO)
            logger.info("Tick %d: %s (#%d) knocked out", self._tick, agent.name, agent.id)
            self._publish("knockout", f"{agent.name} was knocked out",
                          {"gladiator_id": agent.id, "name": agent.name}, (agent.id,))
            self._scheduler.schedule(
                self._config.knockout_grace_ms, partial(self._remove_agent, agent.id),
                label="knockout-removal",
            )

    def _remove_agent(self, agent_id: int) -> None:
        if self._registry.remove_agent(agent_id) is not None:
            self._physics.remove_body(AGENT, agent_id)
            logger.debug("Removed knocked-out gladiator %d", agent_id)

    def _check_termination(self) -> None:
        m = self._match
        if m is None or m.state != MatchState.RUNNING:
            return
        if self._registry.live_count() <= 1:
            self.end_match(EndReason.ELIMINATION)

    def _countdown_step(self) -> None:
        m = self._match
        if m is None or m.state != MatchState.RUNNING:
            return
        m.time_remaining_s = max(0, m.time_remaining_s - 1)
        if m.time_remaining_s == 0:
            self.end_match(EndReason.TIMEOUT)

    # -- lifecycle --

    def start_match(self) -> Match:
        """Tear down whatever is left and start the next match."""
        cfg = self._config
        match_id = self._match.match_id + 1 if self._match is not None else 1
        self._teardown()
        self._rng.reseed(match_id)

        m = Match(
            match_id=match_id,
            state=MatchState.SPAWNING,
            started_at_ms=self._now_ms,
            time_remaining_s=cfg.match_duration_s,
        )
        self._match = m
        self._spawn_gladiators(m)
        self._predictions.open(match_id)

        self._countdown = self._scheduler.schedule(
            cfg.countdown_interval_ms, self._countdown_step, repeat=True, label="match-countdown")
        self._effects.start()
        m.state = MatchState.RUNNING

        logger.info("=== Match %d started: %d gladiators ===", match_id, len(m.gladiator_ids))
        self._publish("matchStart", f"Match {match_id} started",
                      {"match_id": match_id, "gladiator_ids": list(m.gladiator_ids)},
                      tuple(m.gladiator_ids))
        return m

    def _spawn_gladiators(self, m: Match) -> None:
        cfg = self._config
        margin, size = cfg.spawn_zone_margin, cfg.spawn_zone_size
        zones = (
            (margin, margin),
            (cfg.world_width - margin - size, margin),
            (margin, cfg.world_height - margin - size),
            (cfg.world_width - margin - size, cfg.world_height - margin - size),
        )
        half = float(cfg.agent_half_size)
        for i in range(cfg.agent_count):
            zx, zy = zones[i % len(zones)]
            pos = Vector2(
                zx + self._rng.uniform(Domain.SPAWN, 0, size),
                zy + self._rng.uniform(Domain.SPAWN, 0, size),
            )
            agent = Agent(
                id=self._registry.allocate_id(),
                name=f"Gladiator {i + 1}",
                pos=pos,
                stats=self._stats.generate(),
                attack_cooldown_ms=cfg.attack_cooldown_ms,
            )
            self._registry.add_agent(agent)
            self._physics.add_body(AGENT, agent.id, pos, (half, half))
            m.gladiator_ids.append(agent.id)
            m.gladiator_names[agent.id] = agent.name
            logger.debug("Spawned %s #%d at %s (hp %d)", agent.name, agent.id, pos, agent.max_health)

    def end_match(self, reason: EndReason) -> MatchResult | None:
        """Finish the live match.  Idempotent: later calls return None."""
        m = self._match
        if m is None or m.ending:
            logger.debug("end_match(%s) ignored: match already ending", reason.name)
            return None
        m.ending = True
        m.state = MatchState.ENDING
        m.ended_at_ms = self._now_ms

        if self._countdown is not None:
            self._countdown.cancel()
        self._effects.stop()
        self._physics.stop_all()
        for agent in self._registry.agents.values():
            agent.velocity = ZERO
            agent.forced_velocity = None

        winner = self._pick_winner()
        m.winner_id = winner.id if winner else None
        m.end_reason = reason

        result = MatchResult(
            match_id=m.match_id,
            winner_id=m.winner_id,
            winner_name=winner.name if winner else None,
            duration_s=m.elapsed_s(self._now_ms),
            timestamp=time.time(),
            end_reason=reason,
            powerups_collected=m.powerups_collected,
            hazards_triggered=m.hazards_triggered,
            predictions=self._predictions.settle(m.match_id, m.winner_id),
        )
        self._recent_results.append(result)
        self._completed += 1

        for sink in self._sinks:
            try:
                sink.record(result)
            except Exception:
                logger.exception("Result sink %r failed for match %d", sink, m.match_id)

        if winner:
            logger.info("=== Match %d over (%s): %s wins after %.1fs ===",
                        m.match_id, reason.name.lower(), winner.name, result.duration_s)
        else:
            logger.info("=== Match %d over (%s): draw after %.1fs ===",
                        m.match_id, reason.name.lower(), result.duration_s)

        self._publish(
            "matchEnd",
            f"{winner.name} wins match {m.match_id}" if winner else f"Match {m.match_id} is a draw",
            {"winner": self.gladiator_view(winner) if winner else None, "stats": result.to_dict()},
            (winner.id,) if winner else (),
        )
        self._voting.open(m.match_id, dict(m.gladiator_names))

        delay = self._config.reset_delay_s * 1000
        m.reset_at_ms = self._now_ms + delay
        self._scheduler.schedule(delay, self._reset, label="match-reset")
        return result

    def _pick_winner(self) -> Agent | None:
        """Last one standing, or the healthiest survivor at timeout.  Ties are draws."""
        alive = self._registry.live_agents()
        if not alive:
            return None
        best = max(a.health for a in alive)
        leaders = [a for a in alive if a.health == best]
        return leaders[0] if len(leaders) == 1 else None

    def _reset(self) -> None:
        m = self._match
        if m is not None:
            m.state = MatchState.RESETTING
            logger.info("Resetting arena after match %d (%d match timers dropped)",
                        m.match_id, self._scheduler.pending(include_service=False))
        self.start_match()

    def _teardown(self) -> None:
        """Drop every agent, effect and match timer.  Service timers survive."""
        self._scheduler.new_epoch()
        self._effects.stop()
        self._registry.clear()
        self._physics.clear()
        self._knockouts_seen.clear()
        self._countdown = None

    # -- external commands --

    def ensure_stats(self, agent: Agent) -> AgentStats:
        """Return *agent*'s stat block, regenerating it if it has gone missing."""
        if agent.stats is None:
            logger.warning("Gladiator %d had no stats; regenerating", agent.id)
            agent.stats = self._stats.generate()
        return agent.stats

    def gladiator_view(self, agent: Agent) -> dict[str, Any]:
        stats = self.ensure_stats(agent)
        return {
            "id": agent.id,
            "name": agent.name,
            "state": agent.state.name,
            "active": agent.active,
            "health": stats.health,
            "max_health": stats.max_health,
            "stats": asdict(stats),
            "effective": {
                "strength": agent.effective_strength(),
                "speed": agent.effective_speed(),
                "defense": agent.effective_defense(),
            },
            "damage_dealt": agent.damage_dealt,
            "knockouts": agent.knockouts,
        }

    def select_gladiator(self, gladiator_id: int) -> dict[str, Any] | None:
        """Mark a gladiator as the spectator's focus.  None if it is not in the arena."""
        agent = self._registry.get_agent(gladiator_id)
        if agent is None or self._match is None:
            return None
        self._match.selected_gladiator_id = agent.id
        view = self.gladiator_view(agent)
        self._publish("gladiatorSelected", f"{agent.name} selected", view, (agent.id,))
        return view

    def predict(self, address: str, gladiator_id: int, amount: int) -> PredictionResult:
        if self._match is None:
            return PredictionResult(False, "No match in progress", code="closed")
        agent = self._registry.live_agent(gladiator_id)
        result = self._predictions.place(self._match, address, gladiator_id, amount, agent is not None)
        if result.success:
            self._publish(
                "predictionMade",
                f"{address} backed {agent.name} with {amount}",
                {"gladiator_id": gladiator_id, "amount": amount, "voter": address,
                 "match_id": self._match.match_id},
                (gladiator_id,),
            )
        return result

    def refund_open_stakes(self) -> int:
        """Refund unsettled predictions and open MVP votes before this arena is discarded."""
        refunded = self._predictions.refund_open() + self._voting.cancel()
        if refunded:
            logger.info("Refunded %d open stakes", refunded)
        return refunded

    def _on_voting_ended(self, result: MVPVoteResult) -> None:
        self._publish(
            "mvpVotingEnded",
            f"MVP of match {result.match_id}: {result.mvp_name}",
            {
                "match_id": result.match_id,
                "mvp_gladiator_id": result.mvp_gladiator_id,
                "total_votes": result.total_votes,
                "random_pick": result.random_pick,
            },
        )

    # -- snapshots & headless running --

    def create_snapshot(self) -> ArenaSnapshot:
        if self._match is None:
            self.start_match()
        return ArenaSnapshot.capture(self._tick, self._now_ms, self._match, self._registry, self.last_result)

    def run(self, max_matches: int = 1, max_ticks: int | None = None) -> list[MatchResult]:
        """Run headless until *max_matches* more matches have finished."""
        logger.info("=== Arena started (seed=%d) ===", self._rng.seed)
        target = self._completed + max_matches
        ticks = 0
        while self._completed < target:
            if max_ticks is not None and ticks >= max_ticks:
                logger.info("Stopped after %d ticks", ticks)
                break
            self.tick_once()
            self.drain_events()
            ticks += 1
            if self._tick % 200 == 0 and self._match is not None:
                logger.info("Tick %d: match %d, %d alive, %ds left", self._tick, self._match.match_id,
                            self._registry.live_count(), self._match.time_remaining_s)
        done = max_matches - (target - self._completed)
        return list(self._recent_results)[-done:] if done > 0 else []
