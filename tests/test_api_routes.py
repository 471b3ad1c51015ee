"""Tests for the REST layer, calling route handlers against a live EngineManager.

The manager is never started: ticks are driven synchronously through
``advance`` or the ``step`` control.
"""

import os
import sys

import pytest
from fastapi import HTTPException

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from arena.api.engine_manager import EngineManager
from arena.api.routes.config import get_config
from arena.api.routes.control import ControlAction, control, set_speed
from arena.api.routes.gladiators import get_gladiator, select_gladiator
from arena.api.routes.history import get_history, get_leaderboard
from arena.api.routes.mvp import cast_vote, get_mvp
from arena.api.routes.predictions import place_prediction
from arena.api.routes.state import get_state
from arena.api.routes.wallet import free_tokens, get_wallet
from arena.api.schemas import PredictionRequest, VoteRequest
from arena.config import ArenaConfig
from arena.core.enums import EndReason


def _manager(**overrides):
    settings = dict(rng_seed=13, reset_delay_s=1)
    settings.update(overrides)
    return EngineManager(ArenaConfig(**settings))


def _first_gladiator(mgr):
    return mgr.loop.match.gladiator_ids[0]


class TestState:

    def test_initial_state(self):
        mgr = _manager()
        state = get_state(since_tick=0, manager=mgr)
        assert state.match_id == 1
        assert state.match_state == "RUNNING"
        assert state.alive_count == 4
        assert len(state.gladiators) == 4
        assert state.time_remaining_s == 60
        assert any(e.category == "matchStart" for e in state.events)
        assert not state.running

    def test_since_tick_filters_events(self):
        mgr = _manager()
        mgr.advance(5)
        state = get_state(since_tick=100, manager=mgr)
        assert state.events == []
        assert state.tick == 5

    def test_voting_status_after_match(self):
        mgr = _manager()
        mgr.loop.end_match(EndReason.TIMEOUT)
        mgr.advance(1)
        state = get_state(since_tick=0, manager=mgr)
        assert state.voting is not None
        assert state.voting.match_id == 1
        assert state.last_result.match_id == 1
        assert state.reset_in_s is not None


class TestGladiators:

    def test_get_gladiator(self):
        mgr = _manager()
        gid = _first_gladiator(mgr)
        g = get_gladiator(gid, manager=mgr)
        assert g.id == gid
        assert g.health == g.max_health
        assert g.stats is not None

    def test_unknown_gladiator_404(self):
        mgr = _manager()
        with pytest.raises(HTTPException) as exc:
            get_gladiator(999, manager=mgr)
        assert exc.value.status_code == 404

    def test_select_gladiator(self):
        mgr = _manager()
        gid = _first_gladiator(mgr)
        resp = select_gladiator(gid, manager=mgr)
        assert resp.gladiator.id == gid
        assert mgr.get_snapshot().selected_gladiator_id == gid
        assert mgr.event_log.latest(1)[0].category == "gladiatorSelected"

    def test_select_unknown_404(self):
        with pytest.raises(HTTPException) as exc:
            select_gladiator(999, manager=_manager())
        assert exc.value.status_code == 404


class TestPredictions:

    def test_place_prediction(self):
        mgr = _manager()
        free_tokens("alice", manager=mgr)
        gid = _first_gladiator(mgr)
        resp = place_prediction(PredictionRequest(address="alice", gladiator_id=gid, amount=25), manager=mgr)
        assert resp.success
        assert resp.balance == 75
        assert resp.prediction.gladiator_id == gid

    def test_failure_codes_map_to_status(self):
        mgr = _manager()
        gid = _first_gladiator(mgr)
        with pytest.raises(HTTPException) as exc:
            place_prediction(PredictionRequest(address="broke", gladiator_id=gid, amount=5), manager=mgr)
        assert exc.value.status_code == 402

        with pytest.raises(HTTPException) as exc:
            place_prediction(PredictionRequest(address="alice", gladiator_id=999, amount=5), manager=mgr)
        assert exc.value.status_code == 404

        free_tokens("alice", manager=mgr)
        place_prediction(PredictionRequest(address="alice", gladiator_id=gid, amount=5), manager=mgr)
        with pytest.raises(HTTPException) as exc:
            place_prediction(PredictionRequest(address="alice", gladiator_id=gid, amount=5), manager=mgr)
        assert exc.value.status_code == 409

    def test_closed_after_match_end(self):
        mgr = _manager()
        free_tokens("alice", manager=mgr)
        gid = _first_gladiator(mgr)
        mgr.loop.end_match(EndReason.TIMEOUT)
        with pytest.raises(HTTPException) as exc:
            place_prediction(PredictionRequest(address="alice", gladiator_id=gid, amount=5), manager=mgr)
        assert exc.value.status_code == 409


class TestWallet:

    def test_empty_wallet(self):
        wallet = get_wallet("nobody", manager=_manager())
        assert wallet.balance == 0
        assert wallet.stats is None
        assert wallet.transactions == []

    def test_free_tokens(self):
        mgr = _manager()
        wallet = free_tokens("alice", manager=mgr)
        assert wallet.balance == mgr.config.free_token_grant
        assert wallet.transactions[0].kind == "free_tokens"

    def test_ledger_survives_reset(self):
        mgr = _manager()
        free_tokens("alice", manager=mgr)
        control(ControlAction.reset, manager=mgr)
        assert get_wallet("alice", manager=mgr).balance == 100

    def test_reset_refunds_open_prediction(self):
        mgr = _manager()
        free_tokens("alice", manager=mgr)
        place_prediction(PredictionRequest(address="alice", gladiator_id=_first_gladiator(mgr), amount=25),
                         manager=mgr)
        control(ControlAction.reset, manager=mgr)
        wallet = get_wallet("alice", manager=mgr)
        assert wallet.balance == 100
        assert wallet.transactions[0].reason == "prediction refund match 1"

    def test_reset_refunds_open_mvp_vote(self):
        mgr = _manager()
        free_tokens("bob", manager=mgr)
        gid = _first_gladiator(mgr)
        mgr.loop.end_match(EndReason.TIMEOUT)
        cast_vote(VoteRequest(address="bob", gladiator_id=gid), manager=mgr)
        assert get_wallet("bob", manager=mgr).balance == 99
        control(ControlAction.reset, manager=mgr)
        assert get_wallet("bob", manager=mgr).balance == 100


class TestMVP:

    def test_vote_and_result(self):
        mgr = _manager()
        free_tokens("alice", manager=mgr)
        gid = _first_gladiator(mgr)
        mgr.loop.end_match(EndReason.TIMEOUT)
        resp = cast_vote(VoteRequest(address="alice", gladiator_id=gid), manager=mgr)
        assert resp.success
        assert resp.balance == 99
        status = get_mvp(1, manager=mgr)
        assert status.open
        mgr.advance(5000 // mgr.config.tick_ms)
        result = get_mvp(1, manager=mgr)
        assert not result.open
        assert result.mvp_gladiator_id == gid

    def test_vote_while_closed_is_409(self):
        mgr = _manager()
        free_tokens("alice", manager=mgr)
        with pytest.raises(HTTPException) as exc:
            cast_vote(VoteRequest(address="alice", gladiator_id=_first_gladiator(mgr)), manager=mgr)
        assert exc.value.status_code == 409

    def test_unknown_match_404(self):
        with pytest.raises(HTTPException) as exc:
            get_mvp(42, manager=_manager())
        assert exc.value.status_code == 404


class TestHistory:

    def test_history_and_leaderboard(self):
        mgr = _manager(leaderboard_min_predictions=1)
        free_tokens("alice", manager=mgr)
        gid = _first_gladiator(mgr)
        place_prediction(PredictionRequest(address="alice", gladiator_id=gid, amount=10), manager=mgr)
        mgr.loop.end_match(EndReason.TIMEOUT)
        history = get_history(limit=10, manager=mgr)
        assert [m.match_id for m in history.matches] == [1]
        assert history.matches[0].predictions[0].address == "alice"
        board = get_leaderboard(limit=10, manager=mgr)
        assert board.min_predictions == 1
        assert [p.address for p in board.players] == ["alice"]


class TestControl:

    def test_step_when_stopped_runs_one_tick(self):
        mgr = _manager()
        resp = control(ControlAction.step, manager=mgr)
        assert resp.status == "ok"
        assert resp.tick == 1

    def test_pause_when_not_running(self):
        resp = control(ControlAction.pause, manager=_manager())
        assert resp.status == "error"

    def test_stop_when_not_running_is_noop(self):
        assert control(ControlAction.stop, manager=_manager()).status == "noop"

    def test_reset_rebuilds_arena(self):
        mgr = _manager()
        mgr.advance(10)
        resp = control(ControlAction.reset, manager=mgr)
        assert resp.status == "ok"
        assert resp.tick == 0
        assert mgr.get_snapshot().match_id == 1

    def test_start_and_stop_thread(self):
        mgr = _manager()
        try:
            assert control(ControlAction.start, manager=mgr).status == "ok"
            assert mgr.running
            assert control(ControlAction.start, manager=mgr).status == "noop"
            assert control(ControlAction.pause, manager=mgr).status == "ok"
            assert mgr.paused
            assert control(ControlAction.resume, manager=mgr).status == "ok"
        finally:
            control(ControlAction.stop, manager=mgr)
        assert not mgr.running

    def test_speed(self):
        mgr = _manager()
        resp = set_speed(tps=10.0, manager=mgr)
        assert resp.status == "ok"
        assert mgr.tick_rate == pytest.approx(0.1)


class TestConfigRoute:

    def test_config_exposed(self):
        cfg = get_config(manager=_manager())
        assert cfg.world_width == 800
        assert cfg.match_duration_s == 60
        assert cfg.damage_model == "flat"
        assert cfg.rng_seed == 13
