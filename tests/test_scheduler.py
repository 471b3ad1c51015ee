"""Tests for the simulation-time scheduler: ordering, epochs, owners."""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from arena.systems.scheduler import Scheduler


class TestOrdering:

    def test_fires_in_due_order(self):
        s = Scheduler()
        fired = []
        s.schedule(300, lambda: fired.append("c"))
        s.schedule(100, lambda: fired.append("a"))
        s.schedule(200, lambda: fired.append("b"))
        s.advance(1000)
        assert fired == ["a", "b", "c"]

    def test_same_due_time_keeps_schedule_order(self):
        s = Scheduler()
        fired = []
        for name in "xyz":
            s.schedule(100, lambda n=name: fired.append(n))
        s.advance(100)
        assert fired == ["x", "y", "z"]

    def test_not_due_yet(self):
        s = Scheduler()
        fired = []
        s.schedule(500, lambda: fired.append(1))
        assert s.advance(499) == 0
        assert s.advance(500) == 1
        assert fired == [1]

    def test_cancelled_timer_never_fires(self):
        s = Scheduler()
        fired = []
        t = s.schedule(100, lambda: fired.append(1))
        t.cancel()
        s.advance(200)
        assert fired == []

    def test_repeating_timer(self):
        s = Scheduler()
        fired = []
        s.schedule(100, lambda: fired.append(s.now_ms), repeat=True)
        for now in (100, 200, 300, 350):
            s.advance(now)
        assert len(fired) == 3

    def test_repeat_needs_positive_interval(self):
        with pytest.raises(ValueError):
            Scheduler().schedule(0, lambda: None, repeat=True)

    def test_callback_may_schedule_more(self):
        s = Scheduler()
        fired = []
        s.schedule(100, lambda: s.schedule(0, lambda: fired.append("chained")))
        s.advance(100)
        assert fired == ["chained"]


class TestEpochs:

    def test_new_epoch_drops_match_timers(self):
        s = Scheduler()
        fired = []
        s.schedule(100, lambda: fired.append("match"))
        s.new_epoch()
        s.advance(200)
        assert fired == []

    def test_service_timers_survive_epochs(self):
        s = Scheduler()
        fired = []
        s.schedule(100, lambda: fired.append("service"), service=True)
        s.new_epoch()
        s.advance(200)
        assert fired == ["service"]

    def test_epoch_change_inside_callback(self):
        s = Scheduler()
        fired = []
        s.schedule(100, s.new_epoch)
        s.schedule(100, lambda: fired.append("stale"))
        s.schedule(100, lambda: fired.append("service"), service=True)
        s.advance(100)
        assert fired == ["service"]

    def test_pending_counts(self):
        s = Scheduler()
        s.schedule(100, lambda: None)
        s.schedule(100, lambda: None, service=True)
        assert s.pending() == 2
        assert s.pending(include_service=False) == 1


class TestOwners:

    def test_dead_owner_drops_timer(self):
        alive = {1: True, 2: False}
        s = Scheduler(liveness=lambda eid: alive.get(eid, False))
        fired = []
        s.schedule(100, lambda: fired.append(1), owner_id=1)
        s.schedule(100, lambda: fired.append(2), owner_id=2)
        s.advance(100)
        assert fired == [1]

    def test_owner_dying_before_due(self):
        alive = {1: True}
        s = Scheduler(liveness=lambda eid: alive.get(eid, False))
        fired = []
        s.schedule(100, lambda: fired.append(1), owner_id=1)
        alive[1] = False
        s.advance(100)
        assert fired == []
