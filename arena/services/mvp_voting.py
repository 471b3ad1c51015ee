"""Post-match MVP voting.

Voting opens when a match ends and runs on service timers, so it keeps
going while the arena resets and the next match starts.  It closes after
``mvp_voting_ms``, or ``mvp_after_vote_ms`` after the first accepted vote,
whichever comes first.  Opening a new session closes the previous one.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from functools import partial
from typing import TYPE_CHECKING, Callable

from arena.core.enums import Domain

if TYPE_CHECKING:
    from arena.config import ArenaConfig
    from arena.services.ledger import Ledger
    from arena.systems.rng import ArenaRNG
    from arena.systems.scheduler import Scheduler, Timer

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class VoteResult:
    success: bool
    message: str
    code: str = ""


@dataclass(frozen=True, slots=True)
class MVPVoteResult:
    match_id: int
    mvp_gladiator_id: int | None
    mvp_name: str | None
    total_votes: int
    votes_by_gladiator: dict[int, int]
    random_pick: bool
    timestamp: float


@dataclass(slots=True)
class _Session:
    match_id: int
    candidates: dict[int, str]
    votes: dict[str, int] = field(default_factory=dict)
    timer: Timer | None = None
    closes_at_ms: int = 0


class MVPVoting:
    """One voting session at a time plus the results of finished ones."""

    def __init__(
        self,
        config: ArenaConfig,
        ledger: Ledger,
        scheduler: Scheduler,
        rng: ArenaRNG,
        on_end: Callable[[MVPVoteResult], None] | None = None,
    ) -> None:
        self._config = config
        self._ledger = ledger
        self._scheduler = scheduler
        self._rng = rng
        self._on_end = on_end
        self._session: _Session | None = None
        self._results: dict[int, MVPVoteResult] = {}

    @property
    def is_open(self) -> bool:
        return self._session is not None

    @property
    def current_match_id(self) -> int | None:
        return self._session.match_id if self._session else None

    def closes_in_ms(self) -> int | None:
        if self._session is None:
            return None
        return max(0, self._session.closes_at_ms - self._scheduler.now_ms)

    def candidates(self) -> dict[int, str]:
        return dict(self._session.candidates) if self._session else {}

    def result_for(self, match_id: int) -> MVPVoteResult | None:
        return self._results.get(match_id)

    def open(self, match_id: int, candidates: dict[int, str]) -> None:
        if self._session is not None:
            logger.info("Closing MVP voting for match %d early: match %d ended", self._session.match_id, match_id)
            self.close()
        session = _Session(match_id=match_id, candidates=dict(candidates))
        self._session = session
        self._arm(session, self._config.mvp_voting_ms)
        logger.info("MVP voting open for match %d (%d candidates)", match_id, len(candidates))

    def vote(self, voter: str, gladiator_id: int) -> VoteResult:
        session = self._session
        if session is None:
            return VoteResult(False, "Voting is not currently active", code="closed")
        if gladiator_id not in session.candidates:
            return VoteResult(False, "Gladiator is not eligible for MVP voting", code="not_eligible")
        if voter in session.votes:
            return VoteResult(False, "You have already voted in this match", code="duplicate")

        cost = self._config.mvp_vote_cost
        tx = self._ledger.spend(voter, cost, reason=f"mvp vote match {session.match_id}")
        if not tx.success:
            return VoteResult(False, f"Not enough tokens to vote (need {cost})", code="insufficient_balance")

        first = not session.votes
        session.votes[voter] = gladiator_id
        logger.debug("MVP vote by %s for gladiator %d (match %d)", voter, gladiator_id, session.match_id)
        if first:
            remaining = session.closes_at_ms - self._scheduler.now_ms
            if self._config.mvp_after_vote_ms < remaining:
                self._arm(session, self._config.mvp_after_vote_ms)
        return VoteResult(True, "Vote recorded")

    def close(self) -> MVPVoteResult | None:
        """Tally the open session.  Returns None when nothing is open."""
        session = self._session
        if session is None:
            return None
        self._session = None
        if session.timer is not None:
            session.timer.cancel()

        counts = {gid: 0 for gid in session.candidates}
        for gid in session.votes.values():
            counts[gid] += 1

        mvp_id: int | None = None
        best = 0
        for gid, count in counts.items():
            if count > best:
                mvp_id, best = gid, count
        random_pick = mvp_id is None and bool(counts)
        if random_pick:
            mvp_id = self._rng.choice(Domain.ECONOMY, list(counts))

        result = MVPVoteResult(
            match_id=session.match_id,
            mvp_gladiator_id=mvp_id,
            mvp_name=session.candidates.get(mvp_id) if mvp_id is not None else None,
            total_votes=len(session.votes),
            votes_by_gladiator=counts,
            random_pick=random_pick,
            timestamp=time.time(),
        )
        self._results[session.match_id] = result
        logger.info("MVP for match %d: %s (%d votes%s)", session.match_id, result.mvp_name,
                    result.total_votes, ", random pick" if random_pick else "")

        if self._on_end is not None:
            try:
                self._on_end(result)
            except Exception:
                logger.exception("MVP voting listener failed for match %d", session.match_id)
        return result

    def cancel(self) -> int:
        """Abandon the open session without a result and refund every vote fee.

        Returns the number of refunded votes.
        """
        session = self._session
        if session is None:
            return 0
        self._session = None
        if session.timer is not None:
            session.timer.cancel()
        cost = self._config.mvp_vote_cost
        for voter in session.votes:
            self._ledger.mint(voter, cost, reason=f"mvp vote refund match {session.match_id}")
        logger.info("MVP voting for match %d cancelled, %d votes refunded", session.match_id, len(session.votes))
        return len(session.votes)

    def _arm(self, session: _Session, delay_ms: int) -> None:
        if session.timer is not None:
            session.timer.cancel()
        session.closes_at_ms = self._scheduler.now_ms + delay_ms
        session.timer = self._scheduler.schedule(
            delay_ms, partial(self._close_if_current, session.match_id),
            service=True, label="mvp-voting-close",
        )

    def _close_if_current(self, match_id: int) -> None:
        if self._session is not None and self._session.match_id == match_id:
            self.close()
