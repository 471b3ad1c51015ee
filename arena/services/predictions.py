"""Prediction book: spectators back a gladiator before the match is decided."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from arena.engine.match import PredictionRecord

if TYPE_CHECKING:
    from arena.config import ArenaConfig
    from arena.engine.match import Match
    from arena.services.ledger import Ledger

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PredictionResult:
    success: bool
    message: str
    record: PredictionRecord | None = None
    code: str = ""           # failure kind, empty on success


class PredictionBook:
    """Open predictions for the live match.

    Rules for ``place``:
      - the match is Spawning or Running,
      - the gladiator belongs to this match and is still active,
      - one prediction per address per match,
      - the stake is spent from the ledger first.
    """

    def __init__(self, config: ArenaConfig, ledger: Ledger) -> None:
        self._config = config
        self._ledger = ledger
        self._match_id: int | None = None
        self._entries: dict[str, PredictionRecord] = {}

    @property
    def match_id(self) -> int | None:
        return self._match_id

    def entries(self) -> list[PredictionRecord]:
        return list(self._entries.values())

    def open(self, match_id: int) -> None:
        """Start a fresh book.  Anything left from an unsettled match is dropped."""
        if self._entries and self._match_id != match_id:
            logger.warning("Dropping %d unsettled predictions from match %s", len(self._entries), self._match_id)
        self._match_id = match_id
        self._entries = {}

    def place(
        self,
        current: Match,
        address: str,
        gladiator_id: int,
        amount: int,
        gladiator_active: bool,
    ) -> PredictionResult:
        if amount <= 0:
            return PredictionResult(False, "Amount must be positive", code="invalid_amount")
        if not current.accepting_predictions:
            return PredictionResult(False, "Predictions are closed for this match", code="closed")
        if gladiator_id not in current.gladiator_ids or not gladiator_active:
            return PredictionResult(False, f"Gladiator {gladiator_id} is not fighting", code="unknown_gladiator")
        if self._match_id != current.match_id:
            self.open(current.match_id)
        if address in self._entries:
            return PredictionResult(False, "Already predicted this match", code="duplicate")

        tx = self._ledger.spend(address, amount, reason=f"prediction match {current.match_id}")
        if not tx.success:
            return PredictionResult(False, tx.message, code="insufficient_balance")

        record = PredictionRecord(address=address, gladiator_id=gladiator_id, amount=amount)
        self._entries[address] = record
        logger.info("%s predicted gladiator %d for %d tokens (match %d)", address, gladiator_id, amount, current.match_id)
        return PredictionResult(True, "Prediction placed", record)

    def refund_open(self) -> int:
        """Return every open stake and clear the book.  Returns how many were refunded."""
        refunded = 0
        for record in self._entries.values():
            tx = self._ledger.mint(record.address, record.amount, reason=f"prediction refund match {self._match_id}")
            if tx.success:
                refunded += 1
            else:
                logger.warning("Refund to %s failed: %s", record.address, tx.message)
        self._entries = {}
        self._match_id = None
        return refunded

    def settle(self, match_id: int, winner_id: int | None) -> tuple[PredictionRecord, ...]:
        """Mark correctness, pay correct predictions, and clear the book.

        A draw has no correct predictions.
        """
        if self._match_id != match_id:
            return ()
        payout = self._config.prediction_payout
        settled: list[PredictionRecord] = []
        for record in self._entries.values():
            correct = winner_id is not None and record.gladiator_id == winner_id
            if correct:
                tx = self._ledger.mint(record.address, record.amount * payout, reason=f"prediction win match {match_id}")
                if not tx.success:
                    logger.warning("Payout to %s failed: %s", record.address, tx.message)
            settled.append(replace(record, was_correct=correct))
        self._entries = {}
        self._match_id = None
        if settled:
            logger.info("Settled %d predictions for match %d (%d correct)",
                        len(settled), match_id, sum(1 for r in settled if r.was_correct))
        return tuple(settled)
