"""Spectator services: ledger, predictions, MVP voting, match history."""

from arena.services.ledger import InMemoryLedger, Ledger, TransactionResult
from arena.services.match_history import MatchHistory, PlayerStats, ResultSink
from arena.services.mvp_voting import MVPVoteResult, MVPVoting, VoteResult
from arena.services.predictions import PredictionBook, PredictionResult

__all__ = [
    "InMemoryLedger",
    "Ledger",
    "MVPVoteResult",
    "MVPVoting",
    "MatchHistory",
    "PlayerStats",
    "PredictionBook",
    "PredictionResult",
    "ResultSink",
    "TransactionResult",
    "VoteResult",
]
