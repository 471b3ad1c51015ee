"""Wallet routes: balance, prediction stats and free development tokens."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from arena.api.dependencies import get_engine_manager
from arena.api.engine_manager import EngineManager
from arena.api.schemas import PlayerStatsSchema, TransactionSchema, WalletResponse

router = APIRouter()


def serialize_player(s) -> PlayerStatsSchema:
    return PlayerStatsSchema(
        address=s.address, predictions=s.predictions, correct=s.correct,
        wagered=s.wagered, winnings=s.winnings, win_rate=s.win_rate,
    )


def _wallet(manager: EngineManager, address: str) -> WalletResponse:
    stats = manager.history.player(address)
    return WalletResponse(
        address=address,
        balance=manager.ledger.get_balance(address),
        stats=serialize_player(stats) if stats else None,
        transactions=[
            TransactionSchema(kind=t.kind, amount=t.amount, balance_after=t.balance_after,
                              reason=t.reason, timestamp=t.timestamp)
            for t in reversed(manager.ledger.history(address))
        ],
    )


@router.get("/wallet/{address}", response_model=WalletResponse)
def get_wallet(
    address: str,
    manager: EngineManager = Depends(get_engine_manager),
) -> WalletResponse:
    return _wallet(manager, address)


@router.post("/wallet/{address}/free-tokens", response_model=WalletResponse)
def free_tokens(
    address: str,
    manager: EngineManager = Depends(get_engine_manager),
) -> WalletResponse:
    tx = manager.give_free_tokens(address)
    if not tx.success:
        raise HTTPException(status_code=400, detail=tx.message)
    return _wallet(manager, address)
