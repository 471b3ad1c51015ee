"""MVP voting routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from arena.api.dependencies import get_engine_manager
from arena.api.engine_manager import EngineManager
from arena.api.schemas import MVPResultResponse, VoteRequest, VoteResponse

router = APIRouter()

FAILURE_STATUS = {
    "closed": 409,
    "not_eligible": 404,
    "duplicate": 409,
    "insufficient_balance": 402,
}


@router.post("/mvp/vote", response_model=VoteResponse)
def cast_vote(
    body: VoteRequest,
    manager: EngineManager = Depends(get_engine_manager),
) -> VoteResponse:
    result = manager.vote(body.address, body.gladiator_id)
    if not result.success:
        raise HTTPException(status_code=FAILURE_STATUS.get(result.code, 400), detail=result.message)
    return VoteResponse(
        success=True,
        message=result.message,
        match_id=manager.loop.voting.current_match_id,
        balance=manager.ledger.get_balance(body.address),
    )


@router.get("/mvp/{match_id}", response_model=MVPResultResponse)
def get_mvp(
    match_id: int,
    manager: EngineManager = Depends(get_engine_manager),
) -> MVPResultResponse:
    voting = manager.loop.voting
    if voting.is_open and voting.current_match_id == match_id:
        return MVPResultResponse(match_id=match_id, open=True, closes_in_ms=voting.closes_in_ms())

    result = manager.mvp_result(match_id)
    if result is None:
        raise HTTPException(status_code=404, detail=f"No MVP voting for match {match_id}.")
    return MVPResultResponse(
        match_id=result.match_id,
        open=False,
        mvp_gladiator_id=result.mvp_gladiator_id,
        mvp_name=result.mvp_name,
        total_votes=result.total_votes,
        votes_by_gladiator=result.votes_by_gladiator,
        random_pick=result.random_pick,
    )
