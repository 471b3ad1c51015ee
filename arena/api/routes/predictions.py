"""POST /api/v1/predictions: back a gladiator in the live match."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from arena.api.dependencies import get_engine_manager
from arena.api.engine_manager import EngineManager
from arena.api.schemas import PredictionRequest, PredictionResponse, PredictionSchema

router = APIRouter()

FAILURE_STATUS = {
    "invalid_amount": 422,
    "unknown_gladiator": 404,
    "closed": 409,
    "duplicate": 409,
    "insufficient_balance": 402,
}


@router.post("/predictions", response_model=PredictionResponse)
def place_prediction(
    body: PredictionRequest,
    manager: EngineManager = Depends(get_engine_manager),
) -> PredictionResponse:
    result = manager.predict(body.address, body.gladiator_id, body.amount)
    if not result.success:
        raise HTTPException(status_code=FAILURE_STATUS.get(result.code, 400), detail=result.message)

    snapshot = manager.get_snapshot()
    r = result.record
    return PredictionResponse(
        success=True,
        message=result.message,
        match_id=snapshot.match_id if snapshot else 0,
        prediction=PredictionSchema(address=r.address, gladiator_id=r.gladiator_id, amount=r.amount),
        balance=manager.ledger.get_balance(body.address),
    )
