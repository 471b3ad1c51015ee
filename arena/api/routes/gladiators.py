"""GET /api/v1/gladiators/{id} and POST /api/v1/gladiators/{id}/select."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from arena.api.dependencies import get_engine_manager
from arena.api.engine_manager import EngineManager
from arena.api.routes.state import serialize_gladiator
from arena.api.schemas import GladiatorSchema, SelectionResponse

router = APIRouter()


def _snapshot_gladiator(manager: EngineManager, gladiator_id: int):
    snapshot = manager.get_snapshot()
    if snapshot is None:
        raise HTTPException(status_code=503, detail="No snapshot available yet.")
    agent = snapshot.gladiators.get(gladiator_id)
    if agent is None:
        raise HTTPException(status_code=404, detail=f"Gladiator {gladiator_id} is not in the arena.")
    return snapshot, agent


@router.get("/gladiators/{gladiator_id}", response_model=GladiatorSchema)
def get_gladiator(
    gladiator_id: int,
    manager: EngineManager = Depends(get_engine_manager),
) -> GladiatorSchema:
    _, agent = _snapshot_gladiator(manager, gladiator_id)
    return serialize_gladiator(agent)


@router.post("/gladiators/{gladiator_id}/select", response_model=SelectionResponse)
def select_gladiator(
    gladiator_id: int,
    manager: EngineManager = Depends(get_engine_manager),
) -> SelectionResponse:
    if manager.select_gladiator(gladiator_id) is None:
        raise HTTPException(status_code=404, detail=f"Gladiator {gladiator_id} is not in the arena.")
    snapshot, agent = _snapshot_gladiator(manager, gladiator_id)
    return SelectionResponse(gladiator=serialize_gladiator(agent), match_id=snapshot.match_id)
