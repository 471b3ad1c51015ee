"""GET /api/v1/history and /api/v1/leaderboard."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from arena.api.dependencies import get_engine_manager
from arena.api.engine_manager import EngineManager
from arena.api.routes.state import serialize_result
from arena.api.routes.wallet import serialize_player
from arena.api.schemas import HistoryResponse, LeaderboardResponse

router = APIRouter()


@router.get("/history", response_model=HistoryResponse)
def get_history(
    limit: int = Query(20, ge=1, le=200),
    manager: EngineManager = Depends(get_engine_manager),
) -> HistoryResponse:
    return HistoryResponse(matches=[serialize_result(r) for r in manager.history.recent(limit)])


@router.get("/leaderboard", response_model=LeaderboardResponse)
def get_leaderboard(
    limit: int = Query(10, ge=1, le=100),
    manager: EngineManager = Depends(get_engine_manager),
) -> LeaderboardResponse:
    return LeaderboardResponse(
        min_predictions=manager.config.leaderboard_min_predictions,
        players=[serialize_player(s) for s in manager.history.leaderboard(limit)],
    )
