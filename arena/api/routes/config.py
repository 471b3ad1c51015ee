"""GET /api/v1/config: expose arena configuration."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from arena.api.dependencies import get_engine_manager
from arena.api.engine_manager import EngineManager
from arena.api.schemas import ArenaConfigResponse

router = APIRouter()


@router.get("/config", response_model=ArenaConfigResponse)
def get_config(
    manager: EngineManager = Depends(get_engine_manager),
) -> ArenaConfigResponse:
    cfg = manager.config
    return ArenaConfigResponse(
        world_width=cfg.world_width,
        world_height=cfg.world_height,
        rng_seed=cfg.rng_seed,
        tick_ms=cfg.tick_ms,
        match_duration_s=cfg.match_duration_s,
        reset_delay_s=cfg.reset_delay_s,
        agent_count=cfg.agent_count,
        damage_model=cfg.damage_model,
        attack_range=cfg.attack_range,
        attack_cooldown_ms=cfg.attack_cooldown_ms,
        powerup_target_radius=cfg.powerup_target_radius,
        prediction_payout=cfg.prediction_payout,
        mvp_vote_cost=cfg.mvp_vote_cost,
        mvp_voting_ms=cfg.mvp_voting_ms,
        free_token_grant=cfg.free_token_grant,
        tick_rate=manager.tick_rate,
    )
