"""Versioned API route modules."""

from fastapi import APIRouter

from arena.api.routes.config import router as config_router
from arena.api.routes.control import router as control_router
from arena.api.routes.gladiators import router as gladiators_router
from arena.api.routes.history import router as history_router
from arena.api.routes.mvp import router as mvp_router
from arena.api.routes.predictions import router as predictions_router
from arena.api.routes.state import router as state_router
from arena.api.routes.wallet import router as wallet_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(state_router, tags=["State"])
api_router.include_router(gladiators_router, tags=["Gladiators"])
api_router.include_router(predictions_router, tags=["Predictions"])
api_router.include_router(wallet_router, tags=["Wallet"])
api_router.include_router(mvp_router, tags=["MVP"])
api_router.include_router(history_router, tags=["History"])
api_router.include_router(control_router, tags=["Control"])
api_router.include_router(config_router, tags=["Config"])

__all__ = ["api_router"]
