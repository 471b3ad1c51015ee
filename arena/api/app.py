"""FastAPI application factory with lifespan management."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from arena import __version__
from arena.api.dependencies import set_engine_manager
from arena.api.engine_manager import EngineManager
from arena.api.routes import api_router
from arena.config import ArenaConfig
from arena.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def create_app(config: ArenaConfig | None = None) -> FastAPI:
    """Build and return the fully-configured FastAPI application."""
    if config is None:
        config = ArenaConfig()

    _config = config

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        setup_logging(_config.log_level)
        manager = EngineManager(_config)
        set_engine_manager(manager)
        manager.start()
        logger.info("API server started, arena running.")
        yield
        manager.stop()
        set_engine_manager(None)
        logger.info("API server shutting down.")

    app = FastAPI(
        title="Gladiator Arena",
        description=(
            "Autonomous gladiator arena: live state, spectator predictions and MVP voting.\n\n"
            "## API Groups\n\n"
            "- **State** - Live arena snapshot, gladiators and the event feed\n"
            "- **Gladiators** - Per-gladiator detail and spectator selection\n"
            "- **Predictions** - Back a gladiator before the match is decided\n"
            "- **Wallet** - Token balances and free tokens\n"
            "- **MVP** - Post-match MVP voting\n"
            "- **History** - Finished matches and the prediction leaderboard\n"
            "- **Control** - Arena lifecycle: start, pause, resume, step, stop, reset\n"
            "- **Config** - Read-only arena configuration\n"
        ),
        version=__version__,
        lifespan=lifespan,
        openapi_tags=[
            {"name": "State", "description": "Live arena state polled by the frontend."},
            {"name": "Gladiators", "description": "Gladiator detail and spectator selection."},
            {"name": "Predictions", "description": "Token-backed winner predictions for the live match."},
            {"name": "Wallet", "description": "Development ledger balances and free tokens."},
            {"name": "MVP", "description": "Post-match MVP voting and results."},
            {"name": "History", "description": "Finished match results and the prediction leaderboard."},
            {"name": "Control", "description": "Arena lifecycle controls."},
            {"name": "Config", "description": "Read-only arena configuration."},
        ],
    )

    # CORS: allow any origin in dev
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)
    return app
