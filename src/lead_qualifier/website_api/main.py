"""FastAPI application factory for the lead scoring API."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..core.config import JsonRuleConfigStore
from ..engine import LeadScoringEngine
from ..team.roster import HttpAgentRoster, HttpInteractionProvider
from .config import settings
from .routes.health import router as health_router
from .routes.scoring import router as scoring_router

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def build_engine() -> LeadScoringEngine:
    """Create an engine wired to the collaborators named in the environment."""
    return LeadScoringEngine(
        config_store=JsonRuleConfigStore(Path(settings.config_path)),
        roster=HttpAgentRoster(settings.roster_url) if settings.roster_url else None,
        interactions=(HttpInteractionProvider(settings.interactions_url)
                      if settings.interactions_url else None),
        history_limit=settings.history_limit,
        collaborator_timeout=settings.collaborator_timeout,
    )


def create_app(engine: Optional[LeadScoringEngine] = None) -> FastAPI:
    """Create and configure the FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting lead scoring API")
        if getattr(app.state, "engine", None) is None:
            app.state.engine = build_engine()
            logger.info(f"Scoring config v{app.state.engine.config.version} active")
        yield
        app.state.engine.close()
        logger.info("Lead scoring API shutting down")

    app = FastAPI(
        title="Lead Qualifier API",
        description="Lead scoring, qualification stages and predictions",
        version="1.0.0",
        debug=settings.debug,
        lifespan=lifespan,
    )
    if engine is not None:
        app.state.engine = engine

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(scoring_router)

    return app
