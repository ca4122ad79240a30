"""
app.py - FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn.
It wires the tour matching service and the hut availability repository,
then registers the tour router.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from backend.controllers.tour_controller import router as tour_router
from backend.repository.hut_repository import HutAvailabilityRepository
from backend.services.matching_service import TourMatchingService
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build and wire the FastAPI application.

    Services live on app.state so controllers resolve them through
    dependency providers instead of module globals.
    """
    settings = settings or get_settings()

    # --- Repository (upstream reservation API) ---
    hut_repository = HutAvailabilityRepository(settings=settings)

    # --- Services (pure matching logic) ---
    matching_service = TourMatchingService(settings=settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Log effective configuration before accepting requests."""
        _startup(app)
        yield
        app.state.hut_repository.clear_cache()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # --- Routers ---
    app.include_router(tour_router)

    # --- Inject services into app.state for dependency resolution ---
    app.state.settings = settings
    app.state.hut_repository = hut_repository
    app.state.matching_service = matching_service

    return app


def _startup(app: FastAPI) -> None:
    settings: Settings = app.state.settings
    matching_service: TourMatchingService = app.state.matching_service
    logger.info(
        "Startup | upstream=%s | horizon_months=%s | placeholder_policy=%s",
        settings.hut_api_base_url,
        matching_service.config.horizon_months,
        matching_service.config.placeholder_policy.value,
    )
    logger.info("Startup complete - system ready")


# Module-level app object for uvicorn
app = create_app()
