"""PlantTracker FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from planttracker.api.routers import garden, me, photos, zone
from planttracker.core import setup_logging
from planttracker.core.config import Settings, get_settings
from planttracker.core.store import GardenStore
from planttracker.core.zone import ZoneService
from planttracker.models import Base
from planttracker.models.base import create_session_factory

logger = logging.getLogger("planttracker.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler — startup and shutdown."""
    settings: Settings = app.state.settings
    setup_logging(settings.log_level)

    engine, SessionFactory = create_session_factory(settings.database_url)

    # Create tables (idempotent)
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables initialized")

    store = GardenStore(SessionFactory)
    app.state.store = store
    app.state.zone_service = ZoneService(settings, store)

    logger.info(f"PlantTracker started on http://{settings.host}:{settings.port}")
    yield

    engine.dispose()
    logger.info("PlantTracker shutdown complete")


def create_app(settings: Settings | None = None) -> FastAPI:
    app = FastAPI(
        title="PlantTracker",
        description="Garden, photo and watering-reminder backend",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings or get_settings()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # API routers
    app.include_router(garden.router, prefix="/api/garden", tags=["garden"])
    app.include_router(photos.router, prefix="/api/garden/{plant_id}/photos", tags=["photos"])
    app.include_router(zone.router, prefix="/api/zone", tags=["zone"])
    app.include_router(me.router, prefix="/api/auth", tags=["profile"])

    # Health check
    @app.get("/health", tags=["system"])
    async def health():
        return {"status": "ok", "service": "planttracker", "version": "1.0.0"}

    return app


app = create_app()
