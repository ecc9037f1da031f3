from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import router
from app.live import build_default_live_feed, router as live_router
from app.web import router as web_router
from datastore.registry import build_default_registry
from logging_config import configure_logging
from services.simulator import build_default_simulator
from settings import get_settings
from storage.geofence_store import build_default_geofence_store


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    simulator = build_default_simulator()
    simulator.start()
    try:
        yield
    finally:
        simulator.stop()
        build_default_live_feed.cache_clear()
        build_default_simulator.cache_clear()
        build_default_registry.cache_clear()
        build_default_geofence_store.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="FarmSense",
        description="Livestock telemetry simulator with geofence breach alerts.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(get_settings().cors_origins),
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.include_router(router)
    app.include_router(live_router)
    app.include_router(web_router)
    return app


app = create_app()
