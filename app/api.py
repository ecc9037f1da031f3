"""HTTP route definitions for the service."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.live import LiveFeed, get_live_feed
from app.schemas import (
    MAX_HISTORY_LIMIT,
    AnimalListResponse,
    AnimalState,
    GeofenceState,
    GeofenceUpdateRequest,
    HistoryEntry,
    HistoryResponse,
)
from datastore.registry import DEFAULT_HISTORY_LIMIT, UnknownAnimalError
from models.records import GEOFENCE_EVENT, SimulationEvent
from services.simulator import SimulationService, build_default_simulator

logger = logging.getLogger(__name__)

router = APIRouter()


def get_simulator() -> SimulationService:
    return build_default_simulator()


@router.get(
    "/api/animals",
    response_model=AnimalListResponse,
    summary="Current state of every tracked animal.",
)
async def list_animals(
    simulator: SimulationService = Depends(get_simulator),
) -> AnimalListResponse:
    readings = simulator.registry.snapshot()
    animals = [AnimalState.from_reading(reading) for reading in readings.values()]
    return AnimalListResponse(count=len(animals), animals=animals)


@router.get(
    "/api/animals/history",
    response_model=Dict[str, List[HistoryEntry]],
    summary="Recent history for every tracked animal.",
)
async def all_histories(
    limit: int = Query(DEFAULT_HISTORY_LIMIT, ge=1, le=MAX_HISTORY_LIMIT),
    simulator: SimulationService = Depends(get_simulator),
) -> Dict[str, List[HistoryEntry]]:
    histories = simulator.registry.history_all(limit)
    return {
        animal_id: [HistoryEntry.from_snapshot(entry) for entry in entries]
        for animal_id, entries in histories.items()
    }


@router.get(
    "/api/animals/{animal_id}",
    response_model=AnimalState,
    summary="Current state of one animal.",
)
async def get_animal(
    animal_id: str,
    simulator: SimulationService = Depends(get_simulator),
) -> AnimalState:
    try:
        reading = simulator.registry.reading(animal_id)
    except UnknownAnimalError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    return AnimalState.from_reading(reading)


@router.get(
    "/api/animals/{animal_id}/history",
    response_model=HistoryResponse,
    summary="Time series of recent readings for one animal, oldest first.",
)
async def get_animal_history(
    animal_id: str,
    limit: int = Query(DEFAULT_HISTORY_LIMIT, ge=1, le=MAX_HISTORY_LIMIT),
    simulator: SimulationService = Depends(get_simulator),
) -> HistoryResponse:
    try:
        entries = simulator.registry.history(animal_id, limit)
    except UnknownAnimalError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    history = [HistoryEntry.from_snapshot(entry) for entry in entries]
    return HistoryResponse(animal_id=animal_id, count=len(history), history=history)


@router.get(
    "/api/geofence",
    response_model=GeofenceState,
    summary="Current farm boundary.",
)
async def get_geofence(
    simulator: SimulationService = Depends(get_simulator),
) -> GeofenceState:
    return GeofenceState.from_geofence(simulator.store.get())


@router.post(
    "/api/geofence",
    response_model=GeofenceState,
    summary="Replace the farm boundary and notify live clients.",
)
async def update_geofence(
    request: GeofenceUpdateRequest,
    simulator: SimulationService = Depends(get_simulator),
    feed: LiveFeed = Depends(get_live_feed),
) -> GeofenceState:
    geofence = simulator.store.replace(request.polygon, request.name)
    feed.broadcast(SimulationEvent(kind=GEOFENCE_EVENT, payload=geofence))
    logger.info(
        "Geofence updated",
        extra={"geofence_name": geofence.name, "point_count": len(geofence.polygon)},
    )
    return GeofenceState.from_geofence(geofence)


@router.get(
    "/api/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /api/health for service status."}
