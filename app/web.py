from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from app.schemas import MAX_HISTORY_LIMIT, AnimalState, GeofenceState, HistoryEntry
from datastore.registry import DEFAULT_HISTORY_LIMIT, UnknownAnimalError
from services.simulator import SimulationService, build_default_simulator
from settings import get_settings


templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))


def get_simulator() -> SimulationService:
    return build_default_simulator()


def _refresh_seconds() -> int:
    return max(1, round(get_settings().tick_interval_seconds))


router = APIRouter(include_in_schema=False)


@router.get("/ui", name="ui_index", response_class=HTMLResponse)
async def ui_index(
    request: Request,
    simulator: SimulationService = Depends(get_simulator),
) -> HTMLResponse:
    readings = simulator.registry.snapshot()
    animals = [AnimalState.from_reading(reading) for reading in readings.values()]
    return templates.TemplateResponse(
        request,
        "ui/index.html",
        {
            "animals": animals,
            "geofence": GeofenceState.from_geofence(simulator.store.get()),
            "breached": [animal for animal in animals if not animal.inside_geofence],
            "refresh_seconds": _refresh_seconds(),
        },
    )


@router.get("/ui/animals/{animal_id}", name="ui_animal_detail", response_class=HTMLResponse)
async def ui_animal_detail(
    request: Request,
    animal_id: str,
    limit: int = Query(DEFAULT_HISTORY_LIMIT, ge=1, le=MAX_HISTORY_LIMIT),
    simulator: SimulationService = Depends(get_simulator),
) -> HTMLResponse:
    try:
        reading = simulator.registry.reading(animal_id)
        history = simulator.registry.history(animal_id, limit)
    except UnknownAnimalError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc

    # Newest first reads better in a table.
    entries = [HistoryEntry.from_snapshot(entry) for entry in reversed(history)]
    return templates.TemplateResponse(
        request,
        "ui/detail.html",
        {
            "animal": AnimalState.from_reading(reading),
            "history": entries,
            "refresh_seconds": _refresh_seconds(),
        },
    )
