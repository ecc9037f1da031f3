"""Pydantic schemas for the HTTP and WebSocket layer."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

from models.records import (
    AnimalReading,
    AnimalStatus,
    BreachAlert,
    Geofence,
    HistorySnapshot,
)
from settings import MAX_HISTORY_CAPACITY

MAX_HISTORY_LIMIT = MAX_HISTORY_CAPACITY
MAX_GEOFENCE_NAME_LENGTH = 120


class AnimalState(BaseModel):
    """Current reading of one animal as exposed to clients."""

    id: str
    name: str
    type: str = Field(..., description="Species tag.")
    emoji: str
    lat: float
    lng: float
    temperature: float
    heart_rate: int
    inside_geofence: bool
    status: AnimalStatus
    last_update: datetime

    @classmethod
    def from_reading(cls, reading: AnimalReading) -> "AnimalState":
        return cls(
            id=reading.profile.id,
            name=reading.profile.name,
            type=reading.profile.species,
            emoji=reading.profile.emoji,
            lat=reading.lat,
            lng=reading.lng,
            temperature=reading.temperature,
            heart_rate=reading.heart_rate,
            inside_geofence=reading.inside_geofence,
            status=reading.status,
            last_update=reading.last_update,
        )


class AnimalListResponse(BaseModel):
    count: int = Field(..., ge=0)
    animals: List[AnimalState] = Field(default_factory=list)


class HistoryEntry(BaseModel):
    timestamp: datetime
    lat: float
    lng: float
    temperature: float
    heart_rate: int
    inside_geofence: bool
    status: AnimalStatus

    @classmethod
    def from_snapshot(cls, snapshot: HistorySnapshot) -> "HistoryEntry":
        return cls(
            timestamp=snapshot.timestamp,
            lat=snapshot.lat,
            lng=snapshot.lng,
            temperature=snapshot.temperature,
            heart_rate=snapshot.heart_rate,
            inside_geofence=snapshot.inside_geofence,
            status=snapshot.status,
        )


class HistoryResponse(BaseModel):
    animal_id: str
    count: int = Field(..., ge=0)
    history: List[HistoryEntry] = Field(default_factory=list)


class GeofenceState(BaseModel):
    name: str
    polygon: List[Tuple[float, float]]

    @classmethod
    def from_geofence(cls, geofence: Geofence) -> "GeofenceState":
        return cls(name=geofence.name, polygon=[tuple(point) for point in geofence.polygon])


class GeofenceUpdateRequest(BaseModel):
    """Candidate farm boundary submitted by an operator."""

    polygon: List[Tuple[float, float]] = Field(
        ..., description="At least three [lat, lng] pairs."
    )
    name: Optional[str] = Field(default=None, max_length=MAX_GEOFENCE_NAME_LENGTH)

    @field_validator("polygon", mode="before")
    @classmethod
    def _check_polygon(cls, value: Any) -> Any:
        if not isinstance(value, (list, tuple)) or len(value) < 3:
            raise ValueError("polygon must be an array of at least 3 [lat, lng] points")
        for index, point in enumerate(value):
            if not isinstance(point, (list, tuple)) or len(point) != 2:
                raise ValueError(f"point {index} must be a [lat, lng] pair")
            coordinates = []
            for coordinate in point:
                # bool is an int subclass; strings are never coerced.
                if isinstance(coordinate, bool) or not isinstance(coordinate, (int, float)):
                    raise ValueError(f"point {index} must contain two numbers")
                try:
                    as_float = float(coordinate)
                except OverflowError:
                    raise ValueError(f"point {index} contains a number too large") from None
                if not math.isfinite(as_float):
                    raise ValueError(f"point {index} contains a non-finite number")
                coordinates.append(as_float)
            lat, lng = coordinates
            if not -90.0 <= lat <= 90.0:
                raise ValueError(f"point {index} latitude {lat} is outside [-90, 90]")
            if not -180.0 <= lng <= 180.0:
                raise ValueError(f"point {index} longitude {lng} is outside [-180, 180]")
        return value

    @field_validator("name")
    @classmethod
    def _blank_name_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        stripped = value.strip()
        return stripped or None


class BreachAlertMessage(BaseModel):
    type: str
    animal_id: str
    animal_name: str
    timestamp: datetime
    message: str

    @classmethod
    def from_alert(cls, alert: BreachAlert) -> "BreachAlertMessage":
        return cls(
            type=alert.kind,
            animal_id=alert.animal_id,
            animal_name=alert.animal_name,
            timestamp=alert.timestamp,
            message=alert.message,
        )


class HistoryRequest(BaseModel):
    """Client message asking for one animal's history over the live feed."""

    event: str
    animal_id: str
    limit: int = Field(default=50, ge=1, le=MAX_HISTORY_LIMIT)


def readings_payload(readings: Dict[str, AnimalReading]) -> Dict[str, Dict[str, Any]]:
    return {
        animal_id: AnimalState.from_reading(reading).model_dump(mode="json")
        for animal_id, reading in readings.items()
    }
