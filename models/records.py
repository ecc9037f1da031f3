"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Tuple

Point = Tuple[float, float]
Polygon = Tuple[Point, ...]


class AnimalStatus(str, Enum):
    """Derived health/containment status of an animal."""

    normal = "normal"
    warning = "warning"
    alert = "alert"


@dataclass(frozen=True, slots=True)
class AnimalProfile:
    """Immutable identity of a tracked animal."""

    id: str
    name: str
    species: str
    emoji: str


@dataclass(frozen=True, slots=True)
class VitalsRange:
    """Normal temperature (°C) and heart-rate (bpm) range for a species."""

    temp_min: float
    temp_max: float
    hr_min: int
    hr_max: int


@dataclass(frozen=True, slots=True)
class Geofence:
    """Farm boundary; replaced wholesale, never edited in place."""

    name: str
    polygon: Polygon


@dataclass(frozen=True, slots=True)
class HistorySnapshot:
    timestamp: datetime
    lat: float
    lng: float
    temperature: float
    heart_rate: int
    inside_geofence: bool
    status: AnimalStatus


@dataclass(frozen=True, slots=True)
class AnimalReading:
    """Latest observed state of one animal."""

    profile: AnimalProfile
    lat: float
    lng: float
    temperature: float
    heart_rate: int
    inside_geofence: bool
    status: AnimalStatus
    last_update: datetime

    @property
    def id(self) -> str:
        return self.profile.id

    @property
    def position(self) -> Point:
        return (self.lat, self.lng)

    def to_snapshot(self) -> HistorySnapshot:
        return HistorySnapshot(
            timestamp=self.last_update,
            lat=self.lat,
            lng=self.lng,
            temperature=self.temperature,
            heart_rate=self.heart_rate,
            inside_geofence=self.inside_geofence,
            status=self.status,
        )


@dataclass(frozen=True, slots=True)
class BreachAlert:
    """Emitted once when an animal leaves the geofence."""

    animal_id: str
    animal_name: str
    timestamp: datetime
    message: str
    kind: str = "geofence_breach"


@dataclass(frozen=True, slots=True)
class SimulationEvent:
    """Notification delivered to simulation subscribers."""

    kind: str
    payload: Any


SNAPSHOT_EVENT = "animals:snapshot"
UPDATE_EVENT = "animals:update"
ALERT_EVENT = "animal:alert"
GEOFENCE_EVENT = "geofence:updated"
HISTORY_EVENT = "animal:history"
