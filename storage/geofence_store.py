from __future__ import annotations

from functools import lru_cache
from threading import Lock
from typing import Iterable, Optional, Sequence

from models.herd import DEFAULT_POLYGON
from models.records import Geofence, Point, Polygon
from settings import get_settings


def _freeze(polygon: Iterable[Sequence[float]]) -> Polygon:
    return tuple((float(lat), float(lng)) for lat, lng in polygon)


class GeofenceStore:
    """Holds the single active farm boundary.

    Readers get an immutable :class:`Geofence` value; writers swap the whole
    value. Inputs are trusted, validation happens at the API boundary.
    """

    def __init__(self, name: str, polygon: Iterable[Sequence[float]]) -> None:
        self._current = Geofence(name=name, polygon=_freeze(polygon))
        self._lock = Lock()

    def get(self) -> Geofence:
        with self._lock:
            return self._current

    def replace(
        self, polygon: Iterable[Sequence[float]], name: Optional[str] = None
    ) -> Geofence:
        frozen = _freeze(polygon)
        with self._lock:
            new_name = name.strip() if name and name.strip() else self._current.name
            self._current = Geofence(name=new_name, polygon=frozen)
            return self._current

    def centroid(self) -> Point:
        """Vertex average of the current polygon."""
        polygon = self.get().polygon
        lat = sum(point[0] for point in polygon) / len(polygon)
        lng = sum(point[1] for point in polygon) / len(polygon)
        return (lat, lng)


@lru_cache
def build_default_geofence_store(name: Optional[str] = None) -> GeofenceStore:
    settings = get_settings()
    fence_name = settings.geofence_name if name is None else name
    return GeofenceStore(name=fence_name, polygon=DEFAULT_POLYGON)
