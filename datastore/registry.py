from __future__ import annotations

from collections import deque
from functools import lru_cache
from threading import Lock
from typing import Deque, Dict, Iterable, List, Mapping, Optional

from models.herd import DEFAULT_HERD, vitals_range_for
from models.records import AnimalProfile, AnimalReading, HistorySnapshot, VitalsRange
from settings import get_settings

DEFAULT_HISTORY_LIMIT = 50


class UnknownAnimalError(KeyError):
    """Raised when a query names an animal that is not tracked."""

    def __init__(self, animal_id: str) -> None:
        super().__init__(animal_id)
        self.animal_id = animal_id

    def __str__(self) -> str:
        return f"Animal {self.animal_id!r} not found."


class AnimalRegistry:
    """Tracked animals, their latest reading and a bounded history each.

    Readings are immutable, so reads only hold the lock long enough to copy
    the containers.
    """

    def __init__(self, profiles: Iterable[AnimalProfile], history_capacity: int = 100) -> None:
        self.history_capacity = history_capacity
        self._profiles: Dict[str, AnimalProfile] = {}
        for profile in profiles:
            if profile.id in self._profiles:
                raise ValueError(f"Duplicate animal id {profile.id!r}.")
            self._profiles[profile.id] = profile
        self._readings: Dict[str, AnimalReading] = {}
        self._history: Dict[str, Deque[HistorySnapshot]] = {
            animal_id: deque(maxlen=history_capacity) for animal_id in self._profiles
        }
        self._lock = Lock()

    def profiles(self) -> List[AnimalProfile]:
        return list(self._profiles.values())

    def profile(self, animal_id: str) -> AnimalProfile:
        profile = self._profiles.get(animal_id)
        if profile is None:
            raise UnknownAnimalError(animal_id)
        return profile

    def vitals_range(self, animal_id: str) -> VitalsRange:
        return vitals_range_for(self.profile(animal_id).species)

    def seed(self, readings: Mapping[str, AnimalReading]) -> None:
        """Install initial readings without touching history."""
        self._check_known(readings)
        with self._lock:
            self._readings.update(readings)

    def snapshot(self) -> Dict[str, AnimalReading]:
        with self._lock:
            return dict(self._readings)

    def reading(self, animal_id: str) -> AnimalReading:
        with self._lock:
            reading = self._readings.get(animal_id)
        if reading is None:
            raise UnknownAnimalError(animal_id)
        return reading

    def update(self, animal_id: str, reading: AnimalReading) -> None:
        self.commit({animal_id: reading})

    def commit(self, readings: Mapping[str, AnimalReading]) -> None:
        """Apply one tick's readings atomically and extend their histories."""
        self._check_known(readings)
        with self._lock:
            for animal_id, reading in readings.items():
                self._readings[animal_id] = reading
                self._history[animal_id].append(reading.to_snapshot())

    def history(
        self, animal_id: str, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> List[HistorySnapshot]:
        if animal_id not in self._profiles:
            raise UnknownAnimalError(animal_id)
        with self._lock:
            entries = list(self._history[animal_id])
        return _tail(entries, limit)

    def history_all(self, limit: int = DEFAULT_HISTORY_LIMIT) -> Dict[str, List[HistorySnapshot]]:
        with self._lock:
            copies = {animal_id: list(entries) for animal_id, entries in self._history.items()}
        return {animal_id: _tail(entries, limit) for animal_id, entries in copies.items()}

    def _check_known(self, readings: Mapping[str, AnimalReading]) -> None:
        for animal_id, reading in readings.items():
            if animal_id not in self._profiles:
                raise UnknownAnimalError(animal_id)
            if reading.id != animal_id:
                raise ValueError(
                    f"Reading for {reading.id!r} cannot be stored under {animal_id!r}."
                )


def _tail(entries: List[HistorySnapshot], limit: int) -> List[HistorySnapshot]:
    if limit <= 0:
        return []
    return entries[-limit:]


@lru_cache
def build_default_registry(history_capacity: Optional[int] = None) -> AnimalRegistry:
    settings = get_settings()
    capacity = settings.history_capacity if history_capacity is None else history_capacity
    return AnimalRegistry(profiles=DEFAULT_HERD, history_capacity=capacity)
