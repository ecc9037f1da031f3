from __future__ import annotations

from collections import deque
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Iterator

import pytest

from datastore.registry import AnimalRegistry
from models.herd import DEFAULT_HERD, DEFAULT_POLYGON
from services.scheduler import ManualScheduler
from services.simulator import SimulationService
from services.vitals import VitalsModel
from storage.geofence_store import GeofenceStore

BASE_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class ScriptedRandom:
    """Random source replaying queued values, with neutral fallbacks.

    Once a queue is empty: ``random()`` returns 0.99 (no escape, no fever,
    positive sign), ``uniform`` the midpoint of its range and ``randint``
    the integer midpoint, so an unscripted tick leaves vitals unchanged.
    """

    def __init__(self) -> None:
        self._randoms: deque[float] = deque()
        self._uniforms: deque[float] = deque()
        self._randints: deque[int] = deque()

    def script(
        self,
        randoms: Iterable[float] = (),
        uniforms: Iterable[float] = (),
        randints: Iterable[int] = (),
    ) -> "ScriptedRandom":
        self._randoms.extend(randoms)
        self._uniforms.extend(uniforms)
        self._randints.extend(randints)
        return self

    def random(self) -> float:
        return self._randoms.popleft() if self._randoms else 0.99

    def uniform(self, a: float, b: float) -> float:
        return self._uniforms.popleft() if self._uniforms else (a + b) / 2

    def randint(self, a: int, b: int) -> int:
        return self._randints.popleft() if self._randints else (a + b) // 2


class SteppingClock:
    """Returns a timestamp three seconds later on every call."""

    def __init__(self, start: datetime = BASE_TIME) -> None:
        self._next = start

    def __call__(self) -> datetime:
        current = self._next
        self._next = current + timedelta(seconds=3)
        return current


@pytest.fixture()
def rng() -> ScriptedRandom:
    return ScriptedRandom()


@pytest.fixture()
def make_simulator(rng: ScriptedRandom) -> Callable[..., SimulationService]:
    def factory(
        profiles=DEFAULT_HERD,
        history_capacity: int = 100,
        initialize: bool = True,
    ) -> SimulationService:
        service = SimulationService(
            store=GeofenceStore(name="Main Farm", polygon=DEFAULT_POLYGON),
            registry=AnimalRegistry(profiles, history_capacity=history_capacity),
            vitals_model=VitalsModel(rng),
            scheduler=ManualScheduler(),
            clock=SteppingClock(),
        )
        if initialize:
            service.initialize()
        return service

    return factory


@pytest.fixture()
def simulator(make_simulator) -> Iterator[SimulationService]:
    service = make_simulator()
    yield service
    service.stop()
