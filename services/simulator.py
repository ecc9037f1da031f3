"""Simulation tick engine: advances the herd and notifies subscribers."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import lru_cache
from threading import Lock, RLock
from typing import Callable, Dict, List, Optional

from datastore.registry import AnimalRegistry, build_default_registry
from models.records import (
    ALERT_EVENT,
    SNAPSHOT_EVENT,
    UPDATE_EVENT,
    AnimalProfile,
    AnimalReading,
    AnimalStatus,
    BreachAlert,
    Geofence,
    SimulationEvent,
    VitalsRange,
)
from services.geometry import contains_point
from services.scheduler import IntervalScheduler, Scheduler
from services.vitals import VitalsModel, VitalsModelConfig
from settings import get_settings
from storage.geofence_store import GeofenceStore, build_default_geofence_store

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
Listener = Callable[[SimulationEvent], None]

# Initial spread of the herd around the farm centre, in degrees per index.
_SPAWN_SPACING = 0.0005


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def classify_status(
    inside: bool, temperature: float, heart_rate: int, vitals: VitalsRange
) -> AnimalStatus:
    """Containment failure always wins over vitals warnings."""
    if not inside:
        return AnimalStatus.alert
    if temperature > vitals.temp_max + 0.5 or heart_rate > vitals.hr_max + 10:
        return AnimalStatus.warning
    return AnimalStatus.normal


def breach_alert(profile: AnimalProfile, timestamp: datetime) -> BreachAlert:
    return BreachAlert(
        animal_id=profile.id,
        animal_name=profile.name,
        timestamp=timestamp,
        message=f"⚠️ {profile.name} has left the farm boundaries!",
    )


@dataclass
class TickResult:
    """Outcome of one simulation step."""

    tick: int
    readings: Dict[str, AnimalReading] = field(default_factory=dict)
    alerts: List[BreachAlert] = field(default_factory=list)
    failures: List[str] = field(default_factory=list)
    skipped: bool = False


class SimulationService:
    """Owns the simulation context: geofence, registry, vitals model, driver."""

    def __init__(
        self,
        store: GeofenceStore,
        registry: AnimalRegistry,
        vitals_model: VitalsModel,
        scheduler: Scheduler,
        clock: Optional[Clock] = None,
    ) -> None:
        self.store = store
        self.registry = registry
        self.vitals_model = vitals_model
        self.scheduler = scheduler
        self.clock = clock or utc_now
        self.tick_count = 0
        self._initialized = False
        self._listeners: List[Listener] = []
        self._emit_lock = RLock()
        self._tick_lock = Lock()

    def initialize(self) -> Dict[str, AnimalReading]:
        """Place every animal near the farm centre with in-range vitals."""
        geofence = self.store.get()
        center_lat, center_lng = self.store.centroid()
        now = self.clock()
        rng = self.vitals_model.rng
        readings: Dict[str, AnimalReading] = {}
        for index, profile in enumerate(self.registry.profiles()):
            vitals = self.registry.vitals_range(profile.id)
            offset = (index - 2) * _SPAWN_SPACING
            lat = round(center_lat + offset, 6)
            lng = round(center_lng + offset, 6)
            temperature = round(rng.uniform(vitals.temp_min, vitals.temp_max), 2)
            heart_rate = rng.randint(vitals.hr_min, vitals.hr_max)
            inside = contains_point((lat, lng), geofence.polygon)
            readings[profile.id] = AnimalReading(
                profile=profile,
                lat=lat,
                lng=lng,
                temperature=temperature,
                heart_rate=heart_rate,
                inside_geofence=inside,
                status=classify_status(inside, temperature, heart_rate, vitals),
                last_update=now,
            )
        self.registry.seed(readings)
        self._initialized = True
        return readings

    def start(self) -> None:
        if not self._initialized:
            self.initialize()
        self.scheduler.start(self.tick)
        logger.info(
            "Simulator started for %d animals",
            len(self.registry.profiles()),
            extra={"geofence_name": self.store.get().name},
        )

    def stop(self) -> None:
        self.scheduler.stop()

    def subscribe(self, listener: Listener, replay: bool = True) -> None:
        """Register ``listener``; with ``replay`` it first receives a snapshot.

        The snapshot is delivered under the emission lock, so the listener's
        first incremental update is always newer than its snapshot.
        """
        with self._emit_lock:
            if replay:
                listener(SimulationEvent(kind=SNAPSHOT_EVENT, payload=self.registry.snapshot()))
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        with self._emit_lock:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

    def tick(self) -> TickResult:
        with self._tick_lock:
            self.tick_count += 1
            result = TickResult(tick=self.tick_count)
            geofence = self.store.get()
            if len(geofence.polygon) < 3:
                logger.error(
                    "Geofence invariant violated, skipping tick",
                    extra={"tick": result.tick, "point_count": len(geofence.polygon)},
                )
                result.skipped = True
                return result

            now = self.clock()
            previous = self.registry.snapshot()
            updated: Dict[str, AnimalReading] = {}
            for animal_id, reading in previous.items():
                try:
                    updated[animal_id] = self._advance(reading, geofence, now)
                except Exception:  # noqa: BLE001 - one animal must not abort the tick
                    logger.exception(
                        "Animal update failed, keeping last reading",
                        extra={"animal_id": animal_id, "tick": result.tick},
                    )
                    result.failures.append(animal_id)
                    continue
                if reading.inside_geofence and not updated[animal_id].inside_geofence:
                    result.alerts.append(breach_alert(reading.profile, now))

            with self._emit_lock:
                self.registry.commit(updated)
                result.readings = self.registry.snapshot()
                self._emit(SimulationEvent(kind=UPDATE_EVENT, payload=result.readings))
                for alert in result.alerts:
                    logger.warning(
                        alert.message, extra={"animal_id": alert.animal_id, "tick": result.tick}
                    )
                    self._emit(SimulationEvent(kind=ALERT_EVENT, payload=alert))

            logger.debug(
                "Tick complete",
                extra={
                    "tick": result.tick,
                    "alert_count": len(result.alerts),
                    "failure_count": len(result.failures),
                },
            )
            return result

    def _advance(self, reading: AnimalReading, geofence: Geofence, now: datetime) -> AnimalReading:
        vitals = self.registry.vitals_range(reading.id)
        proposal = self.vitals_model.propose(reading, vitals)
        lat = round(proposal.lat, 6)
        lng = round(proposal.lng, 6)
        temperature = round(proposal.temperature, 2)
        heart_rate = int(round(proposal.heart_rate))
        inside = contains_point((lat, lng), geofence.polygon)
        return AnimalReading(
            profile=reading.profile,
            lat=lat,
            lng=lng,
            temperature=temperature,
            heart_rate=heart_rate,
            inside_geofence=inside,
            status=classify_status(inside, temperature, heart_rate, vitals),
            last_update=now,
        )

    def _emit(self, event: SimulationEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:  # noqa: BLE001 - a broken subscriber must not stop the feed
                logger.exception("Subscriber failed", extra={"reason": event.kind})


@lru_cache
def build_default_simulator(seed: Optional[int] = None) -> SimulationService:
    """Factory that wires the simulator with the default herd and geofence."""
    settings = get_settings()
    rng = random.Random(settings.random_seed if seed is None else seed)
    vitals_model = VitalsModel(
        rng,
        VitalsModelConfig(
            escape_probability=settings.escape_probability,
            fever_probability=settings.fever_probability,
        ),
    )
    service = SimulationService(
        store=build_default_geofence_store(),
        registry=build_default_registry(),
        vitals_model=vitals_model,
        scheduler=IntervalScheduler(settings.tick_interval_seconds),
    )
    service.initialize()
    return service
