"""WebSocket live feed bridging simulator events to browser dashboards."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from functools import lru_cache
from threading import Lock
from typing import Any, Dict, Set

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from app.schemas import (
    BreachAlertMessage,
    GeofenceState,
    HistoryEntry,
    HistoryRequest,
    readings_payload,
)
from datastore.registry import UnknownAnimalError
from models.records import (
    ALERT_EVENT,
    GEOFENCE_EVENT,
    HISTORY_EVENT,
    SNAPSHOT_EVENT,
    UPDATE_EVENT,
    SimulationEvent,
)
from services.simulator import SimulationService, build_default_simulator

logger = logging.getLogger(__name__)

ERROR_EVENT = "error"
_QUEUE_SIZE = 256


def encode_event(event: SimulationEvent) -> Dict[str, Any]:
    """Render a simulation event as a ``{"event", "data"}`` wire message."""
    if event.kind in (SNAPSHOT_EVENT, UPDATE_EVENT):
        data: Any = readings_payload(event.payload)
    elif event.kind == ALERT_EVENT:
        data = BreachAlertMessage.from_alert(event.payload).model_dump(mode="json")
    elif event.kind == GEOFENCE_EVENT:
        data = GeofenceState.from_geofence(event.payload).model_dump(mode="json")
    else:
        data = event.payload
    return {"event": event.kind, "data": data}


class Connection:
    """Outbound queue for one WebSocket client."""

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self.loop = loop
        self.queue: asyncio.Queue[Dict[str, Any]] = asyncio.Queue(maxsize=_QUEUE_SIZE)

    def push(self, event: SimulationEvent) -> None:
        """Thread-safe entry point used by the simulator."""
        self.loop.call_soon_threadsafe(self.offer, encode_event(event))

    def offer(self, message: Dict[str, Any]) -> None:
        # Slow clients lose their oldest messages rather than stall the feed.
        if self.queue.full():
            self.queue.get_nowait()
        self.queue.put_nowait(message)


class LiveFeed:
    """Tracks open connections and fans boundary-layer events out to them."""

    def __init__(self, simulator: SimulationService) -> None:
        self.simulator = simulator
        self._connections: Set[Connection] = set()
        self._lock = Lock()

    @property
    def connection_count(self) -> int:
        with self._lock:
            return len(self._connections)

    def open(self, loop: asyncio.AbstractEventLoop) -> Connection:
        connection = Connection(loop)
        self.simulator.subscribe(connection.push, replay=True)
        with self._lock:
            self._connections.add(connection)
        return connection

    def close(self, connection: Connection) -> None:
        self.simulator.unsubscribe(connection.push)
        with self._lock:
            self._connections.discard(connection)

    def broadcast(self, event: SimulationEvent) -> None:
        with self._lock:
            connections = list(self._connections)
        for connection in connections:
            connection.push(event)


@lru_cache
def build_default_live_feed() -> LiveFeed:
    return LiveFeed(build_default_simulator())


def get_live_feed() -> LiveFeed:
    return build_default_live_feed()


router = APIRouter()


async def _pump(websocket: WebSocket, connection: Connection) -> None:
    while True:
        message = await connection.queue.get()
        await websocket.send_json(message)


def _error(detail: str) -> Dict[str, Any]:
    return {"event": ERROR_EVENT, "data": {"detail": detail}}


def _answer(raw: str, simulator: SimulationService) -> Dict[str, Any]:
    try:
        payload = json.loads(raw)
    except (json.JSONDecodeError, RecursionError):
        return _error("Messages must be JSON objects.")
    if not isinstance(payload, dict) or payload.get("event") != HISTORY_EVENT:
        return _error(f"Unsupported message; expected event {HISTORY_EVENT!r}.")
    try:
        request = HistoryRequest.model_validate(payload)
    except ValidationError as exc:
        return _error(str(exc))
    try:
        history = simulator.registry.history(request.animal_id, request.limit)
    except UnknownAnimalError as exc:
        return _error(str(exc))
    return {
        "event": HISTORY_EVENT,
        "data": {
            "animal_id": request.animal_id,
            "history": [
                HistoryEntry.from_snapshot(entry).model_dump(mode="json") for entry in history
            ],
        },
    }


@router.websocket("/ws")
async def live_updates(
    websocket: WebSocket,
    feed: LiveFeed = Depends(get_live_feed),
) -> None:
    await websocket.accept()
    client = f"{websocket.client.host}:{websocket.client.port}" if websocket.client else None
    connection = feed.open(asyncio.get_running_loop())
    logger.info("Live feed client connected", extra={"client": client})
    sender = asyncio.create_task(_pump(websocket, connection))
    try:
        while True:
            raw = await websocket.receive_text()
            connection.offer(_answer(raw, feed.simulator))
    except WebSocketDisconnect:
        pass
    finally:
        feed.close(connection)
        sender.cancel()
        with contextlib.suppress(asyncio.CancelledError, Exception):
            await sender
        logger.info("Live feed client disconnected", extra={"client": client})
