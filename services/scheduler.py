"""Drivers that invoke the simulation tick."""

from __future__ import annotations

import logging
from threading import Event, Lock, Thread
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)

TickCallback = Callable[[], object]


class Scheduler(Protocol):
    def start(self, callback: TickCallback) -> None: ...

    def stop(self) -> None: ...

    @property
    def running(self) -> bool: ...


class IntervalScheduler:
    """Runs the callback on a daemon thread every ``interval`` seconds."""

    def __init__(self, interval: float, name: str = "simulation-tick") -> None:
        if interval <= 0:
            raise ValueError("Tick interval must be positive.")
        self.interval = interval
        self.name = name
        self._stop_event = Event()
        self._thread: Optional[Thread] = None
        self._lock = Lock()

    @property
    def running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def start(self, callback: TickCallback) -> None:
        with self._lock:
            if self.running:
                return
            # One stop event per run; a thread that outlived stop() never sees it cleared.
            stop_event = Event()
            self._stop_event = stop_event
            self._thread = Thread(
                target=self._run, args=(callback, stop_event), name=self.name, daemon=True
            )
            self._thread.start()
        logger.info(
            "Scheduler started", extra={"interval_ms": int(self.interval * 1000)}
        )

    def stop(self, timeout: float | None = 5.0) -> None:
        with self._lock:
            thread = self._thread
            self._thread = None
            self._stop_event.set()
        if thread is not None:
            thread.join(timeout=timeout)
            logger.info("Scheduler stopped")

    def _run(self, callback: TickCallback, stop_event: Event) -> None:
        while not stop_event.wait(self.interval):
            try:
                callback()
            except Exception:  # pragma: no cover - the tick already contains its faults
                logger.exception("Scheduled tick raised")


class ManualScheduler:
    """Scheduler driven explicitly through :meth:`advance`."""

    def __init__(self) -> None:
        self._callback: Optional[TickCallback] = None

    @property
    def running(self) -> bool:
        return self._callback is not None

    def start(self, callback: TickCallback) -> None:
        self._callback = callback

    def stop(self) -> None:
        self._callback = None

    def advance(self, ticks: int = 1) -> int:
        """Fire ``ticks`` callbacks; returns how many actually ran."""
        fired = 0
        for _ in range(ticks):
            if self._callback is None:
                break
            self._callback()
            fired += 1
        return fired
