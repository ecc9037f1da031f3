from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple


_TICK_INTERVAL_ENV = "FARMSENSE_TICK_INTERVAL_MS"
_HISTORY_CAPACITY_ENV = "FARMSENSE_HISTORY_CAPACITY"
_ESCAPE_PROBABILITY_ENV = "FARMSENSE_ESCAPE_PROBABILITY"
_FEVER_PROBABILITY_ENV = "FARMSENSE_FEVER_PROBABILITY"
_RANDOM_SEED_ENV = "FARMSENSE_RANDOM_SEED"
_GEOFENCE_NAME_ENV = "FARMSENSE_GEOFENCE_NAME"
_CORS_ORIGINS_ENV = "FARMSENSE_CORS_ORIGINS"
_LOG_LEVEL_ENV = "LOG_LEVEL"

# Upper bound for the per-animal history buffer and for history query limits.
MAX_HISTORY_CAPACITY = 100


@dataclass(frozen=True)
class Settings:
    tick_interval_ms: int
    history_capacity: int
    escape_probability: float
    fever_probability: float
    random_seed: Optional[int]
    geofence_name: str
    cors_origins: Tuple[str, ...]
    log_level: str

    @property
    def tick_interval_seconds(self) -> float:
        return self.tick_interval_ms / 1000.0


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_positive_int(name: str, default: int, maximum: Optional[int] = None) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    if parsed <= 0:
        return default
    return parsed if maximum is None else min(parsed, maximum)


def _read_probability(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if 0.0 <= parsed <= 1.0 else default


def _read_optional_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    if value is None:
        return None
    candidate = value.strip()
    if not candidate:
        return None
    try:
        return int(candidate)
    except ValueError:
        return None


def _read_origins(default: Tuple[str, ...]) -> Tuple[str, ...]:
    value = os.getenv(_CORS_ORIGINS_ENV)
    if value is None:
        return default
    origins = tuple(part.strip() for part in value.split(",") if part.strip())
    return origins or default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        tick_interval_ms=_read_positive_int(_TICK_INTERVAL_ENV, 3000),
        history_capacity=_read_positive_int(
            _HISTORY_CAPACITY_ENV, MAX_HISTORY_CAPACITY, maximum=MAX_HISTORY_CAPACITY
        ),
        escape_probability=_read_probability(_ESCAPE_PROBABILITY_ENV, 0.03),
        fever_probability=_read_probability(_FEVER_PROBABILITY_ENV, 0.02),
        random_seed=_read_optional_int(_RANDOM_SEED_ENV),
        geofence_name=_read_str_env(_GEOFENCE_NAME_ENV, "Main Farm"),
        cors_origins=_read_origins(("*",)),
        log_level=_read_log_level("INFO"),
    )
