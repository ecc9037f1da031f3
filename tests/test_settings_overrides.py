from __future__ import annotations

from typing import Iterable

from app.schemas import MAX_HISTORY_LIMIT
from datastore.registry import build_default_registry
from services.simulator import build_default_simulator
from settings import MAX_HISTORY_CAPACITY, get_settings
from storage.geofence_store import build_default_geofence_store


def _clear_caches(caches: Iterable) -> None:
    for cache in caches:
        cache.cache_clear()


CACHES = (
    get_settings,
    build_default_geofence_store,
    build_default_registry,
    build_default_simulator,
)


def test_environment_overrides_apply(monkeypatch) -> None:
    monkeypatch.setenv("FARMSENSE_TICK_INTERVAL_MS", "500")
    monkeypatch.setenv("FARMSENSE_HISTORY_CAPACITY", "20")
    monkeypatch.setenv("FARMSENSE_ESCAPE_PROBABILITY", "0.5")
    monkeypatch.setenv("FARMSENSE_FEVER_PROBABILITY", "0.1")
    monkeypatch.setenv("FARMSENSE_RANDOM_SEED", "7")
    monkeypatch.setenv("FARMSENSE_GEOFENCE_NAME", "Hill Farm")
    monkeypatch.setenv("FARMSENSE_CORS_ORIGINS", "http://a.test, http://b.test")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    _clear_caches(CACHES)

    try:
        settings = get_settings()
        simulator = build_default_simulator()

        assert settings.tick_interval_seconds == 0.5
        assert settings.random_seed == 7
        assert settings.cors_origins == ("http://a.test", "http://b.test")
        assert settings.log_level == "DEBUG"
        assert simulator.registry.history_capacity == 20
        assert simulator.store.get().name == "Hill Farm"
        assert simulator.vitals_model.config.escape_probability == 0.5
        assert simulator.vitals_model.config.fever_probability == 0.1
        assert simulator.scheduler.interval == 0.5
        assert len(simulator.registry.snapshot()) == 5
    finally:
        _clear_caches(CACHES)


def test_invalid_values_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("FARMSENSE_TICK_INTERVAL_MS", "-5")
    monkeypatch.setenv("FARMSENSE_HISTORY_CAPACITY", "lots")
    monkeypatch.setenv("FARMSENSE_ESCAPE_PROBABILITY", "1.5")
    monkeypatch.setenv("FARMSENSE_RANDOM_SEED", "   ")
    monkeypatch.setenv("FARMSENSE_GEOFENCE_NAME", "")
    monkeypatch.setenv("FARMSENSE_CORS_ORIGINS", " , ")
    get_settings.cache_clear()

    try:
        settings = get_settings()

        assert settings.tick_interval_ms == 3000
        assert settings.history_capacity == 100
        assert settings.escape_probability == 0.03
        assert settings.random_seed is None
        assert settings.geofence_name == "Main Farm"
        assert settings.cors_origins == ("*",)
    finally:
        get_settings.cache_clear()


def test_seeded_simulators_are_repeatable(monkeypatch) -> None:
    monkeypatch.setenv("FARMSENSE_RANDOM_SEED", "42")
    _clear_caches(CACHES)
    try:
        first = build_default_simulator()
        first_ticks = [first.tick().readings["A001"].position for _ in range(5)]
        _clear_caches(CACHES)
        second = build_default_simulator()
        second_ticks = [second.tick().readings["A001"].position for _ in range(5)]
    finally:
        _clear_caches(CACHES)

    assert first_ticks == second_ticks


def test_history_capacity_is_capped(monkeypatch) -> None:
    monkeypatch.setenv("FARMSENSE_HISTORY_CAPACITY", "500")
    get_settings.cache_clear()

    try:
        assert get_settings().history_capacity == MAX_HISTORY_CAPACITY
    finally:
        get_settings.cache_clear()
    assert MAX_HISTORY_LIMIT == MAX_HISTORY_CAPACITY
