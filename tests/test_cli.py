from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest
from typer.testing import CliRunner

from cli.app import app, parse_point
from cli.config import load_config


def _animal(animal_id: str = "A001", status: str = "normal") -> Dict[str, Any]:
    return {
        "id": animal_id,
        "name": "Bessie",
        "type": "Cow",
        "emoji": "🐄",
        "lat": 36.8165,
        "lng": 10.1825,
        "temperature": 38.75,
        "heart_rate": 66,
        "inside_geofence": status != "alert",
        "status": status,
        "last_update": "2024-01-01T12:00:00Z",
    }


class StubClient:
    def __init__(self, config) -> None:
        self.config = config
        self.history_calls: List[tuple[str, int]] = []
        self.updated: Optional[tuple[list, Optional[str]]] = None
        self.geofence: Dict[str, Any] = {
            "name": "Main Farm",
            "polygon": [[36.82, 10.18], [36.82, 10.187], [36.815, 10.187], [36.815, 10.18]],
        }
        self.closed = False

    def list_animals(self) -> List[Dict[str, Any]]:
        return [_animal("A001"), _animal("A002", status="alert")]

    def get_animal(self, animal_id: str) -> Dict[str, Any]:
        return _animal(animal_id)

    def get_history(self, animal_id: str, limit: int) -> Dict[str, Any]:
        self.history_calls.append((animal_id, limit))
        entry = {key: value for key, value in _animal(animal_id).items() if key in {
            "lat", "lng", "temperature", "heart_rate", "inside_geofence", "status"
        }}
        entry["timestamp"] = "2024-01-01T12:00:03Z"
        return {"animal_id": animal_id, "count": 1, "history": [entry]}

    def get_geofence(self) -> Dict[str, Any]:
        return self.geofence

    def update_geofence(self, polygon, name=None) -> Dict[str, Any]:
        self.updated = (list(polygon), name)
        return {"name": name or "Main Farm", "polygon": [list(point) for point in polygon]}

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def stub(monkeypatch) -> StubClient:
    stub = StubClient(config=None)

    def factory(config):
        stub.config = config
        return stub

    monkeypatch.setattr("cli.app.ApiClient", factory)
    return stub


def test_animals_command(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["animals"])

    assert result.exit_code == 0
    assert "Herd (2 animals)" in result.stdout
    assert "OUTSIDE" in result.stdout
    assert stub.closed is True


def test_animal_command(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["animal", "A004"])

    assert result.exit_code == 0
    assert "(A004)" in result.stdout
    assert "status: normal" in result.stdout


def test_history_command_passes_limit(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["history", "A001", "--limit", "5"])

    assert result.exit_code == 0
    assert stub.history_calls == [("A001", 5)]
    assert "History for A001 (1 entries)" in result.stdout


def test_history_command_rejects_large_limit(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["history", "A001", "--limit", "500"])

    assert result.exit_code != 0
    assert stub.history_calls == []


def test_geofence_command(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["geofence"])

    assert result.exit_code == 0
    assert "Geofence: Main Farm" in result.stdout
    assert "3: 36.815, 10.18" in result.stdout


def test_set_geofence_command(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(
        app,
        [
            "set-geofence",
            "-p", "36.81,10.17",
            "-p", "36.83,10.17",
            "-p", "36.83, 10.20",
            "--name", "North",
        ],
    )

    assert result.exit_code == 0
    assert "Geofence updated." in result.stdout
    assert stub.updated == ([(36.81, 10.17), (36.83, 10.17), (36.83, 10.20)], "North")


def test_set_geofence_needs_three_points(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["set-geofence", "-p", "36.81,10.17", "-p", "36.83,10.17"])

    assert result.exit_code != 0
    assert stub.updated is None


@pytest.mark.parametrize("raw", ["36.81", "a,b", "1,2,3"])
def test_parse_point_rejects_malformed_input(raw: str) -> None:
    import typer

    with pytest.raises(typer.BadParameter):
        parse_point(raw)


def test_simulate_reports_breaches(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(
        app, ["simulate", "--ticks", "1", "--seed", "3", "--escape-probability", "1.0"]
    )

    assert result.exit_code == 0
    assert "Ran 1 ticks, 5 breach alert(s)." in result.stdout
    assert "has left the farm boundaries" in result.stdout
    assert result.stdout.count("OUTSIDE") == 5


def test_simulate_without_escapes_is_quiet(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(
        app, ["simulate", "--ticks", "3", "--seed", "3", "--escape-probability", "0"]
    )

    assert result.exit_code == 0
    assert "Ran 3 ticks, 0 breach alert(s)." in result.stdout


def test_load_config_prefers_arguments_then_env(monkeypatch) -> None:
    monkeypatch.setenv("FARMSENSE_API_URL", "http://farm.test:9000/")
    monkeypatch.setenv("FARMSENSE_CLI_TIMEOUT", "nope")

    config = load_config()
    assert config.base_url == "http://farm.test:9000"
    assert config.timeout == 10.0

    override = load_config(base_url="http://other.test", timeout=2.5)
    assert override.base_url == "http://other.test"
    assert override.timeout == 2.5
