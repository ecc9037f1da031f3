from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Optional, Tuple

import typer
import uvicorn

from app.schemas import BreachAlertMessage, readings_payload
from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import (
    render_alert,
    render_animal,
    render_animals,
    render_geofence,
    render_history,
)
from datastore.registry import AnimalRegistry
from models.herd import DEFAULT_HERD, DEFAULT_POLYGON
from models.records import ALERT_EVENT, SimulationEvent
from services.scheduler import ManualScheduler
from services.simulator import SimulationService
from services.vitals import VitalsModel, VitalsModelConfig
from settings import get_settings
from storage.geofence_store import GeofenceStore


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for operating the FarmSense livestock simulator.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
    return state


def parse_point(raw: str) -> Tuple[float, float]:
    parts = [part.strip() for part in raw.split(",")]
    if len(parts) != 2:
        raise typer.BadParameter(f"Point {raw!r} must look like LAT,LNG.")
    try:
        return float(parts[0]), float(parts[1])
    except ValueError as exc:
        raise typer.BadParameter(f"Point {raw!r} must contain two numbers.") from exc


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="API base URL (defaults to FARMSENSE_API_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each API request.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("animals")
def animals_command(ctx: typer.Context) -> None:
    """Show the current state of the whole herd."""
    state = _get_state(ctx)
    render_animals(state.client.list_animals())


@app.command("animal")
def animal_command(
    ctx: typer.Context,
    animal_id: str = typer.Argument(..., help="Animal identifier, e.g. A001."),
) -> None:
    """Show the current reading of one animal."""
    state = _get_state(ctx)
    render_animal(state.client.get_animal(animal_id))


@app.command("history")
def history_command(
    ctx: typer.Context,
    animal_id: str = typer.Argument(..., help="Animal identifier, e.g. A001."),
    limit: int = typer.Option(50, "--limit", "-n", min=1, max=100, help="Most recent entries to show."),
) -> None:
    """Show recent readings of one animal, oldest first."""
    state = _get_state(ctx)
    render_history(state.client.get_history(animal_id, limit))


@app.command("geofence")
def geofence_command(ctx: typer.Context) -> None:
    """Show the current farm boundary."""
    state = _get_state(ctx)
    render_geofence(state.client.get_geofence())


@app.command("set-geofence")
def set_geofence_command(
    ctx: typer.Context,
    points: List[str] = typer.Option(
        ...,
        "--point",
        "-p",
        help="Boundary vertex as LAT,LNG; repeat at least three times.",
    ),
    name: Optional[str] = typer.Option(None, "--name", help="New boundary name."),
) -> None:
    """Replace the farm boundary."""
    polygon = [parse_point(point) for point in points]
    if len(polygon) < 3:
        raise typer.BadParameter("A boundary needs at least 3 points.", param_hint="--point")
    state = _get_state(ctx)
    geofence = state.client.update_geofence(polygon, name)
    typer.secho("Geofence updated.", fg=typer.colors.GREEN)
    render_geofence(geofence)


@app.command("simulate")
def simulate_command(
    ticks: int = typer.Option(20, "--ticks", "-t", min=1, help="Number of ticks to run."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for a repeatable run."),
    escape_probability: Optional[float] = typer.Option(
        None,
        "--escape-probability",
        min=0.0,
        max=1.0,
        help="Per-tick chance that an animal bolts (defaults to settings).",
    ),
) -> None:
    """Run the simulation offline and print breach alerts as they happen."""
    settings = get_settings()
    config = VitalsModelConfig(
        escape_probability=(
            settings.escape_probability if escape_probability is None else escape_probability
        ),
        fever_probability=settings.fever_probability,
    )
    scheduler = ManualScheduler()
    simulator = SimulationService(
        store=GeofenceStore(name=settings.geofence_name, polygon=DEFAULT_POLYGON),
        registry=AnimalRegistry(DEFAULT_HERD, history_capacity=settings.history_capacity),
        vitals_model=VitalsModel(random.Random(seed), config),
        scheduler=scheduler,
    )

    alert_count = 0

    def on_event(event: SimulationEvent) -> None:
        nonlocal alert_count
        if event.kind == ALERT_EVENT:
            alert_count += 1
            message = BreachAlertMessage.from_alert(event.payload).model_dump(mode="json")
            render_alert(simulator.tick_count, message)

    simulator.subscribe(on_event, replay=False)
    simulator.start()
    try:
        scheduler.advance(ticks)
    finally:
        simulator.stop()

    typer.echo(f"Ran {ticks} ticks, {alert_count} breach alert(s).")
    typer.echo()
    render_animals(readings_payload(simulator.registry.snapshot()).values())


@app.command("serve")
def serve_command(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind."),
    port: int = typer.Option(8000, "--port", help="Port to listen on."),
) -> None:
    """Run the API server with the background simulator."""
    # log_config=None keeps the service's own logging setup.
    uvicorn.run("app.main:app", host=host, port=port, log_config=None)
