from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping

import typer

_STATUS_COLORS = {
    "normal": typer.colors.GREEN,
    "warning": typer.colors.YELLOW,
    "alert": typer.colors.RED,
}


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def echo_status(status: str) -> None:
    typer.secho(f"status: {status}", fg=_STATUS_COLORS.get(status))


def render_animals(animals: Iterable[Mapping[str, Any]]) -> None:
    rows = list(animals)
    echo_heading(f"Herd ({len(rows)} animals)")
    if not rows:
        typer.echo("No animals tracked.")
        return
    for animal in rows:
        inside = "inside" if animal.get("inside_geofence") else "OUTSIDE"
        line = (
            f"{animal.get('id')}  {animal.get('name', ''):<8} {animal.get('type', ''):<6} "
            f"{animal.get('temperature')}°C  {animal.get('heart_rate')} bpm  "
            f"{inside:<7} {animal.get('status')}"
        )
        typer.secho(line, fg=_STATUS_COLORS.get(str(animal.get("status"))))


def render_animal(animal: Mapping[str, Any]) -> None:
    echo_heading(f"{animal.get('emoji', '')} {animal.get('name')} ({animal.get('id')})".strip())
    echo_key_values(
        [
            ("type", animal.get("type")),
            ("position", f"{animal.get('lat')}, {animal.get('lng')}"),
            ("temperature", animal.get("temperature")),
            ("heart_rate", animal.get("heart_rate")),
            ("inside_geofence", animal.get("inside_geofence")),
            ("last_update", animal.get("last_update")),
        ]
    )
    echo_status(str(animal.get("status")))


def render_history(payload: Mapping[str, Any]) -> None:
    entries = payload.get("history") or []
    echo_heading(f"History for {payload.get('animal_id')} ({len(entries)} entries)")
    if not entries:
        typer.echo("No readings recorded yet.")
        return
    for entry in entries:
        typer.echo(
            f"  - {entry.get('timestamp')}  {entry.get('lat')}, {entry.get('lng')}  "
            f"{entry.get('temperature')}°C  {entry.get('heart_rate')} bpm  {entry.get('status')}"
        )


def render_geofence(geofence: Mapping[str, Any]) -> None:
    polygon = geofence.get("polygon") or []
    echo_heading(f"Geofence: {geofence.get('name')}")
    for index, point in enumerate(polygon):
        typer.echo(f"  {index}: {point[0]}, {point[1]}")


def render_alert(tick: int, alert: Dict[str, Any]) -> None:
    typer.secho(f"[tick {tick}] {alert.get('message')}", fg=typer.colors.RED)
