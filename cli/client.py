from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the FarmSense API."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def list_animals(self) -> List[Dict[str, Any]]:
        payload = self._get("/api/animals")
        return list(payload.get("animals") or [])

    def get_animal(self, animal_id: str) -> Dict[str, Any]:
        return self._get(f"/api/animals/{animal_id}", not_found=f"Animal {animal_id} was not found.")

    def get_history(self, animal_id: str, limit: int) -> Dict[str, Any]:
        return self._get(
            f"/api/animals/{animal_id}/history",
            params={"limit": limit},
            not_found=f"Animal {animal_id} was not found.",
        )

    def get_geofence(self) -> Dict[str, Any]:
        return self._get("/api/geofence")

    def update_geofence(
        self, polygon: Sequence[Tuple[float, float]], name: Optional[str] = None
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"polygon": [list(point) for point in polygon]}
        if name is not None:
            body["name"] = name
        try:
            response = self._client.post("/api/geofence", json=body)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.TransportError as exc:
            self._handle_transport_error(exc)
        return response.json()

    def _get(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        not_found: Optional[str] = None,
    ) -> Dict[str, Any]:
        try:
            response = self._client.get(path, params=params)
            if not_found and response.status_code == 404:
                raise typer.BadParameter(not_found)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.TransportError as exc:
            self._handle_transport_error(exc)
        return response.json()

    def _handle_transport_error(self, exc: httpx.TransportError) -> None:
        typer.secho(
            f"Could not reach {self._config.base_url}: {exc}",
            fg=typer.colors.RED,
            err=True,
        )
        raise typer.Exit(code=1)

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: Any = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        if isinstance(detail, list):
            # FastAPI validation errors carry a list of {"loc", "msg"} items.
            detail = "; ".join(
                str(item.get("msg", item)) if isinstance(item, dict) else str(item)
                for item in detail
            )
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
