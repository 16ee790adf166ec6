from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the sensor feed service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def send_reading(
        self,
        value: int,
        timestamp: Optional[int] = None,
        pc_timestamp: Optional[str] = None,
    ) -> int:
        body: Dict[str, Any] = {"value": value}
        if timestamp is not None:
            body["timestamp"] = timestamp
        if pc_timestamp is not None:
            body["pc_timestamp"] = pc_timestamp
        payload = self._request("POST", "/api/data", json=body)
        reading_id = payload.get("id") if isinstance(payload, dict) else None
        if not isinstance(reading_id, int):
            raise typer.BadParameter("Unexpected response payload when sending reading.")
        return reading_id

    def recent(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        params = {"limit": limit} if limit is not None else None
        payload = self._request("GET", "/api/data", params=params)
        if not isinstance(payload, list):
            raise typer.BadParameter("Unexpected response payload when listing readings.")
        return payload

    def stats(self) -> Dict[str, Any]:
        payload = self._request("GET", "/api/stats")
        if not isinstance(payload, dict):
            raise typer.BadParameter("Unexpected response payload when fetching stats.")
        return payload

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.TransportError as exc:
            typer.secho(
                f"Could not reach {self._config.base_url}: {exc}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(code=1)
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("error") or data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
