from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the temperature store service."""

    def __init__(
        self, config: CLIConfig, transport: Optional[httpx.BaseTransport] = None
    ) -> None:
        self._config = config
        self._client = httpx.Client(
            base_url=config.base_url, timeout=config.timeout, transport=transport
        )

    def close(self) -> None:
        self._client.close()

    def record(
        self, device_id: str, device_type: str, timestamp: str, temperature: float
    ) -> Dict[str, Any]:
        payload = {
            "device_id": device_id,
            "device_type": device_type,
            "timestamp": timestamp,
            "temperature": temperature,
        }
        return self._request("POST", "/temperatures", json=payload)

    def query(
        self, device_id: str, start: Optional[str] = None, end: Optional[str] = None
    ) -> Dict[str, Any]:
        return self._request(
            "GET",
            f"/devices/{device_id}/temperatures",
            params=self._range_params(start, end),
        )

    def summary(
        self, device_id: str, start: Optional[str] = None, end: Optional[str] = None
    ) -> Dict[str, Any]:
        return self._request(
            "GET",
            f"/devices/{device_id}/temperatures/summary",
            params=self._range_params(start, end),
        )

    def list_devices(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/devices")

    def import_csv(self, path: Path) -> Dict[str, Any]:
        if not path.is_file():
            raise typer.BadParameter(f"Path {path} is not a file.")
        with path.open("rb") as handle:
            return self._request(
                "POST",
                "/temperatures/import",
                files={"file": (path.name, handle, "text/csv")},
            )

    def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = self._client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.RequestError as exc:
            typer.secho(
                f"Could not reach {self._config.base_url}: {exc}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(code=1) from exc
        return response.json()

    @staticmethod
    def _range_params(start: Optional[str], end: Optional[str]) -> Dict[str, str]:
        params: Dict[str, str] = {}
        if start:
            params["start"] = start
        if end:
            params["end"] = end
        return params

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: Any = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
