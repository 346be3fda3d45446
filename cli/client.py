from __future__ import annotations

from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
import typer

from app.schemas import InboundUpdate
from cli.config import CLIConfig
from services.errors import TransportSendError
from transport.udp import UdpSender, resolve_destination


class ApiClient:
    """Minimal HTTP client for the simulator inspection API."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=10.0)

    def close(self) -> None:
        self._client.close()

    def list_sensors(self) -> List[Dict[str, Any]]:
        response = self._get("/sensors")
        payload = response.json()
        if not isinstance(payload, list):
            raise typer.BadParameter("Unexpected response payload when listing sensors.")
        return payload

    def get_sensor(self, location: str) -> Dict[str, Any]:
        response = self._get(
            f"/sensors/{quote(location, safe='')}", missing=f"Sensor {location!r} was not found."
        )
        return response.json()

    def get_stats(self) -> Dict[str, Any]:
        return self._get("/stats").json()

    def _get(self, path: str, missing: Optional[str] = None) -> httpx.Response:
        try:
            response = self._client.get(path)
            if missing is not None and response.status_code == 404:
                raise typer.BadParameter(missing)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.TransportError as exc:
            typer.secho(
                f"Could not reach {self._config.base_url}: {exc}", fg=typer.colors.RED, err=True
            )
            raise typer.Exit(code=1)
        return response

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except (ValueError, AttributeError):
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


class UpdateClient:
    """Sends inbound update datagrams to a running simulator listener."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config

    def send_update(self, update: InboundUpdate) -> int:
        try:
            destination = resolve_destination(self._config.update_host, self._config.update_port)
        except OSError as exc:
            raise typer.BadParameter(
                f"Cannot resolve {self._config.update_host!r}: {exc}"
            ) from exc

        payload = update.model_dump_json(exclude_none=True).encode("utf-8")
        sender = UdpSender(destination)
        try:
            return sender.send(payload)
        except TransportSendError as exc:
            typer.secho(str(exc), fg=typer.colors.RED, err=True)
            raise typer.Exit(code=1)
        finally:
            sender.close()
