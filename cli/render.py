from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _fmt(value: Any, digits: int = 2) -> Any:
    if isinstance(value, float):
        return f"{value:.{digits}f}"
    return value


def render_sensor(payload: Dict[str, Any]) -> None:
    echo_heading(f"{payload.get('location')} (sensorId={payload.get('sensorId')})")
    echo_key_values(
        [
            ("temperature", _fmt(payload.get("temperature"))),
            ("humidity", _fmt(payload.get("humidity"))),
            ("co2", payload.get("co2")),
            ("light", _fmt(payload.get("light"))),
            ("pm2_5", payload.get("pm2_5")),
        ]
    )


def render_sensors(payloads: List[Dict[str, Any]]) -> None:
    if not payloads:
        typer.echo("No sensors configured.")
        return
    for index, payload in enumerate(payloads):
        if index:
            typer.echo()
        render_sensor(payload)


def render_stats(payload: Dict[str, Any]) -> None:
    echo_heading("Simulator")
    echo_key_values([("running", payload.get("running"))])
    for section in ("broadcaster", "listener", "registry"):
        typer.echo()
        echo_heading(section.capitalize())
        values = payload.get(section) or {}
        echo_key_values(values.items())
