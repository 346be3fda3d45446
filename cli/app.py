from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer
import uvicorn

from app.schemas import InboundUpdate
from cli.client import ApiClient, UpdateClient
from cli.config import CLIConfig, load_config
from cli.render import render_sensor, render_sensors, render_stats
from logging_config import configure_logging
from services.configuration import load_config as load_simulator_config
from services.errors import SimulatorError
from services.simulator import SimulatorService
from settings import get_settings


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Simulated environmental sensors that broadcast readings over UDP.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Inspection API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("run")
def run_command(
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        dir_okay=False,
        help="Path to the JSON configuration (defaults to SIMULATOR_CONFIG_PATH or config.json).",
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override LOG_LEVEL."),
) -> None:
    """Broadcast readings and accept updates until interrupted."""
    configure_logging(log_level, force=log_level is not None)
    settings = get_settings()
    path = config_path or Path(settings.config_path)

    try:
        simulator = SimulatorService(config=load_simulator_config(path), settings=settings)
        simulator.start()
    except SimulatorError as exc:
        typer.secho(f"Startup failed: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    typer.echo(
        f"Broadcasting {len(simulator.registry)} sensor(s) to {simulator.destination}, "
        f"listening on {settings.listen_host}:{settings.listen_port}. Press Ctrl+C to stop."
    )
    try:
        simulator.wait()
    except KeyboardInterrupt:
        typer.echo("Shutting down...")
    except (SimulatorError, OSError) as exc:
        typer.secho(f"Simulator stopped: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    finally:
        simulator.shutdown()


@app.command("serve")
def serve_command(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface for the inspection API."),
    port: int = typer.Option(8000, "--port", help="Port for the inspection API."),
) -> None:
    """Run the simulator together with the HTTP inspection API."""
    configure_logging()
    uvicorn.run("app.main:app", host=host, port=port, log_config=None)


@app.command("update")
def update_command(
    ctx: typer.Context,
    location: str = typer.Argument(..., help="Location of the sensor to update."),
    temperature: Optional[float] = typer.Option(None, "--temperature", "-t"),
    humidity: Optional[float] = typer.Option(None, "--humidity", "-u"),
    light: Optional[float] = typer.Option(None, "--light", "-l"),
    host: Optional[str] = typer.Option(None, "--host", help="Listener host (defaults to 127.0.0.1)."),
    port: Optional[int] = typer.Option(None, "--port", help="Listener port (defaults to SIMULATOR_LISTEN_PORT)."),
) -> None:
    """Send one partial update datagram to a running simulator."""
    state = _get_state(ctx)
    if temperature is None and humidity is None and light is None:
        raise typer.BadParameter("Provide at least one of --temperature, --humidity or --light.")

    config = load_config(
        base_url=state.config.base_url,
        update_host=host or state.config.update_host,
        update_port=port if port is not None else state.config.update_port,
    )
    update = InboundUpdate(location=location, temperature=temperature, humidity=humidity, light=light)
    sent = UpdateClient(config).send_update(update)
    typer.secho(
        f"Sent {sent} bytes to {config.update_host}:{config.update_port}.", fg=typer.colors.GREEN
    )


@app.command("sensors")
def sensors_command(
    ctx: typer.Context,
    location: Optional[str] = typer.Argument(None, help="Show only this location."),
) -> None:
    """Show current readings from a running inspection API."""
    state = _get_state(ctx)
    if location is not None:
        render_sensor(state.client.get_sensor(location))
        return
    render_sensors(state.client.list_sensors())


@app.command("stats")
def stats_command(ctx: typer.Context) -> None:
    """Show broadcast, listen and registry counters."""
    state = _get_state(ctx)
    render_stats(state.client.get_stats())
