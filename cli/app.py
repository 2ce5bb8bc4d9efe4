from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_devices, render_import, render_summary, render_temperatures


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for interacting with the device temperature store.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Store API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="HTTP timeout in seconds.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("record")
def record_command(
    ctx: typer.Context,
    device_id: str = typer.Argument(..., help="Device identifier."),
    device_type: str = typer.Argument(..., help="Device type tag."),
    temperature: float = typer.Argument(..., help="Temperature reading."),
    timestamp: Optional[str] = typer.Option(
        None,
        "--timestamp",
        "-t",
        help="RFC 3339 sample time (defaults to now, UTC).",
    ),
) -> None:
    """Record a single temperature reading."""
    state = _get_state(ctx)
    sample_time = timestamp or datetime.now(timezone.utc).isoformat()
    payload = state.client.record(device_id, device_type, sample_time, temperature)
    typer.secho(
        f"Recorded {payload.get('temperature')} for {payload.get('device_id')} "
        f"at {payload.get('timestamp')}",
        fg=typer.colors.GREEN,
    )


@app.command("query")
def query_command(
    ctx: typer.Context,
    device_id: str = typer.Argument(..., help="Device identifier."),
    start: Optional[str] = typer.Option(None, "--start", help="Inclusive range start (RFC 3339)."),
    end: Optional[str] = typer.Option(None, "--end", help="Inclusive range end (RFC 3339)."),
) -> None:
    """Show a device's readings within a time range."""
    state = _get_state(ctx)
    render_temperatures(state.client.query(device_id, start=start, end=end))


@app.command("summary")
def summary_command(
    ctx: typer.Context,
    device_id: str = typer.Argument(..., help="Device identifier."),
    start: Optional[str] = typer.Option(None, "--start", help="Inclusive range start (RFC 3339)."),
    end: Optional[str] = typer.Option(None, "--end", help="Inclusive range end (RFC 3339)."),
) -> None:
    """Show min, max and mean for a device's readings."""
    state = _get_state(ctx)
    render_summary(state.client.summary(device_id, start=start, end=end))


@app.command("import")
def import_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Path to CSV file."),
) -> None:
    """Upload a CSV of readings and record every valid row."""
    state = _get_state(ctx)
    typer.echo(f"Importing {file} to {state.config.base_url} ...")
    render_import(state.client.import_csv(file))


@app.command("devices")
def devices_command(ctx: typer.Context) -> None:
    """List known devices."""
    state = _get_state(ctx)
    render_devices(state.client.list_devices())
