from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_temperatures(payload: Dict[str, Any]) -> None:
    echo_heading("Temperatures")
    echo_key_values(
        [
            ("device_id", payload.get("device_id")),
            ("device_type", payload.get("device_type")),
        ]
    )
    data_points = payload.get("data_points") or []
    typer.echo()
    if not data_points:
        typer.echo("No readings in range.")
        return
    for point in data_points:
        typer.echo(f"  {point.get('timestamp')}  {point.get('temperature')}")
    typer.echo(f"{len(data_points)} reading(s).")


def render_summary(payload: Dict[str, Any]) -> None:
    echo_heading("Summary")
    echo_key_values(
        [
            (key, payload.get(key))
            for key in (
                "device_id",
                "device_type",
                "sample_count",
                "min_value",
                "max_value",
                "mean_value",
                "first_timestamp",
                "last_timestamp",
            )
        ]
    )


def render_devices(devices: List[Dict[str, Any]]) -> None:
    echo_heading("Devices")
    if not devices:
        typer.echo("No devices recorded.")
        return
    for device in devices:
        typer.echo(
            f"  - {device.get('device_id')} ({device.get('device_type')}): "
            f"{device.get('sample_count')} sample(s)"
        )


def render_import(payload: Dict[str, Any]) -> None:
    echo_heading("Import Result")
    echo_key_values(
        [
            ("recorded_count", payload.get("recorded_count")),
            ("devices", ", ".join(payload.get("devices") or []) or "-"),
        ]
    )
    errors = payload.get("errors") or []
    typer.echo()
    echo_heading("Errors")
    if errors:
        for error in errors:
            typer.echo(f"  - row {error.get('row_number')}: {error.get('reason')}")
    else:
        typer.echo("No errors recorded.")
