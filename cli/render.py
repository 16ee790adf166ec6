from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_stats(payload: Dict[str, Any]) -> None:
    echo_heading("Statistics")
    echo_key_values(
        [
            ("total_records", payload.get("total_records")),
            ("count_ones", payload.get("count_ones")),
            ("count_zeros", payload.get("count_zeros")),
            ("last_update", payload.get("last_update")),
        ]
    )


def render_readings(readings: List[Dict[str, Any]]) -> None:
    echo_heading("Recent Readings")
    if not readings:
        typer.echo("No readings stored.")
        return
    for reading in readings:
        typer.echo(
            f"  - #{reading.get('id')} value={reading.get('value')} "
            f"arduino={reading.get('arduino_timestamp')} "
            f"pc={reading.get('pc_timestamp')} "
            f"server={reading.get('server_timestamp')}"
        )
