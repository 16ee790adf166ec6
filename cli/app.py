from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import typer
import uvicorn

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_readings, render_stats
from datastore.sql_store import StartupError, build_store
from logging_config import configure_logging
from settings import Settings, get_settings


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for running and talking to the sensor feed service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.secho("CLI state is uninitialized.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return state


async def _bootstrap(settings: Settings) -> None:
    store = build_store(settings)
    try:
        await store.ensure_schema()
    finally:
        await store.dispose()


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Service base URL (defaults to API_BASE_URL env or http://localhost:3000).",
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


@app.command("serve")
def serve_command(
    host: Optional[str] = typer.Option(None, "--host", help="Listen address (defaults to HOST env)."),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Listen port (defaults to PORT env)."),
) -> None:
    """Provision the database, then start the HTTP and live-update server."""
    configure_logging()
    settings = get_settings()
    try:
        asyncio.run(_bootstrap(settings))
    except StartupError as exc:
        typer.secho(f"Failed to initialize: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    uvicorn.run(
        "app.main:app",
        host=host or settings.host,
        port=port or settings.port,
        log_config=None,
    )


@app.command("send")
def send_command(
    ctx: typer.Context,
    value: int = typer.Argument(..., help="Sensor value to record."),
    timestamp: Optional[int] = typer.Option(
        None, "--timestamp", "-t", help="Device-side timestamp in epoch milliseconds."
    ),
    pc_timestamp: Optional[str] = typer.Option(
        None, "--pc-timestamp", help="Relay timestamp text (defaults to the local time)."
    ),
) -> None:
    """Record one reading."""
    state = _get_state(ctx)
    if pc_timestamp is None:
        pc_timestamp = datetime.now().strftime("%H:%M:%S")
    reading_id = state.client.send_reading(value, timestamp=timestamp, pc_timestamp=pc_timestamp)
    typer.secho(f"Reading stored. id={reading_id}", fg=typer.colors.GREEN)


@app.command("recent")
def recent_command(
    ctx: typer.Context,
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Maximum readings to show."),
) -> None:
    """Show the most recent readings, newest first."""
    state = _get_state(ctx)
    render_readings(state.client.recent(limit))


@app.command("stats")
def stats_command(ctx: typer.Context) -> None:
    """Show aggregate statistics."""
    state = _get_state(ctx)
    render_stats(state.client.stats())
