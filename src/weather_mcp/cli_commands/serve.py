"""``weather-mcp serve`` — run the server until SIGINT/SIGTERM."""

from __future__ import annotations

import asyncio
import logging
import os
import sys

import click
from pydantic import ValidationError

from weather_mcp.cli_commands._output import configure_logging, err_console

logger = logging.getLogger(__name__)


@click.command()
@click.option("--host", default=None, help="Listener address (env: HOST, default 0.0.0.0).")
@click.option("--port", type=int, default=None, help="Listener port (env: PORT, default 3000).")
@click.option(
    "--production/--development",
    default=None,
    help="Production disables the stdio transport (env: NODE_ENV).",
)
@click.option(
    "--drain-timeout",
    type=float,
    default=None,
    help="Seconds to wait for sessions on shutdown.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.option("--telemetry", is_flag=True, help="Export OpenTelemetry spans to stderr.")
@click.option("--otlp-endpoint", default=None, help="Export OpenTelemetry spans via OTLP/gRPC.")
def serve(
    host: str | None,
    port: int | None,
    production: bool | None,
    drain_timeout: float | None,
    verbose: bool,
    telemetry: bool,
    otlp_endpoint: str | None,
) -> None:
    """Serve the weather tools over WebSocket (and stdio outside production)."""
    from weather_mcp.config import ServerSettings
    from weather_mcp.runtime.supervisor import ServerSupervisor
    from weather_mcp.tools import OpenMeteoClient, build_default_registry

    try:
        settings = ServerSettings.from_env(
            os.environ,
            host=host,
            port=port,
            production=production,
            drain_timeout=drain_timeout,
            log_level="DEBUG" if verbose else None,
        )
    except ValidationError as exc:
        raise click.UsageError(f"Invalid configuration: {exc}") from exc

    configure_logging(settings.log_level)
    logger.info(
        "Starting weather-mcp on %s:%d (%s)",
        settings.host,
        settings.port,
        "production" if settings.production else "development",
    )

    if telemetry or otlp_endpoint:
        from weather_mcp.utils.telemetry import configure_telemetry

        try:
            configure_telemetry(export_to_console=telemetry, otlp_endpoint=otlp_endpoint)
        except ImportError as exc:
            err_console.print(f"[red]Telemetry error:[/red] {exc}")
            sys.exit(1)

    provider = OpenMeteoClient(settings.forecast_url, timeout=settings.forecast_timeout)
    supervisor = ServerSupervisor(settings, build_default_registry(provider))

    try:
        asyncio.run(supervisor.run())
    except OSError as exc:
        err_console.print(f"[red]Server error:[/red] {exc}")
        sys.exit(1)
