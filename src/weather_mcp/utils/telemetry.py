"""Tracing for the weather server, built on the OpenTelemetry API.

Modules take a tracer from :func:`get_tracer` at import time and open spans
around dispatch, tool calls and session messages::

    _tracer = get_tracer(__name__)

    with _tracer.start_as_current_span("tool.call") as span:
        span.set_attribute(ATTR_TOOL_NAME, name)

Until :func:`configure_telemetry` runs (``serve --telemetry`` or
``--otlp-endpoint``) those spans are no-ops. Exporting needs the ``otel``
extra.
"""

from __future__ import annotations

import sys
from typing import Any

from opentelemetry import trace

ATTR_RPC_METHOD = "weather_mcp.rpc.method"
ATTR_RPC_ERROR_CODE = "weather_mcp.rpc.error_code"
ATTR_TOOL_NAME = "weather_mcp.tool.name"
ATTR_SESSION_ID = "weather_mcp.session.id"
ATTR_SESSION_KIND = "weather_mcp.session.kind"

_INSTRUMENTATION_NAME = "weather_mcp"


def get_tracer(name: str | None = None) -> trace.Tracer:
    """Tracer for *name*, falling back to the package-wide instrumentation name."""
    return trace.get_tracer(name or _INSTRUMENTATION_NAME)


def configure_telemetry(
    *,
    service_name: str = "weather-mcp",
    export_to_console: bool = True,
    otlp_endpoint: str | None = None,
) -> None:
    """Install a global tracer provider for the server process.

    Console spans go to stderr because stdout is the stdio transport's
    channel. With *otlp_endpoint* set, spans are also batched to an OTLP/gRPC
    collector. Missing optional packages raise ``ImportError`` before any
    provider is installed.
    """
    try:
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
    except ImportError as exc:
        msg = (
            "opentelemetry-sdk is required for configure_telemetry(). "
            "Install it with: pip install weather-mcp[otel]"
        )
        raise ImportError(msg) from exc

    processors = _span_processors(export_to_console, otlp_endpoint)
    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    for processor in processors:
        provider.add_span_processor(processor)
    trace.set_tracer_provider(provider)


def _span_processors(export_to_console: bool, otlp_endpoint: str | None) -> list[Any]:
    from opentelemetry.sdk.trace.export import (
        BatchSpanProcessor,
        ConsoleSpanExporter,
        SimpleSpanProcessor,
    )

    processors: list[Any] = []
    if export_to_console:
        processors.append(SimpleSpanProcessor(ConsoleSpanExporter(out=sys.stderr)))
    if otlp_endpoint:
        try:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
        except ImportError as exc:
            msg = (
                "opentelemetry-exporter-otlp is required to send spans to "
                f"{otlp_endpoint}. Install it with: pip install weather-mcp[otel]"
            )
            raise ImportError(msg) from exc
        processors.append(BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint)))
    return processors
