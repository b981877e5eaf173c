"""Tests for OpenTelemetry tracing helpers."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from opentelemetry import trace

from weather_mcp.protocol.dispatcher import Dispatcher
from weather_mcp.utils.telemetry import (
    _INSTRUMENTATION_NAME,
    ATTR_RPC_ERROR_CODE,
    ATTR_RPC_METHOD,
    ATTR_TOOL_NAME,
    configure_telemetry,
    get_tracer,
)


class TestGetTracer:
    def test_returns_tracer(self) -> None:
        tracer = get_tracer("test.module")
        assert isinstance(tracer, trace.Tracer)

    def test_default_name(self) -> None:
        tracer = get_tracer()
        assert isinstance(tracer, trace.Tracer)

    def test_noop_span(self) -> None:
        """Without SDK configured, spans should be no-ops."""
        tracer = get_tracer("test.noop")
        with tracer.start_as_current_span("test") as span:
            span.set_attribute("key", "value")


class TestConfigureTelemetry:
    def test_raises_without_sdk(self) -> None:
        with patch.dict("sys.modules", {"opentelemetry.sdk.resources": None}):
            with pytest.raises(ImportError, match="opentelemetry-sdk"):
                configure_telemetry()

    def test_otlp_raises_without_exporter(self) -> None:
        pytest.importorskip("opentelemetry.sdk.trace")

        with patch.dict(
            "sys.modules",
            {"opentelemetry.exporter.otlp.proto.grpc.trace_exporter": None},
        ):
            with pytest.raises(ImportError, match="opentelemetry-exporter-otlp"):
                configure_telemetry(
                    export_to_console=False,
                    otlp_endpoint="http://localhost:4317",
                )

    def test_installs_provider_with_service_name(self) -> None:
        pytest.importorskip("opentelemetry.sdk.trace")

        with patch("opentelemetry.trace.set_tracer_provider") as install:
            configure_telemetry(service_name="weather-test")

        provider = install.call_args.args[0]
        assert provider.resource.attributes["service.name"] == "weather-test"

    def test_missing_exporter_installs_nothing(self) -> None:
        pytest.importorskip("opentelemetry.sdk.trace")

        with patch.dict(
            "sys.modules",
            {"opentelemetry.exporter.otlp.proto.grpc.trace_exporter": None},
        ), patch("opentelemetry.trace.set_tracer_provider") as install:
            with pytest.raises(ImportError, match="localhost:4317"):
                configure_telemetry(otlp_endpoint="http://localhost:4317")
        install.assert_not_called()


class TestDispatchSpans:
    async def test_tool_call_records_spans(self, dispatcher: Dispatcher) -> None:
        sdk_trace = pytest.importorskip("opentelemetry.sdk.trace")
        export = pytest.importorskip("opentelemetry.sdk.trace.export")
        in_memory = pytest.importorskip("opentelemetry.sdk.trace.export.in_memory_span_exporter")

        exporter = in_memory.InMemorySpanExporter()
        provider = sdk_trace.TracerProvider()
        provider.add_span_processor(export.SimpleSpanProcessor(exporter))
        tracer = provider.get_tracer("test")

        with patch("weather_mcp.protocol.dispatcher._tracer", tracer):
            await dispatcher.dispatch(
                "tools/call",
                {"name": "get_weather", "arguments": {"latitude": 1, "longitude": 2}},
            )
            await dispatcher.dispatch("nope")

        spans = {span.name: span for span in exporter.get_finished_spans()}
        assert spans["tool.call"].attributes[ATTR_TOOL_NAME] == "get_weather"
        methods = [
            span.attributes[ATTR_RPC_METHOD]
            for span in exporter.get_finished_spans()
            if span.name == "rpc.dispatch"
        ]
        assert methods == ["tools/call", "nope"]
        failed = exporter.get_finished_spans()[-1]
        assert failed.attributes[ATTR_RPC_ERROR_CODE] == -32601


class TestAttributeConstants:
    def test_constants_are_namespaced(self) -> None:
        for key in (ATTR_RPC_METHOD, ATTR_RPC_ERROR_CODE, ATTR_TOOL_NAME):
            assert key.startswith("weather_mcp.")

    def test_instrumentation_name(self) -> None:
        assert _INSTRUMENTATION_NAME == "weather_mcp"
