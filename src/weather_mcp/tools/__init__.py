"""Built-in tools and a helper to build a pre-loaded ``ToolRegistry``."""

from __future__ import annotations

from weather_mcp.protocol.registry import ToolRegistry
from weather_mcp.tools.weather import (
    GET_LOCATION_WEATHER,
    GET_WEATHER,
    ForecastError,
    ForecastProvider,
    OpenMeteoClient,
    RegionTable,
    WeatherTools,
)


def build_default_registry(
    provider: ForecastProvider | None = None,
    regions: RegionTable | None = None,
) -> ToolRegistry:
    """Return a registry holding the weather tools.

    Without a *provider* the tools query Open-Meteo directly.
    """
    tools = WeatherTools(provider or OpenMeteoClient(), regions)
    registry = ToolRegistry()
    registry.register(GET_WEATHER, tools.get_weather)
    registry.register(GET_LOCATION_WEATHER, tools.get_location_weather)
    return registry


__all__ = [
    "ForecastError",
    "ForecastProvider",
    "OpenMeteoClient",
    "RegionTable",
    "WeatherTools",
    "build_default_registry",
]
