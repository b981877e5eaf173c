"""Weather tools backed by the Open-Meteo forecast API.

The HTTP lookup sits behind :class:`ForecastProvider` so the tool handlers
can be exercised without network access.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

import httpx

from weather_mcp.config import DEFAULT_FORECAST_URL
from weather_mcp.protocol.errors import InvalidParamsError
from weather_mcp.protocol.models import ToolDescriptor, ToolResult

logger = logging.getLogger(__name__)

HOURLY_FIELDS = "temperature_2m,relative_humidity_2m,wind_speed_10m"

DEFAULT_REGIONS: dict[str, tuple[float, float]] = {
    "california": (36.7783, -119.4179),
    "texas": (31.9686, -99.9018),
    "florida": (27.6648, -81.5158),
    "new york": (42.1657, -74.9481),
    "illinois": (40.3363, -89.0022),
}

GET_WEATHER = ToolDescriptor(
    name="get_weather",
    description="Get current weather for a location by coordinates",
    input_schema={
        "type": "object",
        "properties": {
            "latitude": {"type": "number", "description": "Latitude coordinate"},
            "longitude": {"type": "number", "description": "Longitude coordinate"},
        },
        "required": ["latitude", "longitude"],
    },
)

GET_LOCATION_WEATHER = ToolDescriptor(
    name="get_location_weather",
    description="Get current weather for a US state",
    input_schema={
        "type": "object",
        "properties": {
            "state": {"type": "string", "description": "US state name"},
        },
        "required": ["state"],
    },
)


class ForecastError(Exception):
    """The forecast service could not be reached or answered badly."""


@runtime_checkable
class ForecastProvider(Protocol):
    """Fetches a forecast for a coordinate pair as display text."""

    async def forecast(self, latitude: float, longitude: float) -> str: ...


class OpenMeteoClient:
    """Satisfies :class:`ForecastProvider` using the Open-Meteo HTTP API."""

    def __init__(self, base_url: str = DEFAULT_FORECAST_URL, timeout: float = 10.0) -> None:
        self._base_url = base_url
        self._timeout = timeout

    async def forecast(self, latitude: float, longitude: float) -> str:
        """Return the raw forecast JSON, pretty-printed."""
        params: dict[str, Any] = {
            "latitude": latitude,
            "longitude": longitude,
            "current_weather": "true",
            "hourly": HOURLY_FIELDS,
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(self._base_url, params=params)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Forecast lookup failed for (%s, %s): %s", latitude, longitude, exc)
            raise ForecastError(f"Weather API error: {exc}") from exc
        return json.dumps(data, indent=2)


class RegionTable:
    """Case-insensitive region name to coordinate lookup."""

    def __init__(self, regions: Mapping[str, tuple[float, float]] | None = None) -> None:
        source = DEFAULT_REGIONS if regions is None else regions
        self._regions = {name.lower(): coords for name, coords in source.items()}

    @property
    def names(self) -> list[str]:
        return list(self._regions)

    def resolve(self, name: str) -> tuple[float, float]:
        coords = self._regions.get(name.strip().lower())
        if coords is None:
            available = ", ".join(self._regions)
            raise InvalidParamsError(
                f'State "{name}" not found. Available states: {available}',
                data={"state": name, "available": self.names},
            )
        return coords


class WeatherTools:
    """Handlers for ``get_weather`` and ``get_location_weather``."""

    def __init__(self, provider: ForecastProvider, regions: RegionTable | None = None) -> None:
        self._provider = provider
        self._regions = regions or RegionTable()

    async def get_weather(self, args: dict[str, Any]) -> ToolResult:
        text = await self._provider.forecast(args["latitude"], args["longitude"])
        return ToolResult.from_text(text)

    async def get_location_weather(self, args: dict[str, Any]) -> ToolResult:
        state: str = args["state"]
        latitude, longitude = self._regions.resolve(state)
        text = await self._provider.forecast(latitude, longitude)
        return ToolResult.from_text(f"Weather for {state}:\n{text}")
