"""Server configuration — listener address, mode flag, timeouts."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, field_validator

DEFAULT_FORECAST_URL = "https://api.open-meteo.com/v1/forecast"

# environment variable -> ServerSettings field
_ENV_FIELDS: dict[str, str] = {
    "HOST": "host",
    "PORT": "port",
    "WEATHER_MCP_DRAIN_TIMEOUT": "drain_timeout",
    "WEATHER_MCP_FORECAST_URL": "forecast_url",
    "WEATHER_MCP_FORECAST_TIMEOUT": "forecast_timeout",
    "WEATHER_MCP_LOG_LEVEL": "log_level",
}


class ServerSettings(BaseModel):
    """Runtime settings for the supervisor and the weather tools.

    ``production`` disables the stdio transport; only the socket listener
    runs. Values usually come from :meth:`from_env`.
    """

    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=0, le=65535)
    production: bool = False
    drain_timeout: float = Field(default=5.0, gt=0)
    forecast_url: str = DEFAULT_FORECAST_URL
    forecast_timeout: float = Field(default=10.0, gt=0)
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            msg = f"unknown log level '{value}'"
            raise ValueError(msg)
        return level

    @classmethod
    def from_env(cls, environ: Mapping[str, str], **overrides: Any) -> ServerSettings:
        """Build settings from environment variables, then apply *overrides*.

        ``NODE_ENV=production`` (any case) turns on production mode. ``None``
        overrides are skipped so CLI options left unset fall through.
        """
        values: dict[str, Any] = {}
        for env_name, field_name in _ENV_FIELDS.items():
            raw = environ.get(env_name)
            if raw not in (None, ""):
                values[field_name] = raw
        values["production"] = environ.get("NODE_ENV", "").strip().lower() == "production"
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls.model_validate(values)
