"""Runtime layer — process-wide server lifecycle."""

from weather_mcp.runtime.supervisor import ServerSupervisor

__all__ = ["ServerSupervisor"]
