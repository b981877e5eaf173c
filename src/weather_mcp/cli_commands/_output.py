"""Shared CLI output helpers."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

if TYPE_CHECKING:
    from weather_mcp.protocol.models import ToolDescriptor

console = Console()
# Stdout may carry the stdio protocol channel; diagnostics go to stderr.
err_console = Console(stderr=True)


def configure_logging(level: str) -> None:
    """Route all log records to stderr through rich."""
    logging.basicConfig(
        level=level,
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def print_tools_table(tools: list[ToolDescriptor]) -> None:
    """Pretty-print registered tools as a table."""
    table = Table(title="Registered Tools")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Required")

    for tool in tools:
        required = tool.input_schema.get("required", [])
        table.add_row(tool.name, _truncate(tool.description), ", ".join(required) or "-")

    console.print(table)


def print_tools_json(tools: list[ToolDescriptor]) -> None:
    console.print_json(json.dumps([tool.to_wire() for tool in tools]))


def _truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
