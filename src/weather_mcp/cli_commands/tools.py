"""``weather-mcp tools`` — inspect the built-in tool registry."""

from __future__ import annotations

import click

from weather_mcp.cli_commands._output import console, print_tools_json, print_tools_table


@click.group()
def tools() -> None:
    """Inspect registered tools."""


@tools.command("list")
@click.option("--json", "as_json", is_flag=True, help="Print the tools/list wire payload.")
def list_tools(as_json: bool) -> None:
    """List the tools this server exposes."""
    from weather_mcp.tools import build_default_registry

    descriptors = build_default_registry().list()
    if not descriptors:
        console.print("[yellow]No tools registered.[/yellow]")
        return

    if as_json:
        print_tools_json(descriptors)
    else:
        print_tools_table(descriptors)
