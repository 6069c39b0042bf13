"""MCP server exposing nomnom commands as tools."""

import asyncio
import json
import logging
import shlex
from collections.abc import Callable
from dataclasses import dataclass

import click
from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from nomnom.app_logging import configure_logging
from nomnom.cli import CommandResult, run_command
from nomnom.containers import AppContainer, build_container

_logger = logging.getLogger(__name__)

INSTRUCTIONS = (
    "Nutrition tracker. Use the nomnom tool with CLI-style commands such as "
    "'log chicken breast --calories 165 --protein 31', 'today', 'progress', "
    "'goals --calories 2000 --calories-tolerance 10' or 'search greek yogurt'. "
    "Run 'help' for the full command list."
)


@dataclass
class NomNomTools:
    """Tool implementations; each call runs with its own container."""

    factory: Callable[[], AppContainer] = build_container

    async def run(self, command: str) -> str:
        """Run a CLI command string and return its JSON output."""
        try:
            argv = shlex.split(command)
        except ValueError as exc:
            raise ToolError(_error(f"Invalid command: {exc}")) from exc
        if argv[:1] == ["nomnom"]:
            argv = argv[1:]
        result = await self._execute(argv)
        return result.output

    async def get_progress(self, date: str | None = None) -> dict[str, object]:
        """Return goal zones, streaks and weekly averages for a day."""
        return (await self._execute(["progress", *_date_args(date)])).payload

    async def get_today(self, date: str | None = None) -> dict[str, object]:
        """Return totals and meals for a day."""
        return (await self._execute(["today", *_date_args(date)])).payload

    async def get_goals(self) -> dict[str, object]:
        """Return current goals with guidance."""
        return (await self._execute(["goals"])).payload

    async def set_goals(
        self,
        targets: dict[str, float] | None = None,
        tolerances: dict[str, int] | None = None,
    ) -> dict[str, object]:
        """Update targets and tolerance percentages by nutrient name."""
        argv = ["goals"]
        for name, value in (targets or {}).items():
            argv.extend([f"--{name.replace('_', '-')}", str(value)])
        for name, value in (tolerances or {}).items():
            argv.extend([f"--{name.replace('_', '-')}-tolerance", str(value)])
        if len(argv) == 1:
            raise ToolError(_error("Provide at least one target or tolerance"))
        return (await self._execute(argv)).payload

    async def _execute(self, argv: list[str]) -> CommandResult:
        result = await asyncio.to_thread(run_command, argv, None, self.factory)
        if not result.ok:
            _logger.info("Tool command failed: %s", argv[:1])
            raise ToolError(result.output)
        return result


def create_server(tools: NomNomTools | None = None) -> FastMCP:
    """Create the MCP server with the command tool and typed tools."""
    resolved_tools = tools or NomNomTools()
    server = FastMCP("nomnom", instructions=INSTRUCTIONS)

    @server.tool()
    async def nomnom(command: str) -> str:
        """Run a nomnom CLI command, e.g. "progress --date -1" or "help".

        Returns the command's JSON output; failures are reported as errors.
        """
        return await resolved_tools.run(command)

    @server.tool()
    async def get_progress(date: str | None = None) -> dict[str, object]:
        """Goal progress for a day: zones, bands, streaks and weekly averages.

        ``date`` accepts a day offset such as -1 or YYYY-MM-DD.
        """
        return await resolved_tools.get_progress(date)

    @server.tool()
    async def get_today(date: str | None = None) -> dict[str, object]:
        """Nutrient totals, meal count and meals for a day."""
        return await resolved_tools.get_today(date)

    @server.tool()
    async def get_goals() -> dict[str, object]:
        """Current nutrient goals with guidance for choosing targets."""
        return await resolved_tools.get_goals()

    @server.tool()
    async def set_goals(
        targets: dict[str, float] | None = None,
        tolerances: dict[str, int] | None = None,
    ) -> dict[str, object]:
        """Set nutrient targets and tolerance percentages (0-100).

        A tolerance can only be set for a nutrient that has a target.
        """
        return await resolved_tools.set_goals(targets, tolerances)

    return server


@click.command()
@click.option(
    "--transport",
    type=click.Choice(["stdio", "sse", "streamable-http"]),
    default="stdio",
    show_default=True,
)
def main(transport: str) -> None:
    """Run the nomnom MCP server."""
    configure_logging()
    create_server().run(transport=transport)


def _date_args(date: str | None) -> list[str]:
    return ["--date", date] if date else []


def _error(message: str) -> str:
    return json.dumps({"error": message}, indent=2)
