"""CLI command reference."""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class CommandInfo:
    """Declarative command definition."""

    command: str
    usage: str
    description: str


class Command(Enum):
    """Enum of CLI commands (single source of truth for help output)."""

    LOG = CommandInfo(
        "log",
        "log <food> [--quantity N] [--meal-type T] [--food-id ID | --fdc-id N] "
        "[--calories N ...]",
        "Log a meal",
    )
    TODAY = CommandInfo("today", "today [--date D]", "Totals and meals for a day")
    PROGRESS = CommandInfo(
        "progress",
        "progress [--date D] [--human]",
        "Goal zones, streaks and weekly averages",
    )
    GOALS = CommandInfo(
        "goals",
        "goals [--<nutrient> N] [--<nutrient>-tolerance P] [--reset]",
        "View or update nutrient goals",
    )
    HISTORY = CommandInfo(
        "history", "history [--limit N] [--query Q]", "Recent or matching meals"
    )
    EDIT = CommandInfo(
        "edit", "edit <meal-id> [--quantity N] [--calories N ...]", "Edit a meal"
    )
    DELETE = CommandInfo("delete", "delete <meal-id>", "Delete a meal")
    SEARCH = CommandInfo(
        "search", "search <query> [--limit N]", "Search custom and USDA foods"
    )
    LOOKUP = CommandInfo("lookup", "lookup <barcode>", "Look up a food by barcode")
    FOODS = CommandInfo(
        "foods", "foods add|list|delete", "Manage custom foods"
    )
    CONFIG = CommandInfo("config", "config", "Show the active configuration")
    HELP = CommandInfo(
        "help", "help [command]", "Show all commands, or one command's options"
    )


def command_reference() -> list[dict[str, str]]:
    """Return commands formatted for help output."""
    return [
        {
            "command": entry.value.command,
            "usage": entry.value.usage,
            "description": entry.value.description,
        }
        for entry in Command
    ]


DATE_HELP = "Day offset (-1 is yesterday) or YYYY-MM-DD"
