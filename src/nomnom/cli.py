"""Command-line interface for nomnom."""

import asyncio
import json
import logging
import sys
from collections.abc import Callable, Coroutine, Sequence
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time
from typing import Any, TypeVar

import click
import pydantic

from nomnom.app_logging import configure_logging
from nomnom.commands import DATE_HELP, command_reference
from nomnom.containers import AppContainer, build_container
from nomnom.dates import parse_date_arg
from nomnom.domain.errors import NomNomError, StoreUnavailableError, ValidationError
from nomnom.domain.goals import GoalUpdate
from nomnom.domain.meals import MEAL_TYPES, MealInput
from nomnom.domain.nutrients import NUTRIENTS
from nomnom.presenters import (
    custom_food_to_dict,
    food_to_dict,
    format_daily,
    format_foods,
    format_goals,
    format_history,
    format_progress,
    goals_to_dict,
    meal_to_dict,
    progress_to_dict,
    totals_to_dict,
)
from nomnom.services.goals import goal_guidance
from nomnom.services.totals import aggregate_day

_logger = logging.getLogger(__name__)
_T = TypeVar("_T")
_HELP_FLAGS = frozenset({"--help", "-h"})


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one CLI invocation."""

    payload: dict[str, object]
    output: str
    exit_code: int = 0

    @property
    def ok(self) -> bool:
        """Return True when the command succeeded."""
        return self.exit_code == 0

    @classmethod
    def failure(cls, message: str) -> "CommandResult":
        """Return an error result carrying a JSON error body."""
        payload: dict[str, object] = {"error": message}
        return cls(payload=payload, output=_dump(payload), exit_code=1)


@dataclass
class CliState:
    """Per-invocation state shared by commands through the click context."""

    factory: Callable[[], AppContainer] = build_container
    container_override: AppContainer | None = None
    human: bool = False
    result: CommandResult | None = None
    _container: AppContainer | None = field(default=None, init=False, repr=False)
    _runner: asyncio.Runner | None = field(default=None, init=False, repr=False)

    @property
    def container(self) -> AppContainer:
        """Return the container, building it on first use."""
        if self.container_override is not None:
            return self.container_override
        if self._container is None:
            self._container = self.factory()
        return self._container

    @property
    def user_id(self) -> str:
        return self.container.user_id

    def run(self, coroutine: Coroutine[Any, Any, _T]) -> _T:
        """Run a coroutine on the invocation's event loop."""
        if self._runner is None:
            self._runner = asyncio.Runner()
        return self._runner.run(coroutine)

    def today(self) -> date:
        return self.container.totals_service.today()

    def emit(self, payload: dict[str, object], human: str | None = None) -> None:
        """Record the command output as JSON, or text in human mode."""
        output = human if self.human and human is not None else _dump(payload)
        self.result = CommandResult(payload=payload, output=output)

    def close(self) -> None:
        """Release resources created during this invocation."""
        if self._container is not None:
            self.run(self._container.close_resources())
            self._container = None
        if self._runner is not None:
            self._runner.close()
            self._runner = None


def _option_names(flag: str, name: str) -> list[str]:
    names = [f"--{flag}"]
    if name != flag:
        names.append(f"--{name}")
    return names


def nutrient_options(
    with_tolerance: bool = False,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Add ``--<nutrient>`` (and ``--<nutrient>-tolerance``) options."""

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        for nutrient in reversed(NUTRIENTS.values()):
            flag = nutrient.name.replace("_", "-")
            if with_tolerance:
                func = click.option(
                    *_option_names(f"{flag}-tolerance", f"{nutrient.name}_tolerance"),
                    f"{nutrient.name}_tolerance",
                    type=int,
                    default=None,
                    help=f"{nutrient.name} tolerance percent (0-100)",
                )(func)
            func = click.option(
                *_option_names(flag, nutrient.name),
                nutrient.name,
                type=float,
                default=None,
                help=f"{nutrient.label} ({nutrient.unit})",
            )(func)
        return func

    return decorator


@click.group(invoke_without_command=True)
@click.option("--human", is_flag=True, help="Render text instead of JSON.")
@click.pass_context
def cli(ctx: click.Context, human: bool) -> None:
    """Nutrition tracking with goals, tolerance bands and streaks."""
    state = ctx.ensure_object(CliState)
    state.human = state.human or human
    if ctx.invoked_subcommand is None:
        ctx.invoke(help_command)


@cli.command("goals")
@nutrient_options(with_tolerance=True)
@click.option("--reset", is_flag=True, help="Remove all goals.")
@click.pass_obj
def goals_command(state: CliState, reset: bool, **values: float | int | None) -> None:
    """View or update nutrient goals."""
    service = state.container.goal_service
    if reset:
        service.reset_goals(state.user_id)
        state.emit({"success": True, "reset": True, "goals": {}}, "Goals reset.")
        return

    updates = {
        name: GoalUpdate(
            target=values.get(name), tolerance=values.get(f"{name}_tolerance")
        )
        for name in NUTRIENTS
        if values.get(name) is not None
        or values.get(f"{name}_tolerance") is not None
    }
    if updates:
        goals = service.set_goals(state.user_id, updates)
        state.emit(
            {
                "success": True,
                "goals": goals_to_dict(goals),
                "goalsSet": list(updates),
            },
            format_goals(goals),
        )
        return

    goals = service.get_goals(state.user_id)
    state.emit(
        {
            "hasGoals": bool(goals),
            "goals": goals_to_dict(goals),
            "guidance": goal_guidance(),
        },
        format_goals(goals),
    )


@cli.command("progress")
@click.option("--date", "date_arg", default=None, help=DATE_HELP)
@click.option("--human", is_flag=True, help="Render text instead of JSON.")
@click.pass_obj
def progress_command(state: CliState, date_arg: str | None, human: bool) -> None:
    """Show goal zones, streaks and weekly averages for a day."""
    state.human = state.human or human
    day = parse_date_arg(date_arg, state.today())
    report = state.container.progress_service.build_report(state.user_id, day)
    state.emit(progress_to_dict(report), format_progress(report))


@cli.command("today")
@click.option("--date", "date_arg", default=None, help=DATE_HELP)
@click.pass_obj
def today_command(state: CliState, date_arg: str | None) -> None:
    """Show totals and meals for a day."""
    day = parse_date_arg(date_arg, state.today())
    totals_service = state.container.totals_service
    meals = totals_service.get_meals_by_date(state.user_id, day)
    totals = aggregate_day(day, meals, totals_service.tz)
    state.emit(
        {
            "date": day.isoformat(),
            "totals": totals_to_dict(totals),
            "meals": [meal_to_dict(meal) for meal in meals],
        },
        format_daily(totals, meals),
    )


@cli.command("log")
@click.argument("food_name", nargs=-1)
@click.option("--quantity", type=float, default=1.0, help="Servings eaten.")
@click.option("--unit", default="serving")
@click.option("--meal-type", type=click.Choice(MEAL_TYPES), default="snack")
@click.option("--notes", default=None)
@click.option("--food-id", default=None, help="Custom food id to copy nutrients.")
@click.option("--fdc-id", type=int, default=None, help="USDA FDC id.")
@click.option("--barcode", default=None, help="UPC/GTIN barcode.")
@click.option("--date", "date_arg", default=None, help=DATE_HELP)
@nutrient_options()
@click.pass_obj
def log_command(  # noqa: PLR0913
    state: CliState,
    food_name: tuple[str, ...],
    quantity: float,
    unit: str,
    meal_type: str,
    notes: str | None,
    food_id: str | None,
    fdc_id: int | None,
    barcode: str | None,
    date_arg: str | None,
    **nutrients: float | None,
) -> None:
    """Log a meal."""
    name = " ".join(food_name).strip()
    if not name:
        raise ValidationError("Food name is required")
    meal = MealInput(
        food_name=name,
        quantity=quantity,
        unit=unit,
        meal_type=meal_type,
        notes=notes,
        food_id=food_id,
        fdc_id=fdc_id,
        barcode=barcode,
        logged_at=_logged_at(state, date_arg),
        nutrients={
            key: value for key, value in nutrients.items() if value is not None
        },
    )
    record = state.run(state.container.meal_log_service.log_meal(state.user_id, meal))
    state.emit(
        {"success": True, "meal": meal_to_dict(record)},
        f"Logged {record.food_name} ({record.value('calories'):.0f} kcal) "
        f"[{record.id}]",
    )


@cli.command("history")
@click.option("--limit", type=click.IntRange(min=1), default=10)
@click.option("--query", default=None, help="Match food name or notes.")
@click.pass_obj
def history_command(state: CliState, limit: int, query: str | None) -> None:
    """List recent meals, optionally filtered by a search query."""
    service = state.container.meal_log_service
    if query:
        meals = service.search_meals(state.user_id, query, limit)
    else:
        meals = service.get_history(state.user_id, limit)
    state.emit(
        {"meals": [meal_to_dict(meal) for meal in meals], "count": len(meals)},
        format_history(meals),
    )


@cli.command("edit")
@click.argument("meal_id", required=False)
@click.option("--food-name", default=None)
@click.option("--quantity", type=float, default=None)
@click.option("--unit", default=None)
@click.option("--meal-type", type=click.Choice(MEAL_TYPES), default=None)
@click.option("--notes", default=None)
@nutrient_options()
@click.pass_obj
def edit_command(state: CliState, meal_id: str | None, **changes: object) -> None:
    """Edit fields of a logged meal."""
    if not meal_id:
        raise ValidationError("Meal id is required")
    meal, updated = state.container.meal_log_service.edit_meal(
        state.user_id, meal_id, changes
    )
    state.emit(
        {"success": True, "meal": meal_to_dict(meal), "updated": updated},
        f"Updated {', '.join(updated) or 'nothing'} on {meal.food_name}",
    )


@cli.command("delete")
@click.argument("meal_id", required=False)
@click.pass_obj
def delete_command(state: CliState, meal_id: str | None) -> None:
    """Delete a logged meal."""
    if not meal_id:
        raise ValidationError("Meal id is required")
    meal = state.container.meal_log_service.delete_meal(state.user_id, meal_id)
    state.emit(
        {"success": True, "deleted": meal_to_dict(meal)},
        f"Deleted {meal.food_name} [{meal.id}]",
    )


@cli.command("search")
@click.argument("query", nargs=-1)
@click.option("--limit", type=click.IntRange(min=1), default=10)
@click.pass_obj
def search_command(state: CliState, query: tuple[str, ...], limit: int) -> None:
    """Search custom foods and USDA FoodData Central."""
    text = " ".join(query).strip()
    if not text:
        raise ValidationError("Search query is required")
    foods = state.run(
        state.container.food_service.search(state.user_id, text, limit)
    )
    state.emit(
        {
            "query": text,
            "results": [food_to_dict(food) for food in foods],
            "count": len(foods),
        },
        format_foods(foods),
    )


@cli.command("lookup")
@click.argument("barcode", required=False)
@click.pass_obj
def lookup_command(state: CliState, barcode: str | None) -> None:
    """Look up a food by UPC/GTIN barcode."""
    if not barcode:
        raise ValidationError("Barcode is required")
    food = state.run(
        state.container.food_service.lookup_barcode(state.user_id, barcode)
    )
    if food is None:
        state.emit(
            {"found": False, "barcode": barcode}, f"No food found for {barcode}"
        )
        return
    state.emit(
        {"found": True, "barcode": barcode, "food": food_to_dict(food)},
        format_foods([food]),
    )


@cli.group("foods")
def foods_group() -> None:
    """Manage custom foods."""


@foods_group.command("add")
@click.argument("name", nargs=-1)
@click.option("--brand", default=None)
@click.option("--barcode", default=None)
@click.option("--serving-size", default=None)
@nutrient_options()
@click.pass_obj
def foods_add_command(  # noqa: PLR0913
    state: CliState,
    name: tuple[str, ...],
    brand: str | None,
    barcode: str | None,
    serving_size: str | None,
    **nutrients: float | None,
) -> None:
    """Add a custom food with per-serving nutrients."""
    food = state.container.custom_food_service.add_food(
        state.user_id,
        " ".join(name),
        nutrients=nutrients,
        brand=brand,
        barcode=barcode,
        serving_size=serving_size,
    )
    state.emit(
        {"success": True, "food": custom_food_to_dict(food)},
        f"Added custom food {food.name} [{food.id}]",
    )


@foods_group.command("list")
@click.pass_obj
def foods_list_command(state: CliState) -> None:
    """List custom foods."""
    foods = state.container.custom_food_service.list_foods(state.user_id)
    state.emit(
        {"foods": [custom_food_to_dict(food) for food in foods], "count": len(foods)},
        format_foods([food.as_result() for food in foods]),
    )


@foods_group.command("delete")
@click.argument("food_id", required=False)
@click.pass_obj
def foods_delete_command(state: CliState, food_id: str | None) -> None:
    """Delete a custom food."""
    if not food_id:
        raise ValidationError("Custom food id is required")
    food = state.container.custom_food_service.delete_food(state.user_id, food_id)
    state.emit(
        {"success": True, "deleted": custom_food_to_dict(food)},
        f"Deleted custom food {food.name}",
    )


@cli.command("config")
@click.pass_obj
def config_command(state: CliState) -> None:
    """Show the active configuration without secrets."""
    settings = state.container.settings
    payload: dict[str, object] = {
        "userId": settings.user_id,
        "timezone": settings.timezone,
        "streakLookbackDays": settings.streak_lookback_days,
        "fdcBaseUrl": settings.fdc_base_url,
        "supabaseUrl": settings.supabase_url,
        "environment": settings.environment,
    }
    state.emit(payload, "\n".join(f"{key}: {value}" for key, value in payload.items()))


@cli.command("help")
@click.argument("topic", nargs=-1)
@click.pass_context
def help_command(ctx: click.Context, topic: tuple[str, ...]) -> None:
    """Show the command reference, or the options of one command."""
    state = ctx.find_object(CliState)
    if topic:
        text = _command_help(ctx, topic)
        state.emit({"command": " ".join(topic), "help": text}, text)
        return
    commands = command_reference()
    nutrients = [
        {"name": n.name, "unit": n.unit, "direction": n.direction.value}
        for n in NUTRIENTS.values()
    ]
    lines = ["nomnom commands:"]
    lines.extend(f"  {entry['usage']}  {entry['description']}" for entry in commands)
    lines.append("Nutrients: " + ", ".join(NUTRIENTS))
    state.emit({"commands": commands, "nutrients": nutrients}, "\n".join(lines))


def _command_help(ctx: click.Context, topic: Sequence[str]) -> str:
    command: click.Command = cli
    command_ctx = ctx.find_root()
    for name in topic:
        if not isinstance(command, click.Group) or name not in command.commands:
            raise ValidationError(f"Unknown command: {' '.join(topic)}")
        command = command.commands[name]
        command_ctx = click.Context(command, info_name=name, parent=command_ctx)
    return command.get_help(command_ctx)


def _route_help(argv: Sequence[str]) -> list[str]:
    """Send ``--help``/``-h`` to the help command so click never prints."""
    args = list(argv)
    if not _HELP_FLAGS.intersection(args):
        return args
    prefix: list[str] = []
    topic: list[str] = []
    command: click.Command = cli
    for arg in args:
        if arg in _HELP_FLAGS:
            break
        if isinstance(command, click.Group) and arg in command.commands:
            topic.append(arg)
            command = command.commands[arg]
        elif not topic and arg.startswith("-"):
            prefix.append(arg)
    return [*prefix, "help", *topic]


def run_command(
    argv: Sequence[str],
    container: AppContainer | None = None,
    factory: Callable[[], AppContainer] = build_container,
) -> CommandResult:
    """Run one CLI command and return its result without printing or exiting."""
    args = _route_help(argv)
    state = CliState(factory=factory, container_override=container)
    try:
        cli.main(args=args, prog_name="nomnom", obj=state, standalone_mode=False)
    except StoreUnavailableError as exc:
        _logger.exception("Store unavailable while running %s", args[:1])
        return CommandResult.failure(str(exc))
    except NomNomError as exc:
        return CommandResult.failure(str(exc))
    except click.ClickException as exc:
        return CommandResult.failure(exc.format_message())
    except click.Abort:
        return CommandResult.failure("Aborted")
    except pydantic.ValidationError as exc:
        return CommandResult.failure(f"Invalid configuration: {exc}")
    finally:
        state.close()
    if state.result is None:
        return CommandResult.failure("No command output")
    return state.result


def main(argv: Sequence[str] | None = None) -> None:
    """Console script entry point."""
    configure_logging()
    result = run_command(sys.argv[1:] if argv is None else argv)
    click.echo(result.output, err=not result.ok)
    sys.exit(result.exit_code)


def _logged_at(state: CliState, date_arg: str | None) -> datetime | None:
    if date_arg is None:
        return None
    today = state.today()
    day = parse_date_arg(date_arg, today)
    if day == today:
        return None
    tz = state.container.totals_service.tz
    return datetime.combine(day, time(12, 0), tzinfo=tz).astimezone(UTC)


def _dump(payload: dict[str, object]) -> str:
    return json.dumps(payload, indent=2, default=str)
