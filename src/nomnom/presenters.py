"""JSON payloads and text renderings shared by the CLI, MCP server and API."""

from nomnom.domain.foods import CustomFood, FoodResult
from nomnom.domain.goals import NutrientGoal
from nomnom.domain.meals import MealRecord
from nomnom.domain.nutrients import NUTRIENTS
from nomnom.domain.progress import (
    DailyTotals,
    NutrientProgress,
    ProgressReport,
    Streak,
    WeeklyAverage,
)

NO_GOALS_MESSAGE = (
    "No goals set. Set one with: nomnom goals --calories 2000 --protein 150"
)


def meal_to_dict(meal: MealRecord) -> dict[str, object]:
    """Return a meal as a JSON-ready mapping."""
    return {
        "id": meal.id,
        "foodName": meal.food_name,
        "quantity": meal.quantity,
        "unit": meal.unit,
        "mealType": meal.meal_type,
        "loggedAt": meal.logged_at.isoformat(),
        "notes": meal.notes,
        "foodId": meal.food_id,
        "barcode": meal.barcode,
        **{name: meal.nutrients.get(name) for name in NUTRIENTS},
    }


def totals_to_dict(totals: DailyTotals) -> dict[str, object]:
    """Return rounded nutrient totals plus the meal count."""
    return {
        **{name: _round(totals.value(name)) for name in NUTRIENTS},
        "mealCount": totals.meal_count,
    }


def goal_to_dict(goal: NutrientGoal) -> dict[str, object]:
    """Return a goal with its derived direction and unit."""
    return {
        "target": goal.target,
        "tolerance": goal.tolerance,
        "direction": goal.direction.value,
        "unit": NUTRIENTS[goal.nutrient].unit,
    }


def goals_to_dict(goals: dict[str, NutrientGoal]) -> dict[str, object]:
    """Return goals in nutrient table order."""
    return {name: goal_to_dict(goals[name]) for name in NUTRIENTS if name in goals}


def streak_to_dict(streak: Streak) -> dict[str, int]:
    return {"current": streak.current, "longest": streak.longest}


def weekly_to_dict(weekly: WeeklyAverage | None) -> dict[str, object]:
    if weekly is None:
        return {}
    return {
        **{name: _round(value) for name, value in weekly.averages.items()},
        "daysTracked": weekly.days_tracked,
    }


def nutrient_progress_to_dict(progress: NutrientProgress) -> dict[str, object]:
    """Return one nutrient's zone, band and remaining amount."""
    goal = progress.goal
    percent = (
        round(progress.actual / goal.target * 100) if goal.target > 0 else None
    )
    return {
        "actual": _round(progress.actual),
        "target": goal.target,
        "tolerance": progress.classification.tolerance,
        "band": progress.classification.band,
        "zone": progress.classification.zone.value,
        "direction": goal.direction.value,
        "remaining": _round(goal.target - progress.actual),
        "percent": percent,
    }


def progress_to_dict(report: ProgressReport) -> dict[str, object]:
    """Return the progress payload; nutrients without goals appear in totals."""
    today: dict[str, object] = {
        name: nutrient_progress_to_dict(report.nutrients[name])
        for name in NUTRIENTS
        if name in report.nutrients
    }
    today["mealCount"] = report.totals.meal_count
    streaks: dict[str, object] = {
        name: {
            **streak_to_dict(report.streaks[name]),
            "direction": NUTRIENTS[name].direction.value,
        }
        for name in NUTRIENTS
        if name in report.streaks
    }
    if report.has_goals:
        streaks["allGoals"] = streak_to_dict(report.all_goals_streak)
    payload: dict[str, object] = {
        "date": report.day.isoformat(),
        "hasGoals": report.has_goals,
        "goals": goals_to_dict(report.goals),
        "today": today,
        "totals": totals_to_dict(report.totals),
        "streaks": streaks,
        "weeklyAvg": weekly_to_dict(report.weekly),
    }
    if not report.has_goals:
        payload["message"] = NO_GOALS_MESSAGE
    return payload


def food_to_dict(food: FoodResult) -> dict[str, object]:
    """Return a food search or barcode result."""
    payload: dict[str, object] = {"source": food.source}
    if food.fdc_id is not None:
        payload["fdcId"] = food.fdc_id
    if food.id is not None:
        payload["id"] = food.id
    payload.update(
        {
            "description": food.description,
            "brand": food.brand,
            "barcode": food.barcode,
            "servingSize": food.serving_size,
            "servingGrams": food.serving_grams,
            "nutrients": food.nutrients,
        }
    )
    return payload


def custom_food_to_dict(food: CustomFood) -> dict[str, object]:
    return {
        "id": food.id,
        "name": food.name,
        "brand": food.brand,
        "barcode": food.barcode,
        "servingSize": food.serving_size,
        "nutrients": food.nutrients,
        "createdAt": food.created_at.isoformat() if food.created_at else None,
    }


def format_progress(report: ProgressReport) -> str:
    """Render a progress report with a zone tag per nutrient."""
    lines = [f"Progress for {report.day.isoformat()}"]
    if not report.has_goals:
        lines.append(NO_GOALS_MESSAGE)
        return "\n".join(lines)
    for name in NUTRIENTS:
        progress = report.nutrients.get(name)
        if progress is None:
            continue
        unit = NUTRIENTS[name].unit
        lines.append(
            f"  {name}: {progress.actual:.0f} / {progress.goal.target:.0f} {unit} "
            f"(band {progress.classification.band:g}) "
            f"[{progress.classification.zone.value}]"
        )
    lines.append(f"Meals logged: {report.totals.meal_count}")
    lines.append("Streaks:")
    for name, streak in report.streaks.items():
        lines.append(
            f"  {name}: {streak.current} days (longest {streak.longest})"
        )
    lines.append(
        f"  all goals: {report.all_goals_streak.current} days "
        f"(longest {report.all_goals_streak.longest})"
    )
    return "\n".join(lines)


def format_daily(totals: DailyTotals, meals: list[MealRecord]) -> str:
    """Render a day's totals with a per-meal list."""
    lines = [
        f"Totals for {totals.day.isoformat()}:",
        f"Calories: {totals.value('calories'):.0f}",
        f"Protein: {totals.value('protein'):.1f} g",
        f"Carbs: {totals.value('carbs'):.1f} g",
        f"Fat: {totals.value('fat'):.1f} g",
        f"Meals: {totals.meal_count}",
    ]
    for meal in meals:
        lines.append(f"- {_format_meal_line(meal)}")
    return "\n".join(lines)


def format_goals(goals: dict[str, NutrientGoal]) -> str:
    if not goals:
        return NO_GOALS_MESSAGE
    lines = ["Goals:"]
    for name in NUTRIENTS:
        goal = goals.get(name)
        if goal is None:
            continue
        lines.append(
            f"- {name}: {goal.target:g} {NUTRIENTS[name].unit} "
            f"({goal.direction.value}, tolerance {goal.tolerance}%)"
        )
    return "\n".join(lines)


def format_history(meals: list[MealRecord]) -> str:
    """Render recent meals, newest first."""
    if not meals:
        return "No meals logged."
    lines = ["Recent meals:"]
    for meal in meals:
        lines.append(f"- {meal.logged_at.date()} {_format_meal_line(meal)}")
    return "\n".join(lines)


def format_foods(foods: list[FoodResult]) -> str:
    if not foods:
        return "No foods found."
    lines = []
    for food in foods:
        calories = food.nutrients.get("calories")
        label = f"{food.description} ({food.brand})" if food.brand else food.description
        suffix = f": {calories:.0f} kcal" if calories is not None else ""
        reference = food.fdc_id if food.fdc_id is not None else food.id
        lines.append(f"- [{food.source} {reference}] {label}{suffix}")
    return "\n".join(lines)


def _format_meal_line(meal: MealRecord) -> str:
    return (
        f"{meal.logged_at.strftime('%H:%M')} {meal.meal_type}: {meal.food_name} "
        f"({meal.value('calories'):.0f} kcal) [{meal.id}]"
    )


def _round(value: float) -> float:
    return round(value, 2)
