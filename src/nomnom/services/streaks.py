"""Streak engine over per-day goal compliance."""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, timedelta

from nomnom.domain.goals import NutrientGoal
from nomnom.domain.progress import DailyTotals, DayStatus, Streak
from nomnom.services.goals import GoalService
from nomnom.services.tolerance import classify_goal
from nomnom.services.totals import TotalsService


def day_statuses(
    daily: Sequence[DailyTotals],
    goal: NutrientGoal | None,
    first_logged: date | None,
) -> list[DayStatus]:
    """Return the streak status of each day in chronological order.

    A day is excluded when the nutrient has no goal, when it precedes the
    user's first logged meal, or when it trails the last day with any meals in
    the window. Remaining days are classified with zero-meal days counting as
    an actual of 0.
    """
    if goal is None or first_logged is None:
        return [DayStatus.EXCLUDED] * len(daily)
    logged_days = [entry.day for entry in daily if entry.meal_count > 0]
    last_logged = max(logged_days) if logged_days else None
    statuses = []
    for entry in daily:
        if entry.day < first_logged or last_logged is None or entry.day > last_logged:
            statuses.append(DayStatus.EXCLUDED)
            continue
        zone = classify_goal(goal, entry.value(goal.nutrient)).zone
        statuses.append(DayStatus.COMPLIANT if zone.is_compliant else DayStatus.BROKEN)
    return statuses


def compute_streak(statuses: Sequence[DayStatus]) -> Streak:
    """Return current and longest compliant runs; excluded days are skipped."""
    current = 0
    for status in reversed(statuses):
        if status is DayStatus.BROKEN:
            break
        if status is DayStatus.COMPLIANT:
            current += 1

    longest = 0
    run = 0
    for status in statuses:
        if status is DayStatus.COMPLIANT:
            run += 1
            longest = max(longest, run)
        elif status is DayStatus.BROKEN:
            run = 0
    return Streak(current=current, longest=longest)


def combine_statuses(per_nutrient: Sequence[Sequence[DayStatus]]) -> list[DayStatus]:
    """Merge nutrient statuses into one: broken wins, all-excluded stays excluded."""
    combined = []
    for day in zip(*per_nutrient, strict=True):
        if DayStatus.BROKEN in day:
            combined.append(DayStatus.BROKEN)
        elif DayStatus.COMPLIANT in day:
            combined.append(DayStatus.COMPLIANT)
        else:
            combined.append(DayStatus.EXCLUDED)
    return combined


@dataclass
class StreakService:
    """Service that computes streaks from stored goals and meal history."""

    totals_service: TotalsService
    goal_service: GoalService
    lookback_days: int = 90

    def compute_streaks(
        self,
        user_id: str,
        nutrient: str,
        as_of: date,
        lookback_days: int | None = None,
    ) -> Streak:
        """Return the streak for one nutrient over the window ending ``as_of``."""
        goals = self.goal_service.get_goals(user_id)
        daily = self.window(user_id, as_of, lookback_days)
        first_logged = self.totals_service.first_logged_day(user_id)
        return compute_streak(day_statuses(daily, goals.get(nutrient), first_logged))

    def compute_all(
        self,
        user_id: str,
        goals: dict[str, NutrientGoal],
        as_of: date,
        lookback_days: int | None = None,
    ) -> tuple[dict[str, Streak], Streak]:
        """Return per-nutrient streaks and the all-goals streak from one read."""
        if not goals:
            return {}, Streak()
        daily = self.window(user_id, as_of, lookback_days)
        first_logged = self.totals_service.first_logged_day(user_id)
        return streaks_for_window(daily, goals, first_logged)

    def window(
        self, user_id: str, as_of: date, lookback_days: int | None = None
    ) -> list[DailyTotals]:
        """Return chronological daily totals for the lookback window."""
        days = max(lookback_days or self.lookback_days, 1)
        first = as_of - timedelta(days=days - 1)
        daily = self.totals_service.get_range_totals(user_id, first, as_of)
        return [daily[day] for day in sorted(daily)]


def streaks_for_window(
    daily: Sequence[DailyTotals],
    goals: dict[str, NutrientGoal],
    first_logged: date | None,
) -> tuple[dict[str, Streak], Streak]:
    """Return per-nutrient and all-goals streaks over an already-fetched window."""
    if not goals:
        return {}, Streak()
    per_nutrient = {
        nutrient: day_statuses(daily, goal, first_logged)
        for nutrient, goal in goals.items()
    }
    streaks = {
        nutrient: compute_streak(statuses)
        for nutrient, statuses in per_nutrient.items()
    }
    all_goals = compute_streak(combine_statuses(list(per_nutrient.values())))
    return streaks, all_goals
