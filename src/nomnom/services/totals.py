"""Daily nutrient totals aggregated from the meal log."""

from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from nomnom.domain.meals import MealRecord
from nomnom.domain.nutrients import NUTRIENT_NAMES
from nomnom.domain.progress import DailyTotals, WeeklyAverage
from nomnom.services.meals import MealLogRepository


@dataclass
class TotalsService:
    """Service for computing per-day totals in the user's timezone."""

    repository: MealLogRepository
    timezone_name: str = "UTC"

    @property
    def tz(self) -> ZoneInfo:
        """Return the configured timezone."""
        return ZoneInfo(self.timezone_name)

    def today(self) -> date:
        """Return the current local date."""
        return datetime.now(tz=self.tz).date()

    def get_meals_by_date(self, user_id: str, day: date) -> list[MealRecord]:
        """Return meals logged on a local day, oldest first."""
        start, end = day_bounds(day, day, self.tz)
        meals = self.repository.list_meals(user_id, start, end)
        return sorted(meals, key=lambda meal: meal.logged_at)

    def get_daily_totals(self, user_id: str, day: date) -> DailyTotals:
        """Return totals and meal count for a local day."""
        return aggregate_day(day, self.get_meals_by_date(user_id, day), self.tz)

    def get_range_totals(
        self, user_id: str, first: date, last: date
    ) -> dict[date, DailyTotals]:
        """Return totals for every day in ``first..last`` from one store read."""
        start, end = day_bounds(first, last, self.tz)
        meals = self.repository.list_meals(user_id, start, end)
        by_day: dict[date, list[MealRecord]] = {}
        for meal in meals:
            by_day.setdefault(local_day(meal.logged_at, self.tz), []).append(meal)
        return {
            day: aggregate_day(day, by_day.get(day, []), self.tz)
            for day in iter_days(first, last)
        }

    def first_logged_day(self, user_id: str) -> date | None:
        """Return the local day of the user's earliest meal, if any."""
        first = self.repository.first_logged_at(user_id)
        if first is None:
            return None
        return local_day(first, self.tz)


def aggregate_day(day: date, meals: list[MealRecord], tz: ZoneInfo) -> DailyTotals:
    """Sum every tracked nutrient over the meals that fall on ``day``."""
    totals = dict.fromkeys(NUTRIENT_NAMES, 0.0)
    count = 0
    for meal in meals:
        if local_day(meal.logged_at, tz) != day:
            continue
        count += 1
        for name in NUTRIENT_NAMES:
            totals[name] += meal_value(meal, name)
    return DailyTotals(day=day, totals=totals, meal_count=count)


def meal_value(meal: MealRecord, nutrient: str) -> float:
    """Return a meal's contribution to a nutrient total."""
    if nutrient == "net_carbs" and meal.nutrients.get("net_carbs") is None:
        return max(meal.value("carbs") - meal.value("fiber"), 0.0)
    return meal.value(nutrient)


def average_tracked(daily: list[DailyTotals]) -> WeeklyAverage:
    """Average totals over days with at least one meal."""
    tracked = [entry for entry in daily if entry.meal_count > 0]
    days = max(len(tracked), 1)
    averages = {
        name: sum(entry.value(name) for entry in tracked) / days
        for name in NUTRIENT_NAMES
    }
    return WeeklyAverage(averages=averages, days_tracked=len(tracked))


def day_bounds(first: date, last: date, tz: ZoneInfo) -> tuple[datetime, datetime]:
    """Return the UTC half-open range covering local days ``first..last``."""
    start = datetime.combine(first, time.min, tzinfo=tz)
    end = datetime.combine(last + timedelta(days=1), time.min, tzinfo=tz)
    return start.astimezone(UTC), end.astimezone(UTC)


def local_day(moment: datetime, tz: ZoneInfo) -> date:
    """Return the local calendar day of a timestamp."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(tz).date()


def iter_days(first: date, last: date) -> list[date]:
    """Return every day from ``first`` to ``last`` inclusive."""
    return [first + timedelta(days=offset) for offset in range((last - first).days + 1)]
