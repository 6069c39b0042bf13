"""Progress report builder."""

from dataclasses import dataclass
from datetime import date

from nomnom.domain.progress import NutrientProgress, ProgressReport
from nomnom.services.goals import GoalService
from nomnom.services.streaks import StreakService, streaks_for_window
from nomnom.services.tolerance import classify_goal
from nomnom.services.totals import TotalsService, average_tracked

WEEK_DAYS = 7


@dataclass
class ProgressService:
    """Composes totals, goal zones, streaks and the weekly average for a day."""

    totals_service: TotalsService
    goal_service: GoalService
    streak_service: StreakService

    def build_report(self, user_id: str, day: date | None = None) -> ProgressReport:
        """Return the progress report for ``day`` (default today).

        Goals and meals are each read once; the day's totals, the weekly
        average and the streaks all come from the same lookback window.
        """
        resolved_day = day or self.totals_service.today()
        goals = self.goal_service.get_goals(user_id)
        lookback = max(self.streak_service.lookback_days, WEEK_DAYS)
        window = self.streak_service.window(user_id, resolved_day, lookback)
        totals = window[-1]
        weekly = average_tracked(window[-WEEK_DAYS:])
        nutrients = {
            nutrient: NutrientProgress(
                goal=goal,
                actual=totals.value(nutrient),
                classification=classify_goal(goal, totals.value(nutrient)),
            )
            for nutrient, goal in goals.items()
        }
        streak_days = max(self.streak_service.lookback_days, 1)
        streak_window = window[-streak_days:]
        first_logged = (
            self.totals_service.first_logged_day(user_id) if goals else None
        )
        streaks, all_goals = streaks_for_window(streak_window, goals, first_logged)
        return ProgressReport(
            day=resolved_day,
            totals=totals,
            goals=goals,
            nutrients=nutrients,
            streaks=streaks,
            all_goals_streak=all_goals,
            weekly=weekly,
        )
