"""Domain models for daily totals, goal zones and streaks."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from nomnom.domain.goals import NutrientGoal


class Zone(str, Enum):
    """Classification of a day's actual value against its goal."""

    MET = "met"
    NEAR = "near"
    OVER = "over"
    UNDER = "under"

    @property
    def is_compliant(self) -> bool:
        """Return True when the zone counts toward a streak."""
        return self in (Zone.MET, Zone.NEAR)


class DayStatus(str, Enum):
    """Streak contribution of a single day."""

    COMPLIANT = "compliant"
    BROKEN = "broken"
    EXCLUDED = "excluded"


@dataclass(frozen=True)
class ZoneClassification:
    """Zone plus the band actually enforced after tolerance."""

    zone: Zone
    band: float
    tolerance: int


@dataclass(frozen=True)
class Streak:
    """Current and longest runs of compliant days."""

    current: int = 0
    longest: int = 0


@dataclass(frozen=True)
class DailyTotals:
    """Per-nutrient totals for one local day."""

    day: date
    totals: dict[str, float]
    meal_count: int

    def value(self, nutrient: str) -> float:
        """Return the total for a nutrient, zero when nothing was logged."""
        return self.totals.get(nutrient, 0.0)


@dataclass(frozen=True)
class NutrientProgress:
    """Today's standing for one nutrient with a goal."""

    goal: NutrientGoal
    actual: float
    classification: ZoneClassification


@dataclass(frozen=True)
class WeeklyAverage:
    """Average totals over the days with at least one meal."""

    averages: dict[str, float]
    days_tracked: int


@dataclass(frozen=True)
class ProgressReport:
    """Composed progress view for one day."""

    day: date
    totals: DailyTotals
    goals: dict[str, NutrientGoal]
    nutrients: dict[str, NutrientProgress] = field(default_factory=dict)
    streaks: dict[str, Streak] = field(default_factory=dict)
    all_goals_streak: Streak = field(default_factory=Streak)
    weekly: WeeklyAverage | None = None

    @property
    def has_goals(self) -> bool:
        """Return True when at least one goal is configured."""
        return bool(self.goals)
