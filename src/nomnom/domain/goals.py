"""Domain models for nutrition goals."""

from dataclasses import dataclass
from datetime import datetime

from nomnom.domain.nutrients import Direction, direction_for


@dataclass(frozen=True)
class NutrientGoal:
    """Target and tolerance for one nutrient."""

    nutrient: str
    target: float
    tolerance: int = 0
    updated_at: datetime | None = None

    @property
    def direction(self) -> Direction:
        """Return the nutrient's fixed compliance direction."""
        return direction_for(self.nutrient)


@dataclass(frozen=True)
class GoalUpdate:
    """Partial update for one nutrient goal."""

    target: float | None = None
    tolerance: int | None = None
