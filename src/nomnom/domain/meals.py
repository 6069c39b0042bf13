"""Domain models for meal logging."""

from dataclasses import dataclass, field
from datetime import datetime

MEAL_TYPES = ("breakfast", "lunch", "dinner", "snack")


@dataclass(frozen=True)
class MealInput:
    """Meal data supplied by a caller before persistence."""

    food_name: str
    quantity: float = 1.0
    unit: str = "serving"
    meal_type: str = "snack"
    notes: str | None = None
    food_id: str | None = None
    fdc_id: int | None = None
    barcode: str | None = None
    logged_at: datetime | None = None
    nutrients: dict[str, float | None] = field(default_factory=dict)


@dataclass(frozen=True)
class MealRecord:
    """Persisted meal with nullable nutrient values keyed by nutrient name."""

    id: str
    user_id: str
    food_name: str
    quantity: float
    unit: str
    meal_type: str
    logged_at: datetime
    notes: str | None
    food_id: str | None
    barcode: str | None
    nutrients: dict[str, float | None]

    def value(self, nutrient: str) -> float:
        """Return a nutrient value, treating missing values as zero."""
        return self.nutrients.get(nutrient) or 0.0
