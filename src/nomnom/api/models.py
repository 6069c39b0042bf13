"""Pydantic models for HTTP request bodies."""

from datetime import datetime

from pydantic import BaseModel, Field


class GoalsUpdate(BaseModel):
    """Partial goal update keyed by nutrient name."""

    targets: dict[str, float] = Field(default_factory=dict)
    tolerances: dict[str, int] = Field(default_factory=dict)
    reset: bool = False


class MealCreate(BaseModel):
    """Meal to log."""

    food_name: str
    quantity: float = 1.0
    unit: str = "serving"
    meal_type: str = "snack"
    notes: str | None = None
    food_id: str | None = None
    fdc_id: int | None = None
    barcode: str | None = None
    logged_at: datetime | None = None
    nutrients: dict[str, float] = Field(default_factory=dict)
