"""Meal logging service."""

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol

from nomnom.domain.errors import NotFoundError, ValidationError
from nomnom.domain.meals import MEAL_TYPES, MealInput, MealRecord
from nomnom.domain.nutrients import NUTRIENTS

if TYPE_CHECKING:
    from nomnom.services.foods import FoodService

EDITABLE_FIELDS = ("food_name", "quantity", "unit", "meal_type", "notes")


class MealLogRepository(Protocol):
    """Persistence interface for meal logs."""

    def create_meal(
        self, user_id: str, meal: MealInput, logged_at: datetime
    ) -> MealRecord:
        """Persist a meal and return the stored record."""

    def get_meal(self, user_id: str, meal_id: str) -> MealRecord | None:
        """Return a meal by id, if present."""

    def list_meals(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[MealRecord]:
        """Return meals logged in the half-open UTC range."""

    def list_recent_meals(self, user_id: str, limit: int) -> list[MealRecord]:
        """Return the most recent meals, newest first."""

    def search_meals(self, user_id: str, query: str, limit: int) -> list[MealRecord]:
        """Return meals whose name or notes match the query, newest first."""

    def update_meal(
        self, user_id: str, meal_id: str, changes: dict[str, object]
    ) -> MealRecord:
        """Apply field changes to a meal and return the updated record."""

    def delete_meal(self, user_id: str, meal_id: str) -> None:
        """Delete a meal."""

    def first_logged_at(self, user_id: str) -> datetime | None:
        """Return the timestamp of the user's earliest meal."""


@dataclass
class MealLogService:
    """Service that resolves nutrients and persists meal logs."""

    repository: MealLogRepository
    food_service: "FoodService"

    async def log_meal(self, user_id: str, meal: MealInput) -> MealRecord:
        """Validate and persist a meal, filling nutrients from a food reference."""
        _validate_meal(meal)
        if not _has_values(meal.nutrients) and _has_food_ref(meal):
            base = await self._resolve_base_nutrients(user_id, meal)
            meal = replace(meal, nutrients=_scale(base, meal.quantity))
        logged_at = meal.logged_at or datetime.now(tz=UTC)
        return self.repository.create_meal(user_id, meal, logged_at)

    def get_meal(self, user_id: str, meal_id: str) -> MealRecord:
        """Return a meal or raise when it does not exist."""
        meal = self.repository.get_meal(user_id, meal_id)
        if meal is None:
            raise NotFoundError(f"Meal not found: {meal_id}")
        return meal

    def get_history(self, user_id: str, limit: int = 20) -> list[MealRecord]:
        """Return recent meals, newest first."""
        return self.repository.list_recent_meals(user_id, limit)

    def search_meals(
        self, user_id: str, query: str, limit: int = 20
    ) -> list[MealRecord]:
        """Search logged meals by food name or notes."""
        if not query.strip():
            return self.get_history(user_id, limit)
        return self.repository.search_meals(user_id, query.strip(), limit)

    def edit_meal(
        self, user_id: str, meal_id: str, changes: dict[str, object]
    ) -> tuple[MealRecord, list[str]]:
        """Apply provided fields to a meal and return it with the field names."""
        meal = self.get_meal(user_id, meal_id)
        provided = {key: value for key, value in changes.items() if value is not None}
        for key in provided:
            if key not in EDITABLE_FIELDS and key not in NUTRIENTS:
                raise ValidationError(f"Cannot edit meal field: {key}")
        if not provided:
            return meal, []
        _validate_changes(provided)
        updated = self.repository.update_meal(user_id, meal_id, provided)
        return updated, list(provided)

    def delete_meal(self, user_id: str, meal_id: str) -> MealRecord:
        """Delete a meal and return what was removed."""
        meal = self.get_meal(user_id, meal_id)
        self.repository.delete_meal(user_id, meal_id)
        return meal

    async def _resolve_base_nutrients(
        self, user_id: str, meal: MealInput
    ) -> dict[str, float | None]:
        if meal.food_id:
            food = self.food_service.custom_foods.get_food(user_id, meal.food_id)
            return food.nutrients
        if meal.fdc_id is not None:
            details = await self.food_service.get_food(meal.fdc_id)
            return details.nutrients
        result = await self.food_service.lookup_barcode(user_id, str(meal.barcode))
        if result is None:
            raise NotFoundError(f"Barcode not found: {meal.barcode}")
        return result.nutrients


def _validate_meal(meal: MealInput) -> None:
    if not meal.food_name.strip():
        raise ValidationError("Food name is required")
    _validate_changes(
        {"quantity": meal.quantity, "meal_type": meal.meal_type, **meal.nutrients}
    )


def _validate_changes(changes: dict[str, object]) -> None:
    quantity = changes.get("quantity")
    if quantity is not None and quantity <= 0:
        raise ValidationError(f"quantity must be > 0 (got {quantity})")
    meal_type = changes.get("meal_type")
    if meal_type is not None and meal_type not in MEAL_TYPES:
        raise ValidationError(
            f"meal type must be one of {', '.join(MEAL_TYPES)} (got {meal_type})"
        )
    food_name = changes.get("food_name")
    if food_name is not None and not str(food_name).strip():
        raise ValidationError("Food name is required")
    for name in NUTRIENTS:
        value = changes.get(name)
        if value is not None and value < 0:
            raise ValidationError(f"{name} must be >= 0 (got {value})")


def _has_values(nutrients: dict[str, float | None]) -> bool:
    return any(value is not None for value in nutrients.values())


def _has_food_ref(meal: MealInput) -> bool:
    return bool(meal.food_id) or meal.fdc_id is not None or bool(meal.barcode)


def _scale(
    base: dict[str, float | None], servings: float
) -> dict[str, float | None]:
    return {
        name: None if value is None else round(value * servings, 2)
        for name, value in base.items()
    }
