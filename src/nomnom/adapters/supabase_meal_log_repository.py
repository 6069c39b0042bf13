"""Supabase repository for meal logs."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from nomnom.adapters.supabase_errors import execute
from nomnom.domain.errors import StoreUnavailableError
from nomnom.domain.meals import MealInput, MealRecord
from nomnom.domain.nutrients import NUTRIENTS
from nomnom.services.meals import MealLogRepository

_TABLE = "meal_logs"


@dataclass
class SupabaseMealLogRepository(MealLogRepository):
    """Supabase implementation for meal logs."""

    client: Client

    def create_meal(
        self, user_id: str, meal: MealInput, logged_at: datetime
    ) -> MealRecord:
        """Create a meal log row and return it."""
        payload: dict[str, object] = {
            "user_id": user_id,
            "food_name": meal.food_name,
            "quantity": meal.quantity,
            "unit": meal.unit,
            "meal_type": meal.meal_type,
            "logged_at": logged_at.isoformat(),
            "notes": meal.notes,
            "food_id": meal.food_id,
            "barcode": meal.barcode,
        }
        payload.update(_nutrient_columns(meal.nutrients))
        response = execute(
            self.client.table(_TABLE).insert(payload), "meal log insert"
        )
        if not response.data:
            raise StoreUnavailableError("Failed to create meal log")
        return _parse_row(response.data[0])

    def get_meal(self, user_id: str, meal_id: str) -> MealRecord | None:
        """Return a meal log row by id."""
        response = execute(
            self.client.table(_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .eq("id", meal_id)
            .limit(1),
            "meal log read",
        )
        if not response.data:
            return None
        return _parse_row(response.data[0])

    def list_meals(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[MealRecord]:
        """Return meal logs in the time range."""
        response = execute(
            self.client.table(_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .gte("logged_at", start.isoformat())
            .lt("logged_at", end.isoformat())
            .order("logged_at", desc=False),
            "meal log read",
        )
        return [_parse_row(row) for row in response.data or []]

    def list_recent_meals(self, user_id: str, limit: int) -> list[MealRecord]:
        """Return recent meal logs for a user."""
        response = execute(
            self.client.table(_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .order("logged_at", desc=True)
            .limit(limit),
            "meal log read",
        )
        return [_parse_row(row) for row in response.data or []]

    def search_meals(self, user_id: str, query: str, limit: int) -> list[MealRecord]:
        """Search meal logs by food name or notes."""
        pattern = f"%{query}%"
        meals: dict[str, MealRecord] = {}
        for column in ("food_name", "notes"):
            response = execute(
                self.client.table(_TABLE)
                .select("*")
                .eq("user_id", user_id)
                .ilike(column, pattern)
                .order("logged_at", desc=True)
                .limit(limit),
                "meal log search",
            )
            for row in response.data or []:
                meal = _parse_row(row)
                meals.setdefault(meal.id, meal)
        ordered = sorted(meals.values(), key=lambda meal: meal.logged_at, reverse=True)
        return ordered[:limit]

    def update_meal(
        self, user_id: str, meal_id: str, changes: dict[str, object]
    ) -> MealRecord:
        """Update a meal log row and return it."""
        payload = {
            NUTRIENTS[key].column if key in NUTRIENTS else key: value
            for key, value in changes.items()
        }
        response = execute(
            self.client.table(_TABLE)
            .update(payload)
            .eq("user_id", user_id)
            .eq("id", meal_id),
            "meal log update",
        )
        if not response.data:
            raise StoreUnavailableError("Failed to update meal log")
        return _parse_row(response.data[0])

    def delete_meal(self, user_id: str, meal_id: str) -> None:
        """Delete a meal log row."""
        execute(
            self.client.table(_TABLE).delete().eq("user_id", user_id).eq("id", meal_id),
            "meal log delete",
        )

    def first_logged_at(self, user_id: str) -> datetime | None:
        """Return the timestamp of the earliest meal log."""
        response = execute(
            self.client.table(_TABLE)
            .select("logged_at")
            .eq("user_id", user_id)
            .order("logged_at", desc=False)
            .limit(1),
            "meal log read",
        )
        if not response.data:
            return None
        return _parse_timestamp(response.data[0].get("logged_at"))


def _nutrient_columns(nutrients: dict[str, float | None]) -> dict[str, float | None]:
    return {
        nutrient.column: nutrients.get(name) for name, nutrient in NUTRIENTS.items()
    }


def _parse_row(row: dict[str, object]) -> MealRecord:
    nutrients = {
        name: float(row[nutrient.column])
        if row.get(nutrient.column) is not None
        else None
        for name, nutrient in NUTRIENTS.items()
    }
    return MealRecord(
        id=str(row["id"]),
        user_id=str(row.get("user_id", "")),
        food_name=str(row.get("food_name", "")),
        quantity=float(row.get("quantity") or 1.0),
        unit=str(row.get("unit") or "serving"),
        meal_type=str(row.get("meal_type") or "snack"),
        logged_at=_parse_timestamp(row.get("logged_at")) or datetime.min,
        notes=row.get("notes"),
        food_id=row.get("food_id"),
        barcode=row.get("barcode"),
        nutrients=nutrients,
    )


def _parse_timestamp(raw: object) -> datetime | None:
    if isinstance(raw, str) and raw:
        return datetime.fromisoformat(raw)
    return None
