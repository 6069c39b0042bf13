"""Supabase implementation for user custom foods."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from nomnom.adapters.supabase_errors import execute
from nomnom.domain.errors import StoreUnavailableError
from nomnom.domain.foods import CustomFood
from nomnom.domain.nutrients import NUTRIENTS
from nomnom.services.custom_foods import CustomFoodRepository

_TABLE = "custom_foods"


@dataclass
class SupabaseCustomFoodRepository(CustomFoodRepository):
    """Supabase-backed repository for custom foods."""

    client: Client

    def create_food(self, user_id: str, payload: dict[str, object]) -> CustomFood:
        """Create a custom food and return it."""
        nutrients = payload.get("nutrients") or {}
        row = {
            "user_id": user_id,
            "name": payload.get("name"),
            "brand": payload.get("brand"),
            "barcode": payload.get("barcode"),
            "serving_size": payload.get("serving_size"),
            **{
                nutrient.column: nutrients.get(name)
                for name, nutrient in NUTRIENTS.items()
            },
        }
        response = execute(
            self.client.table(_TABLE).insert(row), "custom food insert"
        )
        if not response.data:
            raise StoreUnavailableError("Failed to create custom food")
        return _parse_food(response.data[0])

    def get_food(self, user_id: str, food_id: str) -> CustomFood | None:
        """Return a custom food by id, if present."""
        response = execute(
            self.client.table(_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .eq("id", food_id)
            .limit(1),
            "custom food read",
        )
        if not response.data:
            return None
        return _parse_food(response.data[0])

    def list_foods(self, user_id: str) -> list[CustomFood]:
        """Return all custom foods for a user."""
        response = execute(
            self.client.table(_TABLE).select("*").eq("user_id", user_id),
            "custom food read",
        )
        return [_parse_food(row) for row in response.data or []]

    def search_foods(self, user_id: str, query: str, limit: int) -> list[CustomFood]:
        """Search custom foods by name or brand."""
        pattern = f"%{query}%"
        foods: dict[str, CustomFood] = {}
        for column in ("name", "brand"):
            response = execute(
                self.client.table(_TABLE)
                .select("*")
                .eq("user_id", user_id)
                .ilike(column, pattern)
                .limit(limit),
                "custom food search",
            )
            for row in response.data or []:
                food = _parse_food(row)
                foods.setdefault(food.id, food)
        return list(foods.values())[:limit]

    def find_by_barcode(self, user_id: str, barcode: str) -> CustomFood | None:
        """Return the custom food registered under a barcode."""
        response = execute(
            self.client.table(_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .eq("barcode", barcode)
            .limit(1),
            "custom food read",
        )
        if not response.data:
            return None
        return _parse_food(response.data[0])

    def delete_food(self, user_id: str, food_id: str) -> None:
        """Delete a custom food."""
        execute(
            self.client.table(_TABLE).delete().eq("user_id", user_id).eq("id", food_id),
            "custom food delete",
        )


def _parse_food(row: dict[str, object]) -> CustomFood:
    """Parse a custom food row into a domain model."""
    created_raw = row.get("created_at")
    created_at = (
        datetime.fromisoformat(created_raw)
        if isinstance(created_raw, str) and created_raw
        else None
    )
    return CustomFood(
        id=str(row["id"]),
        user_id=str(row.get("user_id", "")),
        name=str(row.get("name", "")),
        brand=row.get("brand"),
        barcode=row.get("barcode"),
        serving_size=row.get("serving_size"),
        nutrients={
            name: float(row[nutrient.column])
            if row.get(nutrient.column) is not None
            else None
            for name, nutrient in NUTRIENTS.items()
        },
        created_at=created_at,
    )
