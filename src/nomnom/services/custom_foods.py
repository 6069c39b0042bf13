"""Services for user-defined custom foods."""

from dataclasses import dataclass
from typing import Protocol

from nomnom.domain.errors import NotFoundError, ValidationError
from nomnom.domain.foods import CustomFood
from nomnom.domain.nutrients import NUTRIENTS


class CustomFoodRepository(Protocol):
    """Persistence interface for custom foods."""

    def create_food(self, user_id: str, payload: dict[str, object]) -> CustomFood:
        """Create a custom food and return it."""

    def get_food(self, user_id: str, food_id: str) -> CustomFood | None:
        """Return a custom food by id, if present."""

    def list_foods(self, user_id: str) -> list[CustomFood]:
        """Return all custom foods for a user."""

    def search_foods(self, user_id: str, query: str, limit: int) -> list[CustomFood]:
        """Return custom foods whose name or brand matches the query."""

    def find_by_barcode(self, user_id: str, barcode: str) -> CustomFood | None:
        """Return the custom food registered under a barcode."""

    def delete_food(self, user_id: str, food_id: str) -> None:
        """Delete a custom food."""


@dataclass
class CustomFoodService:
    """Application service for custom food operations."""

    repository: CustomFoodRepository

    def add_food(  # noqa: PLR0913
        self,
        user_id: str,
        name: str,
        nutrients: dict[str, float | None],
        brand: str | None = None,
        barcode: str | None = None,
        serving_size: str | None = None,
    ) -> CustomFood:
        """Create a custom food after validating its nutrient values."""
        if not name.strip():
            raise ValidationError("Custom food name is required")
        for key, value in nutrients.items():
            if key not in NUTRIENTS:
                raise ValidationError(f"Unknown nutrient: {key}")
            if value is not None and value < 0:
                raise ValidationError(f"{key} must be >= 0 (got {value})")
        return self.repository.create_food(
            user_id,
            {
                "name": name.strip(),
                "brand": brand,
                "barcode": barcode,
                "serving_size": serving_size,
                "nutrients": nutrients,
            },
        )

    def get_food(self, user_id: str, food_id: str) -> CustomFood:
        """Return a custom food or raise when it does not exist."""
        food = self.repository.get_food(user_id, food_id)
        if food is None:
            raise NotFoundError(f"Custom food not found: {food_id}")
        return food

    def list_foods(self, user_id: str) -> list[CustomFood]:
        """Return the user's custom foods sorted by name."""
        return sorted(self.repository.list_foods(user_id), key=lambda f: f.name.lower())

    def search(self, user_id: str, query: str, limit: int = 10) -> list[CustomFood]:
        """Search custom foods by name."""
        if not query.strip():
            return []
        return self.repository.search_foods(user_id, query.strip(), limit)

    def find_by_barcode(self, user_id: str, barcode: str) -> CustomFood | None:
        """Return the custom food registered under a barcode, if any."""
        return self.repository.find_by_barcode(user_id, barcode)

    def delete_food(self, user_id: str, food_id: str) -> CustomFood:
        """Delete a custom food and return what was removed."""
        food = self.get_food(user_id, food_id)
        self.repository.delete_food(user_id, food_id)
        return food
