"""Food lookup domain models."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class FoodResult:
    """Food from USDA FoodData Central or the user's custom foods."""

    source: str
    description: str
    brand: str | None
    barcode: str | None
    serving_size: str | None
    nutrients: dict[str, float | None]
    fdc_id: int | None = None
    id: str | None = None
    serving_grams: float | None = None


@dataclass(frozen=True)
class CustomFood:
    """User-defined food with per-serving nutrient values."""

    id: str
    user_id: str
    name: str
    brand: str | None
    barcode: str | None
    serving_size: str | None
    nutrients: dict[str, float | None]
    created_at: datetime | None = None

    def as_result(self) -> FoodResult:
        """Return this food in search result form."""
        return FoodResult(
            source="custom",
            description=self.name,
            brand=self.brand,
            barcode=self.barcode,
            serving_size=self.serving_size,
            nutrients=self.nutrients,
            id=self.id,
        )
