"""Food search and barcode lookup over USDA FDC and custom foods."""

import logging
from dataclasses import dataclass

from nomnom.adapters.fdc_client import FdcClient
from nomnom.domain.foods import FoodResult
from nomnom.services.cache import Cache
from nomnom.services.custom_foods import CustomFoodService

_NUTRIENT_IDS = {
    1008: "calories",
    1003: "protein",
    1005: "carbs",
    1004: "fat",
    1079: "fiber",
    2000: "sugar",
    1063: "sugar",
    1093: "sodium",
    1258: "saturated_fat",
    1253: "cholesterol",
}

DEFAULT_SERVING_GRAMS = 100.0

_logger = logging.getLogger(__name__)


@dataclass
class FoodService:
    """Service for food lookups with caching."""

    fdc_client: FdcClient
    cache: Cache
    custom_foods: CustomFoodService
    search_ttl_seconds: int = 3600
    food_ttl_seconds: int = 86400
    debug: bool = False

    async def search(
        self, user_id: str, query: str, limit: int = 10
    ) -> list[FoodResult]:
        """Search custom foods first, then fill the rest from USDA FDC."""
        custom = [
            food.as_result()
            for food in self.custom_foods.search(user_id, query, limit)
        ]
        remaining = limit - len(custom)
        if remaining <= 0:
            return custom[:limit]
        return custom + await self.search_usda(query, remaining)

    async def search_usda(self, query: str, limit: int = 10) -> list[FoodResult]:
        """Search FDC foods with caching."""
        cache_key = f"fdc:search:{query.lower()}:{limit}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, list):
            return cached

        payload = await self.fdc_client.search_foods(query, page_size=limit)
        foods = [_parse_food(food) for food in payload.get("foods", [])]
        self.cache.set(cache_key, foods, ttl_seconds=self.search_ttl_seconds)
        if self.debug:
            _logger.info("FDC search: query=%s results=%s", query, len(foods))
        return foods

    async def lookup_barcode(self, user_id: str, barcode: str) -> FoodResult | None:
        """Return the food for a UPC/GTIN barcode, custom foods first."""
        custom = self.custom_foods.find_by_barcode(user_id, barcode)
        if custom is not None:
            return custom.as_result()

        cache_key = f"fdc:barcode:{barcode}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, FoodResult):
            return cached

        payload = await self.fdc_client.search_foods(
            barcode, page_size=5, data_types=["Branded"]
        )
        for food in payload.get("foods", []):
            if _same_barcode(food.get("gtinUpc"), barcode):
                result = _parse_food(food)
                self.cache.set(cache_key, result, ttl_seconds=self.food_ttl_seconds)
                return result
        if self.debug:
            _logger.info("FDC barcode miss: barcode=%s", barcode)
        return None

    async def get_food(self, fdc_id: int) -> FoodResult:
        """Retrieve a food with nutrient values from FDC."""
        cache_key = f"fdc:food:{fdc_id}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, FoodResult):
            return cached

        payload = await self.fdc_client.get_food(fdc_id)
        details = _parse_food(payload)
        self.cache.set(cache_key, details, ttl_seconds=self.food_ttl_seconds)
        if self.debug:
            _logger.info("FDC food: fdc_id=%s", fdc_id)
        return details


def _parse_food(payload: dict[str, object]) -> FoodResult:
    """Parse an FDC food with nutrient values scaled to one serving."""
    serving_size, serving_grams = _serving(payload)
    per_100g = _extract_nutrients(payload.get("foodNutrients", []))
    scale = serving_grams / 100
    return FoodResult(
        source="usda",
        fdc_id=payload.get("fdcId"),
        description=str(payload.get("description", "")),
        brand=payload.get("brandOwner") or payload.get("brandName"),
        barcode=payload.get("gtinUpc"),
        serving_size=serving_size,
        nutrients={
            name: None if value is None else round(value * scale, 2)
            for name, value in per_100g.items()
        },
        serving_grams=serving_grams,
    )


def _serving(payload: dict[str, object]) -> tuple[str, float]:
    # FDC reports nutrients per 100 g; foods without a serving use 100 g.
    size = payload.get("servingSize")
    unit = payload.get("servingSizeUnit")
    if size and unit:
        household = payload.get("householdServingFullText")
        return str(household or f"{size}{unit}"), float(size)
    for measure in payload.get("foodMeasures") or []:
        grams = measure.get("gramWeight")
        if grams:
            return str(measure.get("disseminationText") or f"{grams}g"), float(grams)
    return "100g", DEFAULT_SERVING_GRAMS


def _extract_nutrients(
    food_nutrients: list[dict[str, object]],
) -> dict[str, float | None]:
    """Map FDC nutrient rows onto tracked nutrient names.

    Search results carry ``nutrientId``/``value`` while food details nest the
    id under ``nutrient`` and use ``amount``.
    """
    values: dict[str, float | None] = dict.fromkeys(_NUTRIENT_IDS.values())
    for nutrient in food_nutrients:
        nutrient_info = nutrient.get("nutrient") or {}
        nutrient_id = nutrient_info.get("id") or nutrient.get("nutrientId")
        name = _NUTRIENT_IDS.get(nutrient_id)
        amount = nutrient.get("amount", nutrient.get("value"))
        if name is None or amount is None:
            continue
        if values[name] is None:
            values[name] = float(amount)
    return values


def _same_barcode(candidate: object, barcode: str) -> bool:
    if not isinstance(candidate, str):
        return False
    return candidate.lstrip("0") == barcode.lstrip("0")
