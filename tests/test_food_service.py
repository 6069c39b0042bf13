"""Tests for food search, barcode lookup and custom foods."""

import asyncio

import pytest

from nomnom.containers import AppContainer
from nomnom.domain.errors import NotFoundError, ValidationError
from nomnom.services.cache import InMemoryCache
from tests.conftest import USER_ID, FakeFdcClient


def test_search_merges_custom_foods_first(
    container: AppContainer, fdc_client: FakeFdcClient
) -> None:
    container.custom_food_service.add_food(
        USER_ID, "Homemade yogurt", {"calories": 90}, brand="Kitchen"
    )

    results = asyncio.run(container.food_service.search(USER_ID, "yogurt", limit=5))

    assert [food.source for food in results] == ["custom", "usda"]
    assert results[1].fdc_id == 123456
    assert results[1].brand == "Fage"
    assert results[1].serving_size == "170g"
    assert results[1].serving_grams == 170
    assert results[1].nutrients["protein"] == 30.6
    assert results[1].nutrients["calories"] == 170
    assert fdc_client.search_calls == [("yogurt", 4, None)]


def test_search_results_are_cached(
    container: AppContainer, fdc_client: FakeFdcClient
) -> None:
    asyncio.run(container.food_service.search_usda("yogurt", 5))
    asyncio.run(container.food_service.search_usda("Yogurt", 5))

    assert len(fdc_client.search_calls) == 1


def test_lookup_barcode_matches_gtin(
    container: AppContainer, fdc_client: FakeFdcClient
) -> None:
    food = asyncio.run(
        container.food_service.lookup_barcode(USER_ID, "689544080015")
    )

    assert food is not None
    assert food.description == "Greek Yogurt, Plain"
    assert fdc_client.search_calls == [("689544080015", 5, ["Branded"])]


def test_lookup_barcode_prefers_custom_food(
    container: AppContainer, fdc_client: FakeFdcClient
) -> None:
    container.custom_food_service.add_food(
        USER_ID, "Store bar", {"calories": 210}, barcode="12345"
    )

    food = asyncio.run(container.food_service.lookup_barcode(USER_ID, "12345"))

    assert food is not None
    assert food.source == "custom"
    assert fdc_client.search_calls == []


def test_lookup_barcode_miss_returns_none(
    container: AppContainer, fdc_client: FakeFdcClient
) -> None:
    fdc_client.search_payload = {"foods": [{"fdcId": 1, "gtinUpc": "999"}]}

    assert asyncio.run(container.food_service.lookup_barcode(USER_ID, "111")) is None


def test_get_food_extracts_nested_nutrients(container: AppContainer) -> None:
    food = asyncio.run(container.food_service.get_food(171077))

    assert food.source == "usda"
    assert food.serving_grams == 100
    assert food.nutrients["calories"] == 165
    assert food.nutrients["cholesterol"] == 85
    assert food.nutrients["fiber"] is None


def test_fdc_nutrients_are_scaled_to_the_serving(
    container: AppContainer, fdc_client: FakeFdcClient
) -> None:
    fdc_client.food_payload = {
        "fdcId": 555,
        "description": "Granola",
        "servingSize": 30,
        "servingSizeUnit": "g",
        "householdServingFullText": "1/4 cup",
        "foodNutrients": [
            {"nutrient": {"id": 1008}, "amount": 500},
            {"nutrient": {"id": 1003}, "amount": 10},
        ],
    }

    food = asyncio.run(container.food_service.get_food(555))

    assert food.serving_size == "1/4 cup"
    assert food.serving_grams == 30
    assert food.nutrients["calories"] == 150
    assert food.nutrients["protein"] == 3


def test_fdc_serving_falls_back_to_food_measures(
    container: AppContainer, fdc_client: FakeFdcClient
) -> None:
    fdc_client.food_payload = {
        "fdcId": 556,
        "description": "Apple, raw",
        "foodMeasures": [{"disseminationText": "1 medium", "gramWeight": 182}],
        "foodNutrients": [{"nutrient": {"id": 1008}, "amount": 52}],
    }

    food = asyncio.run(container.food_service.get_food(556))

    assert food.serving_size == "1 medium"
    assert food.nutrients["calories"] == 94.64


def test_custom_food_lifecycle(container: AppContainer) -> None:
    service = container.custom_food_service
    bar = service.add_food(USER_ID, "Zesty bar", {"calories": 200})
    service.add_food(USER_ID, "apple chips", {"calories": 150})

    assert [food.name for food in service.list_foods(USER_ID)] == [
        "apple chips",
        "Zesty bar",
    ]
    assert service.delete_food(USER_ID, bar.id).name == "Zesty bar"
    with pytest.raises(NotFoundError, match="Custom food not found"):
        service.delete_food(USER_ID, bar.id)


@pytest.mark.parametrize(
    ("name", "nutrients", "message"),
    [
        ("", {"calories": 1}, "name is required"),
        ("Bar", {"vitamin_z": 1}, "Unknown nutrient"),
        ("Bar", {"protein": -2}, "protein must be >= 0"),
    ],
)
def test_custom_food_validation(
    container: AppContainer, name: str, nutrients: dict[str, float], message: str
) -> None:
    with pytest.raises(ValidationError, match=message):
        container.custom_food_service.add_food(USER_ID, name, nutrients)


def test_in_memory_cache_evicts_oldest() -> None:
    cache = InMemoryCache(max_entries=2)
    cache.set("a", 1, ttl_seconds=60)
    cache.set("b", 2, ttl_seconds=60)
    assert cache.get("a") == 1

    cache.set("c", 3, ttl_seconds=60)

    assert cache.get("b") is None
    assert cache.get("a") == 1
    assert len(cache) == 2


def test_in_memory_cache_expires_entries() -> None:
    cache = InMemoryCache()
    cache.set("a", 1, ttl_seconds=0)

    assert cache.get("a") is None
