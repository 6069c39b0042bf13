"""Tests for Supabase adapter implementations."""

from dataclasses import dataclass, field
from datetime import UTC, datetime

import pytest
from postgrest.exceptions import APIError

from nomnom.adapters.supabase_custom_food_repository import (
    SupabaseCustomFoodRepository,
)
from nomnom.adapters.supabase_goal_repository import SupabaseGoalRepository
from nomnom.adapters.supabase_meal_log_repository import SupabaseMealLogRepository
from nomnom.domain.errors import StoreUnavailableError
from nomnom.domain.goals import NutrientGoal
from nomnom.domain.meals import MealInput


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {
            "select": [],
            "insert": [],
            "update": [],
            "upsert": [],
            "delete": [],
        }
    )
    last_payload: object | None = None
    last_filters: list[tuple[str, object]] = field(default_factory=list)
    last_options: dict[str, object] = field(default_factory=dict)
    error: Exception | None = None

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def select(self, *_args) -> "FakeTable":
        self._action = "select"
        return self

    def insert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "insert"
        self.last_payload = payload
        return self

    def update(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "update"
        self.last_payload = payload
        return self

    def upsert(self, payload: object, on_conflict: str = "") -> "FakeTable":
        self._action = "upsert"
        self.last_payload = payload
        self.last_options = {"on_conflict": on_conflict}
        return self

    def delete(self) -> "FakeTable":
        self._action = "delete"
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def ilike(self, column: str, pattern: str) -> "FakeTable":
        self.last_filters.append((f"{column}~", pattern))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def order(self, _column: str, desc: bool = False) -> "FakeTable":
        return self

    def gte(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((f"{column}>=", value))
        return self

    def lt(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((f"{column}<", value))
        return self

    def execute(self) -> FakeResponse:
        if self.error is not None:
            raise self.error
        action = getattr(self, "_action", "select")
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        return FakeResponse(data=data)


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def _meal_row(**overrides: object) -> dict[str, object]:
    row: dict[str, object] = {
        "id": "meal-1",
        "user_id": "user-1",
        "food_name": "Oatmeal",
        "quantity": 1,
        "unit": "bowl",
        "meal_type": "breakfast",
        "logged_at": "2026-03-10T08:00:00+00:00",
        "notes": None,
        "food_id": None,
        "barcode": None,
        "calories": 300,
        "protein": 10,
        "fiber_g": 8,
        "sodium_mg": None,
    }
    row.update(overrides)
    return row


def test_supabase_meal_log_repository_insert_maps_columns() -> None:
    client = FakeSupabaseClient()
    table = client.table("meal_logs")
    table.queue("insert", [_meal_row()])

    repository = SupabaseMealLogRepository(client)
    meal = repository.create_meal(
        "user-1",
        MealInput(
            food_name="Oatmeal",
            unit="bowl",
            meal_type="breakfast",
            nutrients={"calories": 300, "protein": 10, "fiber": 8},
        ),
        datetime(2026, 3, 10, 8, tzinfo=UTC),
    )

    assert isinstance(table.last_payload, dict)
    assert table.last_payload["fiber_g"] == 8
    assert table.last_payload["sodium_mg"] is None
    assert table.last_payload["logged_at"] == "2026-03-10T08:00:00+00:00"
    assert meal.nutrients["fiber"] == 8
    assert meal.nutrients["sodium"] is None
    assert meal.logged_at == datetime(2026, 3, 10, 8, tzinfo=UTC)


def test_supabase_meal_log_repository_queries() -> None:
    client = FakeSupabaseClient()
    table = client.table("meal_logs")
    table.queue("select", [_meal_row()])
    table.queue("select", [])
    table.queue("select", [_meal_row(id="meal-2", notes="with yogurt")])
    table.queue("select", [{"logged_at": "2026-03-01T12:00:00+00:00"}])

    repository = SupabaseMealLogRepository(client)
    start = datetime(2026, 3, 10, tzinfo=UTC)
    end = datetime(2026, 3, 11, tzinfo=UTC)
    meals = repository.list_meals("user-1", start, end)
    found = repository.search_meals("user-1", "yogurt", 5)
    first = repository.first_logged_at("user-1")

    assert meals[0].food_name == "Oatmeal"
    assert ("logged_at>=", start.isoformat()) in table.last_filters
    assert ("food_name~", "%yogurt%") in table.last_filters
    assert ("notes~", "%yogurt%") in table.last_filters
    assert found[0].id == "meal-2"
    assert first == datetime(2026, 3, 1, 12, tzinfo=UTC)


def test_supabase_meal_log_repository_update_uses_columns() -> None:
    client = FakeSupabaseClient()
    table = client.table("meal_logs")
    table.queue("update", [_meal_row(sodium_mg=400)])

    repository = SupabaseMealLogRepository(client)
    meal = repository.update_meal("user-1", "meal-1", {"sodium": 400, "notes": "x"})

    assert table.last_payload == {"sodium_mg": 400, "notes": "x"}
    assert meal.nutrients["sodium"] == 400


def test_supabase_meal_log_repository_missing_update_raises() -> None:
    client = FakeSupabaseClient()

    repository = SupabaseMealLogRepository(client)

    with pytest.raises(StoreUnavailableError):
        repository.update_meal("user-1", "meal-1", {"calories": 10})


def test_supabase_goal_repository_roundtrip() -> None:
    client = FakeSupabaseClient()
    table = client.table("user_goals")
    table.queue(
        "select",
        [
            {"nutrient": "calories", "target": 2000, "tolerance": 10},
            {"nutrient": "protein", "target": 120, "tolerance": None},
            {"nutrient": "vitamin_z", "target": 5, "tolerance": 0},
            {"nutrient": "fiber", "target": None, "tolerance": 5},
        ],
    )

    repository = SupabaseGoalRepository(client)
    goals = repository.get_goals("user-1")
    repository.save_goals(
        "user-1", [NutrientGoal(nutrient="sodium", target=2300, tolerance=5)]
    )

    assert set(goals) == {"calories", "protein"}
    assert goals["calories"].tolerance == 10
    assert goals["protein"].tolerance == 0
    assert table.last_options == {"on_conflict": "user_id,nutrient"}
    assert table.last_payload == [
        {
            "user_id": "user-1",
            "nutrient": "sodium",
            "target": 2300,
            "tolerance": 5,
            "updated_at": None,
        }
    ]


def test_supabase_goal_repository_skips_empty_save() -> None:
    client = FakeSupabaseClient()

    SupabaseGoalRepository(client).save_goals("user-1", [])

    assert client.table("user_goals").last_payload is None


def test_supabase_custom_food_repository() -> None:
    client = FakeSupabaseClient()
    table = client.table("custom_foods")
    row = {
        "id": "food-1",
        "user_id": "user-1",
        "name": "Protein Shake",
        "brand": "Home",
        "barcode": "12345",
        "serving_size": "1 scoop",
        "calories": 160,
        "protein": 30,
        "created_at": "2026-03-01T12:00:00+00:00",
    }
    table.queue("insert", [row])
    table.queue("select", [row])

    repository = SupabaseCustomFoodRepository(client)
    created = repository.create_food(
        "user-1",
        {"name": "Protein Shake", "nutrients": {"calories": 160, "protein": 30}},
    )
    found = repository.find_by_barcode("user-1", "12345")

    assert created.nutrients["protein"] == 30
    assert created.nutrients["sugar"] is None
    assert isinstance(table.last_payload, dict)
    assert table.last_payload["sugar_g"] is None
    assert found is not None
    assert found.id == "food-1"
    assert ("barcode", "12345") in table.last_filters


def test_supabase_errors_become_store_unavailable() -> None:
    client = FakeSupabaseClient()
    client.table("meal_logs").error = APIError({"message": "boom"})

    repository = SupabaseMealLogRepository(client)

    with pytest.raises(StoreUnavailableError, match="Supabase meal log read failed"):
        repository.list_recent_meals("user-1", 5)


def test_supabase_meal_search_keeps_commas_in_pattern() -> None:
    client = FakeSupabaseClient()
    table = client.table("meal_logs")
    shared = _meal_row(id="meal-1", food_name="chicken, rice", notes="chicken, rice")
    table.queue("select", [shared])
    table.queue(
        "select",
        [
            _meal_row(
                id="meal-2",
                notes="leftover chicken, rice (cold)",
                logged_at="2026-03-11T19:00:00+00:00",
            ),
            shared,
        ],
    )

    repository = SupabaseMealLogRepository(client)
    found = repository.search_meals("user-1", "chicken, rice", 5)

    assert table.last_filters == [
        ("user_id", "user-1"),
        ("food_name~", "%chicken, rice%"),
        ("user_id", "user-1"),
        ("notes~", "%chicken, rice%"),
    ]
    assert [meal.id for meal in found] == ["meal-2", "meal-1"]


def test_supabase_custom_food_search_merges_name_and_brand() -> None:
    client = FakeSupabaseClient()
    table = client.table("custom_foods")
    table.queue("select", [{"id": "food-1", "name": "Bar (choc, mint)"}])
    table.queue(
        "select",
        [
            {"id": "food-1", "name": "Bar (choc, mint)"},
            {"id": "food-2", "name": "Shake", "brand": "choc, mint co"},
        ],
    )

    repository = SupabaseCustomFoodRepository(client)
    found = repository.search_foods("user-1", "choc, mint", 1)
    table.queue("select", [])
    table.queue("select", [{"id": "food-2", "name": "Shake"}])
    everything = repository.search_foods("user-1", "choc, mint", 5)

    assert [food.id for food in found] == ["food-1"]
    assert [food.id for food in everything] == ["food-2"]
    assert ("name~", "%choc, mint%") in table.last_filters
    assert ("brand~", "%choc, mint%") in table.last_filters
