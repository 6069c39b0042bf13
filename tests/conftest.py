"""Shared test fixtures."""

from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime, time
from uuid import uuid4

import pytest

from nomnom.adapters.fdc_client import FdcClient
from nomnom.config import Settings
from nomnom.containers import AppContainer
from nomnom.domain.foods import CustomFood
from nomnom.domain.goals import NutrientGoal
from nomnom.domain.meals import MealInput, MealRecord
from nomnom.domain.nutrients import NUTRIENTS
from nomnom.services.cache import InMemoryCache
from nomnom.services.custom_foods import CustomFoodRepository, CustomFoodService
from nomnom.services.foods import FoodService
from nomnom.services.goals import GoalRepository, GoalService
from nomnom.services.meals import MealLogRepository, MealLogService
from nomnom.services.progress import ProgressService
from nomnom.services.streaks import StreakService
from nomnom.services.totals import TotalsService

USER_ID = "test-user"


@dataclass
class InMemoryMealLogRepository(MealLogRepository):
    """In-memory meal log repository for tests."""

    meals: dict[str, MealRecord] = field(default_factory=dict)

    def create_meal(
        self, user_id: str, meal: MealInput, logged_at: datetime
    ) -> MealRecord:
        record = MealRecord(
            id=str(uuid4()),
            user_id=user_id,
            food_name=meal.food_name,
            quantity=meal.quantity,
            unit=meal.unit,
            meal_type=meal.meal_type,
            logged_at=logged_at,
            notes=meal.notes,
            food_id=meal.food_id,
            barcode=meal.barcode,
            nutrients={name: meal.nutrients.get(name) for name in NUTRIENTS},
        )
        self.meals[record.id] = record
        return record

    def get_meal(self, user_id: str, meal_id: str) -> MealRecord | None:
        meal = self.meals.get(meal_id)
        if meal is None or meal.user_id != user_id:
            return None
        return meal

    def list_meals(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[MealRecord]:
        return sorted(
            (
                meal
                for meal in self.meals.values()
                if meal.user_id == user_id and start <= meal.logged_at < end
            ),
            key=lambda meal: meal.logged_at,
        )

    def list_recent_meals(self, user_id: str, limit: int) -> list[MealRecord]:
        meals = [meal for meal in self.meals.values() if meal.user_id == user_id]
        return sorted(meals, key=lambda meal: meal.logged_at, reverse=True)[:limit]

    def search_meals(self, user_id: str, query: str, limit: int) -> list[MealRecord]:
        query_lower = query.lower()
        return [
            meal
            for meal in self.list_recent_meals(user_id, len(self.meals))
            if query_lower in meal.food_name.lower()
            or query_lower in (meal.notes or "").lower()
        ][:limit]

    def update_meal(
        self, user_id: str, meal_id: str, changes: dict[str, object]
    ) -> MealRecord:
        meal = self.meals[meal_id]
        nutrients = dict(meal.nutrients)
        fields: dict[str, object] = {}
        for key, value in changes.items():
            if key in NUTRIENTS:
                nutrients[key] = value
            else:
                fields[key] = value
        updated = replace(meal, nutrients=nutrients, **fields)
        self.meals[meal_id] = updated
        return updated

    def delete_meal(self, user_id: str, meal_id: str) -> None:
        self.meals.pop(meal_id, None)

    def first_logged_at(self, user_id: str) -> datetime | None:
        times = [
            meal.logged_at for meal in self.meals.values() if meal.user_id == user_id
        ]
        return min(times) if times else None

    def add(self, day: date, hour: int = 12, **nutrients: float | None) -> MealRecord:
        """Store a meal at ``hour`` UTC on ``day``."""
        logged_at = datetime.combine(day, time(hour, 0), tzinfo=UTC)
        return self.create_meal(
            USER_ID,
            MealInput(food_name="test meal", nutrients=nutrients),
            logged_at,
        )


@dataclass
class InMemoryGoalRepository(GoalRepository):
    """In-memory goal repository that counts writes."""

    goals: dict[str, dict[str, NutrientGoal]] = field(default_factory=dict)
    writes: int = 0

    def get_goals(self, user_id: str) -> dict[str, NutrientGoal]:
        return dict(self.goals.get(user_id, {}))

    def save_goals(self, user_id: str, goals: list[NutrientGoal]) -> None:
        self.writes += 1
        stored = self.goals.setdefault(user_id, {})
        for goal in goals:
            stored[goal.nutrient] = goal

    def delete_goals(self, user_id: str) -> None:
        self.writes += 1
        self.goals.pop(user_id, None)


@dataclass
class InMemoryCustomFoodRepository(CustomFoodRepository):
    """In-memory custom food repository for tests."""

    foods: dict[str, CustomFood] = field(default_factory=dict)

    def create_food(self, user_id: str, payload: dict[str, object]) -> CustomFood:
        food = CustomFood(
            id=str(uuid4()),
            user_id=user_id,
            name=str(payload["name"]),
            brand=payload.get("brand"),
            barcode=payload.get("barcode"),
            serving_size=payload.get("serving_size"),
            nutrients=dict(payload.get("nutrients") or {}),
            created_at=datetime.now(tz=UTC),
        )
        self.foods[food.id] = food
        return food

    def get_food(self, user_id: str, food_id: str) -> CustomFood | None:
        food = self.foods.get(food_id)
        if food is None or food.user_id != user_id:
            return None
        return food

    def list_foods(self, user_id: str) -> list[CustomFood]:
        return [food for food in self.foods.values() if food.user_id == user_id]

    def search_foods(self, user_id: str, query: str, limit: int) -> list[CustomFood]:
        query_lower = query.lower()
        return [
            food
            for food in self.list_foods(user_id)
            if query_lower in food.name.lower()
            or query_lower in (food.brand or "").lower()
        ][:limit]

    def find_by_barcode(self, user_id: str, barcode: str) -> CustomFood | None:
        for food in self.list_foods(user_id):
            if food.barcode == barcode:
                return food
        return None

    def delete_food(self, user_id: str, food_id: str) -> None:
        self.foods.pop(food_id, None)


@dataclass
class FakeFdcClient(FdcClient):
    """Fake FDC client with in-memory responses."""

    search_payload: dict[str, object] = field(
        default_factory=lambda: {
            "foods": [
                {
                    "fdcId": 123456,
                    "description": "Greek Yogurt, Plain",
                    "brandOwner": "Fage",
                    "gtinUpc": "0689544080015",
                    "dataType": "Branded",
                    "servingSize": 170,
                    "servingSizeUnit": "g",
                    "foodNutrients": [
                        {"nutrientId": 1008, "value": 100},
                        {"nutrientId": 1003, "value": 18},
                        {"nutrientId": 1005, "value": 6},
                        {"nutrientId": 1004, "value": 0.7},
                        {"nutrientId": 2000, "value": 6},
                        {"nutrientId": 1093, "value": 65},
                    ],
                }
            ]
        }
    )
    food_payload: dict[str, object] = field(
        default_factory=lambda: {
            "fdcId": 171077,
            "description": "Chicken, broilers or fryers, breast, meat only, cooked",
            "dataType": "SR Legacy",
            "foodNutrients": [
                {"nutrient": {"id": 1008}, "amount": 165},
                {"nutrient": {"id": 1003}, "amount": 31},
                {"nutrient": {"id": 1004}, "amount": 3.6},
                {"nutrient": {"id": 1005}, "amount": 0},
                {"nutrient": {"id": 1253}, "amount": 85},
            ],
        }
    )
    search_calls: list[tuple[str, int, list[str] | None]] = field(default_factory=list)
    food_calls: list[int] = field(default_factory=list)

    async def search_foods(
        self,
        query: str,
        page_size: int = 10,
        data_types: list[str] | None = None,
    ) -> dict[str, object]:
        self.search_calls.append((query, page_size, data_types))
        return self.search_payload

    async def get_food(self, fdc_id: int) -> dict[str, object]:
        self.food_calls.append(fdc_id)
        return self.food_payload


def build_test_container(
    settings: Settings,
    meal_repository: InMemoryMealLogRepository | None = None,
    goal_repository: InMemoryGoalRepository | None = None,
    fdc_client: FakeFdcClient | None = None,
) -> AppContainer:
    """Wire services around in-memory fakes."""
    meal_repository = meal_repository or InMemoryMealLogRepository()
    goal_repository = goal_repository or InMemoryGoalRepository()
    custom_food_service = CustomFoodService(InMemoryCustomFoodRepository())
    food_service = FoodService(
        fdc_client=fdc_client or FakeFdcClient(),
        cache=InMemoryCache(),
        custom_foods=custom_food_service,
    )
    totals_service = TotalsService(meal_repository, timezone_name=settings.timezone)
    goal_service = GoalService(goal_repository)
    streak_service = StreakService(
        totals_service=totals_service,
        goal_service=goal_service,
        lookback_days=settings.streak_lookback_days,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        food_service=food_service,
        custom_food_service=custom_food_service,
        meal_log_service=MealLogService(
            repository=meal_repository, food_service=food_service
        ),
        totals_service=totals_service,
        goal_service=goal_service,
        streak_service=streak_service,
        progress_service=ProgressService(
            totals_service=totals_service,
            goal_service=goal_service,
            streak_service=streak_service,
        ),
        close_resources=close_resources,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        fdc_api_key="fdc-key",
        user_id=USER_ID,
        timezone="UTC",
        api_token="api-token",
    )


@pytest.fixture
def meal_repository() -> InMemoryMealLogRepository:
    return InMemoryMealLogRepository()


@pytest.fixture
def goal_repository() -> InMemoryGoalRepository:
    return InMemoryGoalRepository()


@pytest.fixture
def fdc_client() -> FakeFdcClient:
    return FakeFdcClient()


@pytest.fixture
def container(
    settings: Settings,
    meal_repository: InMemoryMealLogRepository,
    goal_repository: InMemoryGoalRepository,
    fdc_client: FakeFdcClient,
) -> AppContainer:
    return build_test_container(
        settings, meal_repository, goal_repository, fdc_client
    )
