"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from nomnom.adapters.fdc_client import HttpxFdcClient
from nomnom.adapters.supabase_custom_food_repository import (
    SupabaseCustomFoodRepository,
)
from nomnom.adapters.supabase_goal_repository import SupabaseGoalRepository
from nomnom.adapters.supabase_meal_log_repository import SupabaseMealLogRepository
from nomnom.config import Settings
from nomnom.services.cache import InMemoryCache
from nomnom.services.custom_foods import CustomFoodService
from nomnom.services.foods import FoodService
from nomnom.services.goals import GoalService
from nomnom.services.meals import MealLogService
from nomnom.services.progress import ProgressService
from nomnom.services.streaks import StreakService
from nomnom.services.totals import TotalsService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    food_service: FoodService
    custom_food_service: CustomFoodService
    meal_log_service: MealLogService
    totals_service: TotalsService
    goal_service: GoalService
    streak_service: StreakService
    progress_service: ProgressService
    close_resources: Callable[[], Awaitable[None]]

    @property
    def user_id(self) -> str:
        """Return the configured user id."""
        return self.settings.user_id


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    meal_log_repository = SupabaseMealLogRepository(supabase_client)
    goal_repository = SupabaseGoalRepository(supabase_client)
    custom_food_repository = SupabaseCustomFoodRepository(supabase_client)
    fdc_client = HttpxFdcClient.create(
        api_key=resolved_settings.fdc_api_key,
        base_url=resolved_settings.fdc_base_url,
    )
    custom_food_service = CustomFoodService(custom_food_repository)
    food_service = FoodService(
        fdc_client=fdc_client,
        cache=InMemoryCache(),
        custom_foods=custom_food_service,
        debug=resolved_settings.debug,
    )
    meal_log_service = MealLogService(
        repository=meal_log_repository,
        food_service=food_service,
    )
    totals_service = TotalsService(
        repository=meal_log_repository,
        timezone_name=resolved_settings.timezone,
    )
    goal_service = GoalService(goal_repository)
    streak_service = StreakService(
        totals_service=totals_service,
        goal_service=goal_service,
        lookback_days=resolved_settings.streak_lookback_days,
    )
    progress_service = ProgressService(
        totals_service=totals_service,
        goal_service=goal_service,
        streak_service=streak_service,
    )

    async def close_resources() -> None:
        await fdc_client.close()

    return AppContainer(
        settings=resolved_settings,
        food_service=food_service,
        custom_food_service=custom_food_service,
        meal_log_service=meal_log_service,
        totals_service=totals_service,
        goal_service=goal_service,
        streak_service=streak_service,
        progress_service=progress_service,
        close_resources=close_resources,
    )
