"""Tests for container wiring."""

import asyncio

from nomnom.config import Settings
from nomnom.containers import build_container


def test_build_container_creates_services(settings: Settings) -> None:
    container = build_container(settings)

    assert container.progress_service.streak_service is container.streak_service
    assert container.meal_log_service.food_service is container.food_service
    assert container.totals_service.timezone_name == "UTC"
    assert container.user_id == "test-user"
    asyncio.run(container.close_resources())
