"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse

from nomnom.api.models import GoalsUpdate, MealCreate
from nomnom.app_logging import configure_logging
from nomnom.containers import AppContainer
from nomnom.dates import parse_date_arg
from nomnom.domain.errors import (
    NomNomError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from nomnom.domain.goals import GoalUpdate
from nomnom.domain.meals import MealInput
from nomnom.presenters import (
    custom_food_to_dict,
    food_to_dict,
    goals_to_dict,
    meal_to_dict,
    progress_to_dict,
    totals_to_dict,
)
from nomnom.services.goals import goal_guidance
from nomnom.services.totals import aggregate_day

_ERROR_STATUS = {
    ValidationError: 422,
    NotFoundError: 404,
    StoreUnavailableError: 503,
}


def _get_container(request: Request) -> AppContainer:
    return request.app.state.container


async def require_token(
    x_api_token: str | None = Header(default=None),
    container: AppContainer = Depends(_get_container),
) -> None:
    """Ensure requests include the configured API token."""
    expected = container.settings.api_token
    if not expected or not x_api_token or x_api_token != expected:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


router = APIRouter(dependencies=[Depends(require_token)])


@router.get("/today")
async def today(
    date: str | None = None, container: AppContainer = Depends(_get_container)
) -> dict[str, object]:
    """Return totals and meals for a day."""
    totals_service = container.totals_service
    day = parse_date_arg(date, totals_service.today())
    meals = totals_service.get_meals_by_date(container.user_id, day)
    totals = aggregate_day(day, meals, totals_service.tz)
    return {
        "date": day.isoformat(),
        "totals": totals_to_dict(totals),
        "meals": [meal_to_dict(meal) for meal in meals],
    }


@router.get("/progress")
async def progress(
    date: str | None = None, container: AppContainer = Depends(_get_container)
) -> dict[str, object]:
    """Return goal zones, streaks and weekly averages for a day."""
    day = parse_date_arg(date, container.totals_service.today())
    report = container.progress_service.build_report(container.user_id, day)
    return progress_to_dict(report)


@router.get("/goals")
async def get_goals(
    container: AppContainer = Depends(_get_container),
) -> dict[str, object]:
    """Return current goals with guidance."""
    goals = container.goal_service.get_goals(container.user_id)
    return {
        "hasGoals": bool(goals),
        "goals": goals_to_dict(goals),
        "guidance": goal_guidance(),
    }


@router.put("/goals")
async def update_goals(
    body: GoalsUpdate, container: AppContainer = Depends(_get_container)
) -> dict[str, object]:
    """Apply partial goal updates, or reset all goals."""
    service = container.goal_service
    if body.reset:
        service.reset_goals(container.user_id)
        return {"success": True, "reset": True, "goals": {}}
    names = [*body.targets, *(n for n in body.tolerances if n not in body.targets)]
    updates = {
        name: GoalUpdate(
            target=body.targets.get(name), tolerance=body.tolerances.get(name)
        )
        for name in names
    }
    goals = service.set_goals(container.user_id, updates)
    return {"success": True, "goals": goals_to_dict(goals), "goalsSet": names}


@router.post("/meals", status_code=status.HTTP_201_CREATED)
async def log_meal(
    body: MealCreate, container: AppContainer = Depends(_get_container)
) -> dict[str, object]:
    """Log a meal."""
    meal = MealInput(**body.model_dump())
    record = await container.meal_log_service.log_meal(container.user_id, meal)
    return {"success": True, "meal": meal_to_dict(record)}


@router.delete("/meals/{meal_id}")
async def delete_meal(
    meal_id: str, container: AppContainer = Depends(_get_container)
) -> dict[str, object]:
    """Delete a meal and return it."""
    meal = container.meal_log_service.delete_meal(container.user_id, meal_id)
    return {"success": True, "deleted": meal_to_dict(meal)}


@router.get("/foods/search")
async def search_foods(
    q: str, limit: int = 10, container: AppContainer = Depends(_get_container)
) -> dict[str, object]:
    """Search custom foods and USDA FoodData Central."""
    foods = await container.food_service.search(container.user_id, q, limit)
    return {
        "query": q,
        "results": [food_to_dict(food) for food in foods],
        "count": len(foods),
    }


@router.get("/foods/barcode/{barcode}")
async def lookup_barcode(
    barcode: str, container: AppContainer = Depends(_get_container)
) -> dict[str, object]:
    """Look up a food by barcode."""
    food = await container.food_service.lookup_barcode(container.user_id, barcode)
    if food is None:
        raise NotFoundError(f"Barcode not found: {barcode}")
    return {"found": True, "barcode": barcode, "food": food_to_dict(food)}


@router.get("/foods/custom")
async def list_custom_foods(
    container: AppContainer = Depends(_get_container),
) -> dict[str, object]:
    """List custom foods."""
    foods = container.custom_food_service.list_foods(container.user_id)
    return {"foods": [custom_food_to_dict(food) for food in foods], "count": len(foods)}


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(title="nomnom", lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(NomNomError)
    async def handle_domain_error(_request: Request, exc: NomNomError) -> JSONResponse:
        status_code = _ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
        if isinstance(exc, StoreUnavailableError):
            logger.error("Store unavailable: %s", exc)
        return JSONResponse(status_code=status_code, content={"error": str(exc)})

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    app.include_router(router)
    return app
