"""Goal store service with partial updates and tolerance validation."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from nomnom.domain.errors import ValidationError
from nomnom.domain.goals import GoalUpdate, NutrientGoal
from nomnom.domain.nutrients import NUTRIENTS
from nomnom.services.tolerance import validate_tolerance

_logger = logging.getLogger(__name__)


class GoalRepository(Protocol):
    """Persistence interface for nutrient goals."""

    def get_goals(self, user_id: str) -> dict[str, NutrientGoal]:
        """Return the user's goals keyed by nutrient."""

    def save_goals(self, user_id: str, goals: list[NutrientGoal]) -> None:
        """Insert or replace goals for the given nutrients."""

    def delete_goals(self, user_id: str) -> None:
        """Delete every goal for a user."""


@dataclass
class GoalService:
    """Application service for reading and updating nutrient goals."""

    repository: GoalRepository

    def get_goals(self, user_id: str) -> dict[str, NutrientGoal]:
        """Return the current goal map, empty when none are set."""
        return self.repository.get_goals(user_id)

    def set_goals(
        self, user_id: str, updates: dict[str, GoalUpdate]
    ) -> dict[str, NutrientGoal]:
        """Apply partial goal updates and return the resulting goal map.

        Every update is validated against the stored goals before anything is
        written, so a rejected call leaves the store unchanged. A tolerance-only
        update keeps the stored target, and a target-only update keeps the
        stored tolerance.
        """
        current = self.repository.get_goals(user_id)
        now = datetime.now(tz=UTC)
        changed = [
            _merge(nutrient, update, current.get(nutrient), now)
            for nutrient, update in updates.items()
            if update.target is not None or update.tolerance is not None
        ]
        if not changed:
            return current
        self.repository.save_goals(user_id, changed)
        _logger.info(
            "Goals updated: user_id=%s nutrients=%s",
            user_id,
            ",".join(goal.nutrient for goal in changed),
        )
        return {**current, **{goal.nutrient: goal for goal in changed}}

    def reset_goals(self, user_id: str) -> None:
        """Remove every goal for a user."""
        self.repository.delete_goals(user_id)
        _logger.info("Goals reset: user_id=%s", user_id)


def _merge(
    nutrient: str,
    update: GoalUpdate,
    existing: NutrientGoal | None,
    now: datetime,
) -> NutrientGoal:
    if nutrient not in NUTRIENTS:
        raise ValidationError(f"Unknown nutrient: {nutrient}")
    tolerance = None
    if update.tolerance is not None:
        tolerance = validate_tolerance(nutrient, update.tolerance)
    if update.target is not None:
        if update.target < 0:
            raise ValidationError(
                f"{nutrient} target must be >= 0 (got {update.target})"
            )
        target = float(update.target)
    elif existing is not None:
        target = existing.target
    else:
        raise ValidationError(
            f"Cannot set {nutrient} tolerance without a {nutrient} target"
        )
    if tolerance is None:
        tolerance = existing.tolerance if existing is not None else 0
    return NutrientGoal(
        nutrient=nutrient, target=target, tolerance=tolerance, updated_at=now
    )


def goal_guidance() -> dict[str, dict[str, str]]:
    """Return per-nutrient descriptions and typical ranges for goal setting."""
    return {
        nutrient.name: {
            "description": nutrient.label,
            "unit": nutrient.unit,
            "direction": nutrient.direction.value,
            "guidance": nutrient.guidance,
        }
        for nutrient in NUTRIENTS.values()
    }
