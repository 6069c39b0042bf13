"""Supabase repository for nutrient goals."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from nomnom.adapters.supabase_errors import execute
from nomnom.domain.goals import NutrientGoal
from nomnom.domain.nutrients import NUTRIENTS
from nomnom.services.goals import GoalRepository

_TABLE = "user_goals"


@dataclass
class SupabaseGoalRepository(GoalRepository):
    """Supabase implementation storing one row per user and nutrient."""

    client: Client

    def get_goals(self, user_id: str) -> dict[str, NutrientGoal]:
        """Return the user's goals keyed by nutrient."""
        response = execute(
            self.client.table(_TABLE)
            .select("nutrient, target, tolerance, updated_at")
            .eq("user_id", user_id),
            "goal read",
        )
        goals = {}
        for row in response.data or []:
            nutrient = str(row.get("nutrient", ""))
            # Rows for nutrients no longer tracked are ignored.
            if nutrient not in NUTRIENTS or row.get("target") is None:
                continue
            goals[nutrient] = _parse_row(row)
        return goals

    def save_goals(self, user_id: str, goals: list[NutrientGoal]) -> None:
        """Upsert goal rows for the given nutrients."""
        payload = [
            {
                "user_id": user_id,
                "nutrient": goal.nutrient,
                "target": goal.target,
                "tolerance": goal.tolerance,
                "updated_at": goal.updated_at.isoformat() if goal.updated_at else None,
            }
            for goal in goals
        ]
        if payload:
            execute(
                self.client.table(_TABLE).upsert(
                    payload, on_conflict="user_id,nutrient"
                ),
                "goal write",
            )

    def delete_goals(self, user_id: str) -> None:
        """Delete every goal row for a user."""
        execute(
            self.client.table(_TABLE).delete().eq("user_id", user_id), "goal delete"
        )


def _parse_row(row: dict[str, object]) -> NutrientGoal:
    updated_raw = row.get("updated_at")
    updated_at = (
        datetime.fromisoformat(updated_raw)
        if isinstance(updated_raw, str) and updated_raw
        else None
    )
    return NutrientGoal(
        nutrient=str(row["nutrient"]),
        target=float(row["target"]),
        tolerance=int(row.get("tolerance") or 0),
        updated_at=updated_at,
    )
