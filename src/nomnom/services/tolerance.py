"""Tolerance-band classification of daily nutrient totals."""

from nomnom.domain.errors import ValidationError
from nomnom.domain.goals import NutrientGoal
from nomnom.domain.nutrients import Direction
from nomnom.domain.progress import Zone, ZoneClassification

MIN_TOLERANCE = 0
MAX_TOLERANCE = 100


def validate_tolerance(nutrient: str, tolerance: float) -> int:
    """Return the tolerance as an int or raise when outside 0-100."""
    if (
        isinstance(tolerance, bool)
        or not MIN_TOLERANCE <= tolerance <= MAX_TOLERANCE
        or tolerance != int(tolerance)
    ):
        raise ValidationError(
            f"{nutrient} tolerance must be 0-100 (got {tolerance})"
        )
    return int(tolerance)


def compute_band(target: float, tolerance: int, direction: Direction) -> float:
    """Return the threshold enforced after applying the tolerance."""
    if tolerance == 0:
        return target
    if direction.is_maximum:
        return target * (100 + tolerance) / 100
    return target * (100 - tolerance) / 100


def classify(
    actual: float, target: float, tolerance: int, direction: Direction
) -> ZoneClassification:
    """Classify an actual total against a target and tolerance.

    Ceiling nutrients are ``met`` at or under the target, ``near`` up to the
    band and ``over`` beyond it. Floor nutrients mirror this with ``under``.
    """
    band = compute_band(target, tolerance, direction)
    if direction.is_maximum:
        if actual <= target:
            zone = Zone.MET
        elif actual <= band:
            zone = Zone.NEAR
        else:
            zone = Zone.OVER
    elif actual >= target:
        zone = Zone.MET
    elif actual >= band:
        zone = Zone.NEAR
    else:
        zone = Zone.UNDER
    return ZoneClassification(zone=zone, band=band, tolerance=tolerance)


def classify_goal(goal: NutrientGoal, actual: float) -> ZoneClassification:
    """Classify an actual total against a stored goal."""
    return classify(actual, goal.target, goal.tolerance, goal.direction)
