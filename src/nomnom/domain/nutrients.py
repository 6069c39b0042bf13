"""Nutrient definitions shared by meals, goals and progress."""

from dataclasses import dataclass
from enum import Enum


class Direction(str, Enum):
    """Which side of the target counts as compliant."""

    UNDER = "under"
    OVER = "over"

    @property
    def is_maximum(self) -> bool:
        """Return True for ceiling-type nutrients."""
        return self is Direction.UNDER


@dataclass(frozen=True)
class Nutrient:
    """Static definition of a tracked nutrient."""

    name: str
    column: str
    unit: str
    direction: Direction
    label: str
    guidance: str


_NUTRIENTS = (
    Nutrient(
        "calories",
        "calories",
        "kcal",
        Direction.UNDER,
        "Daily calorie target",
        "Typical: 1500-2500. Weight loss: deficit of 500. "
        "Maintenance: TDEE calculator.",
    ),
    Nutrient(
        "protein",
        "protein",
        "g",
        Direction.OVER,
        "Daily protein target in grams",
        "RDA: 0.8g/kg body weight. Athletes: 1.6-2.2g/kg. "
        "High protein diet: 100-150g.",
    ),
    Nutrient(
        "carbs",
        "carbs",
        "g",
        Direction.UNDER,
        "Daily carbohydrate target in grams",
        "Standard: 225-325g. Low-carb: <100g. Keto: <20-50g net carbs.",
    ),
    Nutrient(
        "fat",
        "fat",
        "g",
        Direction.UNDER,
        "Daily fat target in grams",
        "Typically 20-35% of calories. 65-90g for 2000 cal diet.",
    ),
    Nutrient(
        "fiber",
        "fiber_g",
        "g",
        Direction.OVER,
        "Daily fiber target in grams",
        "RDA: Women 25g, Men 38g. Most people get only 15g.",
    ),
    Nutrient(
        "sugar",
        "sugar_g",
        "g",
        Direction.UNDER,
        "Daily added sugar maximum in grams",
        "RDA: <50g (10% of calories). AHA: Women <25g, Men <36g.",
    ),
    Nutrient(
        "sodium",
        "sodium_mg",
        "mg",
        Direction.UNDER,
        "Daily sodium maximum in milligrams",
        "RDA: <2300mg. Heart health: <1500mg. Average American: 3400mg.",
    ),
    Nutrient(
        "net_carbs",
        "net_carbs",
        "g",
        Direction.UNDER,
        "Daily net carbohydrate maximum in grams (carbs minus fiber)",
        "Keto: <20-50g. Moderate low-carb: 50-100g.",
    ),
    Nutrient(
        "saturated_fat",
        "saturated_fat_g",
        "g",
        Direction.UNDER,
        "Daily saturated fat maximum in grams",
        "AHA: <13g on a 2000 cal diet. Dietary guidelines: <10% of calories.",
    ),
    Nutrient(
        "cholesterol",
        "cholesterol_mg",
        "mg",
        Direction.UNDER,
        "Daily cholesterol maximum in milligrams",
        "Traditional limit: <300mg. Keep as low as practical.",
    ),
)

NUTRIENTS: dict[str, Nutrient] = {nutrient.name: nutrient for nutrient in _NUTRIENTS}
NUTRIENT_NAMES: tuple[str, ...] = tuple(NUTRIENTS)

# Columns stored on meal rows; net carbs are derived when not stored.
MEAL_COLUMNS: tuple[str, ...] = tuple(n.column for n in _NUTRIENTS)


def get_nutrient(name: str) -> Nutrient | None:
    """Return the nutrient definition for a name, if known."""
    return NUTRIENTS.get(name)


def direction_for(name: str) -> Direction:
    """Return the fixed compliance direction for a nutrient."""
    return NUTRIENTS[name].direction
