"""Domain models for recorded consumption entries."""

from dataclasses import dataclass
from datetime import datetime

# Entry nutrient -> catalog nutrition field it is scaled from.
SCALED_NUTRIENTS: dict[str, str] = {
    "calories": "calories",
    "protein": "protein",
    "fat": "fat",
    "carbohydrates": "carbohydrates_total",
    "sugar": "carbohydrates_sugar",
    "fiber": "fiber",
    "caffeine": "caffeine",
    "salt": "salt",
}


@dataclass(frozen=True)
class ConsumptionEntry:
    """Snapshot of a food eaten by a user, scaled to the grams consumed."""

    id: int
    user_id: str
    food_id: int
    grams_consumed: float
    consumed_at: datetime
    food_name: str = ""
    brand: str | None = None
    image_url: str | None = None
    food_url: str | None = None
    calories: float = 0.0
    protein: float = 0.0
    fat: float = 0.0
    carbohydrates: float = 0.0
    sugar: float = 0.0
    fiber: float = 0.0
    caffeine: float = 0.0
    salt: float = 0.0
