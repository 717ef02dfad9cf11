"""Domain models for the food catalog."""

from dataclasses import dataclass, field
from enum import Enum

from food_catalog.domain.nutrition import NutritionProfile


class FoodNotFoundError(LookupError):
    """Raised when a catalog food id is unknown."""

    def __init__(self, food_id: int) -> None:
        super().__init__(f"Food {food_id} not found")
        self.food_id = food_id


class InvalidFoodItemError(ValueError):
    """Raised when a food item cannot be stored or looked up."""


@dataclass
class FoodItem:
    """Canonical catalog record keyed by its source URL and optional EAN."""

    name: str
    url: str
    description: str = ""
    image_url: str = ""
    brand: str = ""
    ean: str | None = None
    tags: list[str] = field(default_factory=list)
    nutrition: NutritionProfile = field(default_factory=NutritionProfile)
    id: int | None = None


class SortField(str, Enum):
    """Fields a catalog search can be ordered by."""

    NAME = "name"
    BRAND = "brand"
    CALORIES = "calories"
    PROTEIN = "protein"
    CARBS = "carbs"
    FAT = "fat"


class SortDirection(str, Enum):
    """Sort direction for catalog searches."""

    ASCENDING = "asc"
    DESCENDING = "desc"


@dataclass(frozen=True)
class SearchResult:
    """A catalog food flagged with whether the user has eaten it before."""

    food: FoodItem
    previously_consumed: bool = False


@dataclass(frozen=True)
class SearchPage:
    """One page of ranked search results."""

    items: list[SearchResult]
    total_count: int
    page: int
    page_size: int
    total_pages: int
    was_truncated: bool = False
