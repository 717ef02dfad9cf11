"""Manual corrections of catalog foods."""

import logging
from dataclasses import dataclass, fields, replace

from food_catalog.domain.catalog import FoodItem, FoodNotFoundError
from food_catalog.domain.nutrition import NUTRIENT_FIELDS, NutritionValue
from food_catalog.services.catalog import CatalogRepository
from food_catalog.services.catalog_import import CatalogImportService

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FoodInfoUpdate:
    """Partial update of a food's descriptive fields; None leaves a field as is."""

    name: str | None = None
    url: str | None = None
    description: str | None = None
    image_url: str | None = None
    brand: str | None = None
    ean: str | None = None
    tags: list[str] | None = None


@dataclass(frozen=True)
class NutrientUpdate:
    """Partial update of one nutrition value."""

    value: float | None = None
    unit: str | None = None


@dataclass
class FoodEditorService:
    """Applies partial corrections and propagates them to consumption entries."""

    catalog_repository: CatalogRepository
    import_service: CatalogImportService

    def get_food(self, food_id: int) -> FoodItem:
        """Return a food by id."""
        food = self.catalog_repository.get_food(food_id)
        if food is None:
            raise FoodNotFoundError(food_id)
        return food

    def update_info(self, food_id: int, update: FoodInfoUpdate) -> int:
        """Apply descriptive changes; return the number of entries repaired."""
        return self.update_complete(food_id, info=update)

    def update_nutrition(
        self, food_id: int, nutrients: dict[str, NutrientUpdate]
    ) -> int:
        """Apply nutrition changes; return the number of entries repaired."""
        return self.update_complete(food_id, nutrients=nutrients)

    def update_complete(
        self,
        food_id: int,
        info: FoodInfoUpdate | None = None,
        nutrients: dict[str, NutrientUpdate] | None = None,
    ) -> int:
        """Apply descriptive and nutrition changes, then repair entries."""
        unknown = set(nutrients or {}) - set(NUTRIENT_FIELDS)
        if unknown:
            raise ValueError(f"Unknown nutrition fields: {sorted(unknown)}")
        food = self.get_food(food_id)
        if info is not None:
            for info_field in fields(info):
                value = getattr(info, info_field.name)
                if value is not None:
                    setattr(food, info_field.name, value)
        if nutrients:
            changes = {
                name: NutritionValue(
                    value=update.value
                    if update.value is not None
                    else getattr(food.nutrition, name).value,
                    unit=update.unit
                    if update.unit is not None
                    else getattr(food.nutrition, name).unit,
                )
                for name, update in nutrients.items()
            }
            food.nutrition = replace(food.nutrition, **changes)
        self.catalog_repository.upsert(food)
        _logger.info("Food %s updated by editor", food_id)
        return self.import_service.repair_consumption_entries(food_id)
