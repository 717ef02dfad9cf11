"""Nutrition domain models."""

from dataclasses import dataclass, field, fields


@dataclass(frozen=True)
class NutritionValue:
    """A single nutrition fact with its unit, per 100 grams."""

    value: float = 0.0
    unit: str = ""


def _value() -> NutritionValue:
    return field(default_factory=NutritionValue)


@dataclass(frozen=True)
class NutritionProfile:
    """Per-100-gram nutrition facts for a catalog food."""

    kilojoules: NutritionValue = _value()
    calories: NutritionValue = _value()
    protein: NutritionValue = _value()
    fat: NutritionValue = _value()
    carbohydrates_total: NutritionValue = _value()
    carbohydrates_sugar: NutritionValue = _value()
    carbohydrates_polyols: NutritionValue = _value()
    fiber: NutritionValue = _value()
    caffeine: NutritionValue = _value()
    salt: NutritionValue = _value()
    iron: NutritionValue = _value()
    zinc: NutritionValue = _value()
    magnesium: NutritionValue = _value()
    chloride: NutritionValue = _value()
    manganese: NutritionValue = _value()
    sulfur: NutritionValue = _value()
    potassium: NutritionValue = _value()
    calcium: NutritionValue = _value()
    phosphorus: NutritionValue = _value()
    copper: NutritionValue = _value()
    fluoride: NutritionValue = _value()
    iodine: NutritionValue = _value()


NUTRIENT_FIELDS: tuple[str, ...] = tuple(item.name for item in fields(NutritionProfile))
