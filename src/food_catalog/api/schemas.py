"""Pydantic models for the catalog HTTP API."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from food_catalog.domain.catalog import FoodItem, SearchPage
from food_catalog.domain.nutrition import NutritionProfile, NutritionValue
from food_catalog.services.editor import FoodInfoUpdate, NutrientUpdate

_MINERALS = (
    "salt",
    "iron",
    "zinc",
    "magnesium",
    "chloride",
    "manganese",
    "sulfur",
    "potassium",
    "calcium",
    "phosphorus",
    "copper",
    "fluoride",
    "iodine",
)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NutritionValueModel(_CamelModel):
    """Value and unit pair."""

    value: float = 0.0
    unit: str = ""


class CarbohydratesModel(_CamelModel):
    """Carbohydrate breakdown."""

    total: NutritionValueModel = Field(default_factory=NutritionValueModel)
    sugar: NutritionValueModel = Field(default_factory=NutritionValueModel)
    polyols: NutritionValueModel = Field(default_factory=NutritionValueModel)


class MineralsModel(_CamelModel):
    """Salt and minerals."""

    salt: NutritionValueModel = Field(default_factory=NutritionValueModel)
    iron: NutritionValueModel = Field(default_factory=NutritionValueModel)
    zinc: NutritionValueModel = Field(default_factory=NutritionValueModel)
    magnesium: NutritionValueModel = Field(default_factory=NutritionValueModel)
    chloride: NutritionValueModel = Field(default_factory=NutritionValueModel)
    manganese: NutritionValueModel = Field(default_factory=NutritionValueModel)
    sulfur: NutritionValueModel = Field(default_factory=NutritionValueModel)
    potassium: NutritionValueModel = Field(default_factory=NutritionValueModel)
    calcium: NutritionValueModel = Field(default_factory=NutritionValueModel)
    phosphorus: NutritionValueModel = Field(default_factory=NutritionValueModel)
    copper: NutritionValueModel = Field(default_factory=NutritionValueModel)
    fluoride: NutritionValueModel = Field(default_factory=NutritionValueModel)
    iodine: NutritionValueModel = Field(default_factory=NutritionValueModel)


class NutritionModel(_CamelModel):
    """Per-100-gram nutrition facts as exchanged over the API."""

    kilojoules: NutritionValueModel = Field(default_factory=NutritionValueModel)
    calories: NutritionValueModel = Field(default_factory=NutritionValueModel)
    protein: NutritionValueModel = Field(default_factory=NutritionValueModel)
    fat: NutritionValueModel = Field(default_factory=NutritionValueModel)
    carbohydrates: CarbohydratesModel = Field(default_factory=CarbohydratesModel)
    minerals: MineralsModel = Field(default_factory=MineralsModel)
    fiber: NutritionValueModel = Field(default_factory=NutritionValueModel)
    caffeine: NutritionValueModel = Field(default_factory=NutritionValueModel)

    def to_domain(self) -> NutritionProfile:
        """Flatten into a nutrition profile."""

        def value(model: NutritionValueModel) -> NutritionValue:
            return NutritionValue(value=model.value, unit=model.unit)

        return NutritionProfile(
            kilojoules=value(self.kilojoules),
            calories=value(self.calories),
            protein=value(self.protein),
            fat=value(self.fat),
            carbohydrates_total=value(self.carbohydrates.total),
            carbohydrates_sugar=value(self.carbohydrates.sugar),
            carbohydrates_polyols=value(self.carbohydrates.polyols),
            fiber=value(self.fiber),
            caffeine=value(self.caffeine),
            **{name: value(getattr(self.minerals, name)) for name in _MINERALS},
        )

    @classmethod
    def from_domain(cls, profile: NutritionProfile) -> "NutritionModel":
        """Nest a nutrition profile for the API."""

        def model(item: NutritionValue) -> NutritionValueModel:
            return NutritionValueModel(value=item.value, unit=item.unit)

        return cls(
            kilojoules=model(profile.kilojoules),
            calories=model(profile.calories),
            protein=model(profile.protein),
            fat=model(profile.fat),
            carbohydrates=CarbohydratesModel(
                total=model(profile.carbohydrates_total),
                sugar=model(profile.carbohydrates_sugar),
                polyols=model(profile.carbohydrates_polyols),
            ),
            minerals=MineralsModel(
                **{name: model(getattr(profile, name)) for name in _MINERALS}
            ),
            fiber=model(profile.fiber),
            caffeine=model(profile.caffeine),
        )


class FoodImportRecord(_CamelModel):
    """A raw food record accepted by the bulk import."""

    name: str = Field(min_length=1)
    url: str = Field(min_length=1)
    description: str = ""
    image_url: str = ""
    brand: str = ""
    ean: str | None = None
    tags: list[str] = Field(default_factory=list)
    nutrition: NutritionModel = Field(default_factory=NutritionModel)

    def to_domain(self) -> FoodItem:
        """Convert into an unpersisted food item."""
        return FoodItem(
            name=self.name,
            url=self.url,
            description=self.description,
            image_url=self.image_url,
            brand=self.brand,
            ean=self.ean,
            tags=list(self.tags),
            nutrition=self.nutrition.to_domain(),
        )


class FoodResponse(BaseModel):
    """A catalog food returned by the API."""

    id: int | None
    name: str
    url: str
    description: str
    image_url: str
    brand: str
    ean: str | None
    tags: list[str]
    nutrition: NutritionModel
    previously_consumed: bool = False

    @classmethod
    def from_domain(
        cls, food: FoodItem, previously_consumed: bool = False
    ) -> "FoodResponse":
        """Build a response from a domain food."""
        return cls(
            id=food.id,
            name=food.name,
            url=food.url,
            description=food.description,
            image_url=food.image_url,
            brand=food.brand,
            ean=food.ean,
            tags=list(food.tags),
            nutrition=NutritionModel.from_domain(food.nutrition),
            previously_consumed=previously_consumed,
        )


class SearchResponse(BaseModel):
    """A page of search results."""

    items: list[FoodResponse]
    total_count: int
    page: int
    page_size: int
    total_pages: int
    was_truncated: bool

    @classmethod
    def from_domain(cls, page: SearchPage) -> "SearchResponse":
        """Build a response from a search page."""
        return cls(
            items=[
                FoodResponse.from_domain(result.food, result.previously_consumed)
                for result in page.items
            ],
            total_count=page.total_count,
            page=page.page,
            page_size=page.page_size,
            total_pages=page.total_pages,
            was_truncated=page.was_truncated,
        )


class FoodInfoUpdateRequest(_CamelModel):
    """Partial update of a food's descriptive fields."""

    name: str | None = None
    url: str | None = None
    description: str | None = None
    image_url: str | None = None
    brand: str | None = None
    ean: str | None = None
    tags: list[str] | None = None

    def to_domain(self) -> FoodInfoUpdate:
        """Convert into an editor update."""
        return FoodInfoUpdate(**self.model_dump())


class NutrientUpdateModel(_CamelModel):
    """Partial update of one nutrition value."""

    value: float | None = None
    unit: str | None = None


class FoodCompleteUpdateRequest(_CamelModel):
    """Descriptive and nutrition updates applied together."""

    info: FoodInfoUpdateRequest | None = None
    nutrition: dict[str, NutrientUpdateModel] | None = None


def nutrient_updates(
    payload: dict[str, NutrientUpdateModel],
) -> dict[str, NutrientUpdate]:
    """Convert nutrient update payloads keyed by nutrition field name."""
    return {
        name: NutrientUpdate(value=update.value, unit=update.unit)
        for name, update in payload.items()
    }
