"""Supabase repository for catalog foods."""

from dataclasses import dataclass

from supabase import Client

from food_catalog.domain.catalog import FoodItem, InvalidFoodItemError
from food_catalog.domain.nutrition import (
    NUTRIENT_FIELDS,
    NutritionProfile,
    NutritionValue,
)
from food_catalog.services.catalog import CatalogRepository

_TABLE = "foods"
_PAGE_SIZE = 1000
_SEARCH_COLUMNS = ("name", "brand", "ean", "description")
_LIKE_SPECIAL = frozenset("\\%_*")


@dataclass
class SupabaseCatalogRepository(CatalogRepository):
    """Supabase-backed repository for catalog foods."""

    client: Client

    def find_by_natural_key(self, url: str | None, ean: str | None) -> FoodItem | None:
        """Return the food matching the URL, else the one matching the EAN."""
        if not url and not ean:
            raise InvalidFoodItemError("A URL or an EAN is required")
        for column, value in (("url", url), ("ean", ean)):
            if not value:
                continue
            response = (
                self.client.table(_TABLE)
                .select("*")
                .eq(column, value)
                .limit(1)
                .execute()
            )
            if response.data:
                return _parse_food(response.data[0])
        return None

    def find_by_predicate(self, tokens: list[str], limit: int) -> list[FoodItem]:
        """Return foods matching every token, up to a limit."""
        foods: list[FoodItem] = []
        while len(foods) < limit:
            start = len(foods)
            end = min(start + _PAGE_SIZE, limit) - 1
            query = self.client.table(_TABLE).select("*")
            for token in tokens:
                query = query.or_(_ilike_any(token))
            response = query.order("id").range(start, end).execute()
            rows = response.data or []
            foods.extend(_parse_food(row) for row in rows)
            if len(rows) < end - start + 1:
                break
        return foods

    def count_by_predicate(self, tokens: list[str]) -> int:
        """Count foods matching every token."""
        query = self.client.table(_TABLE).select("id", count="exact", head=True)
        for token in tokens:
            query = query.or_(_ilike_any(token))
        return int(query.execute().count or 0)

    def get_food(self, food_id: int) -> FoodItem | None:
        """Return a food by id, if present."""
        response = (
            self.client.table(_TABLE).select("*").eq("id", food_id).limit(1).execute()
        )
        if not response.data:
            return None
        return _parse_food(response.data[0])

    def upsert(self, item: FoodItem) -> FoodItem:
        """Update a food by id, or insert it resolving URL conflicts in place."""
        payload = _food_payload(item)
        if item.id:
            response = (
                self.client.table(_TABLE).update(payload).eq("id", item.id).execute()
            )
        else:
            response = (
                self.client.table(_TABLE).upsert(payload, on_conflict="url").execute()
            )
        if not response.data:
            raise RuntimeError("Failed to save food")
        return _parse_food(response.data[0])

    def bulk_upsert(self, items: list[FoodItem]) -> list[FoodItem]:
        """Write foods in one request keyed on URL."""
        if not items:
            return []
        response = (
            self.client.table(_TABLE)
            .upsert(
                [_food_payload(item) for item in items],
                on_conflict="url",
                default_to_null=False,
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save foods")
        return [_parse_food(row) for row in response.data]

    def list_foods(self, offset: int, limit: int) -> list[FoodItem]:
        """Return a page of foods ordered by id."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .order("id")
            .range(offset, offset + limit - 1)
            .execute()
        )
        return [_parse_food(row) for row in response.data or []]

    def count_foods(self) -> int:
        """Count all stored foods."""
        response = (
            self.client.table(_TABLE)
            .select("id", count="exact", head=True)
            .execute()
        )
        return int(response.count or 0)

    def list_tags(self) -> list[list[str]]:
        """Return the tag lists of every stored food."""
        tags: list[list[str]] = []
        offset = 0
        while True:
            response = (
                self.client.table(_TABLE)
                .select("tags")
                .order("id")
                .range(offset, offset + _PAGE_SIZE - 1)
                .execute()
            )
            rows = response.data or []
            tags.extend(list(row.get("tags") or []) for row in rows)
            if len(rows) < _PAGE_SIZE:
                return tags
            offset += _PAGE_SIZE


def _ilike_any(token: str) -> str:
    """Build a PostgREST filter matching a token in any searchable column.

    LIKE wildcards in the token are escaped so it matches literally; the
    pattern is then quoted for the PostgREST filter syntax.
    """
    pattern = "".join(
        f"\\{char}" if char in _LIKE_SPECIAL else char for char in token
    )
    escaped = pattern.replace("\\", "\\\\").replace('"', '\\"')
    return ",".join(f'{column}.ilike."%{escaped}%"' for column in _SEARCH_COLUMNS)


def _food_payload(item: FoodItem) -> dict[str, object]:
    payload: dict[str, object] = {
        "name": item.name,
        "url": item.url,
        "description": item.description,
        "image_url": item.image_url,
        "brand": item.brand,
        "ean": item.ean,
        "tags": list(item.tags),
        "nutrition": {
            name: {
                "value": getattr(item.nutrition, name).value,
                "unit": getattr(item.nutrition, name).unit,
            }
            for name in NUTRIENT_FIELDS
        },
    }
    if item.id:
        payload["id"] = item.id
    return payload


def _parse_food(row: dict[str, object]) -> FoodItem:
    """Parse a food row into a domain model."""
    nutrition = row.get("nutrition") or {}
    values = {}
    for name in NUTRIENT_FIELDS:
        raw = nutrition.get(name) or {}
        values[name] = NutritionValue(
            value=float(raw.get("value") or 0.0),
            unit=str(raw.get("unit") or ""),
        )
    return FoodItem(
        id=int(row["id"]),
        name=str(row.get("name") or ""),
        url=str(row.get("url") or ""),
        description=str(row.get("description") or ""),
        image_url=str(row.get("image_url") or ""),
        brand=str(row.get("brand") or ""),
        ean=row.get("ean") or None,
        tags=list(row.get("tags") or []),
        nutrition=NutritionProfile(**values),
    )
