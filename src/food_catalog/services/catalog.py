"""Persistence interfaces for the food catalog and consumption entries."""

from typing import Protocol

from food_catalog.domain.catalog import FoodItem
from food_catalog.domain.entries import ConsumptionEntry


class CatalogRepository(Protocol):
    """Persistence interface for canonical catalog foods."""

    def find_by_natural_key(self, url: str | None, ean: str | None) -> FoodItem | None:
        """Return the stored food matching the URL or the EAN, URL first."""

    def find_by_predicate(self, tokens: list[str], limit: int) -> list[FoodItem]:
        """Return foods where every token matches name, brand, EAN or description."""

    def count_by_predicate(self, tokens: list[str]) -> int:
        """Count foods matching every token."""

    def get_food(self, food_id: int) -> FoodItem | None:
        """Return a food by id, if present."""

    def upsert(self, item: FoodItem) -> FoodItem:
        """Insert or update a food by URL and return the stored record."""

    def bulk_upsert(self, items: list[FoodItem]) -> list[FoodItem]:
        """Insert or update foods in a single write and return them stored."""

    def list_foods(self, offset: int, limit: int) -> list[FoodItem]:
        """Return a page of foods ordered by id."""

    def count_foods(self) -> int:
        """Count all stored foods."""

    def list_tags(self) -> list[list[str]]:
        """Return the tag lists of every stored food."""


class ConsumptionEntryRepository(Protocol):
    """Persistence interface for recorded consumption entries."""

    def find_by_food_id(self, food_id: int) -> list[ConsumptionEntry]:
        """Return every entry referencing a food."""

    def list_consumed_food_ids(self, user_id: str) -> set[int]:
        """Return ids of all foods a user has eaten."""

    def list_for_user(self, user_id: str) -> list[ConsumptionEntry]:
        """Return a user's entries, most recent first."""

    def list_referenced_food_ids(self) -> set[int]:
        """Return ids of every food referenced by any entry."""

    def save(self, entry: ConsumptionEntry) -> None:
        """Persist an entry's computed nutrients and cached metadata."""
