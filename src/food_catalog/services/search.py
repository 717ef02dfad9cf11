"""Cache-aside catalog search backed by the external source."""

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from food_catalog.config import strip_directive
from food_catalog.domain.catalog import (
    FoodItem,
    FoodNotFoundError,
    SearchPage,
    SearchResult,
    SortDirection,
    SortField,
)
from food_catalog.services.catalog import CatalogRepository, ConsumptionEntryRepository

_SORT_KEYS: dict[SortField, Callable[[FoodItem], object]] = {
    SortField.NAME: lambda food: food.name.casefold(),
    SortField.BRAND: lambda food: (food.brand or "").casefold(),
    SortField.CALORIES: lambda food: food.nutrition.calories.value,
    SortField.PROTEIN: lambda food: food.nutrition.protein.value,
    SortField.CARBS: lambda food: food.nutrition.carbohydrates_total.value,
    SortField.FAT: lambda food: food.nutrition.fat.value,
}

_logger = logging.getLogger(__name__)


class CandidateFinder(Protocol):
    """Interface for discovering foods outside the local catalog."""

    async def find_candidates(self, name: str) -> list[FoodItem]:
        """Return unpersisted foods found for a name."""


def resolve_sort(
    sort_field: SortField | str | None, sort_direction: SortDirection | str | None
) -> tuple[SortField, SortDirection]:
    """Resolve raw sort options, falling back to name ascending."""
    try:
        field = SortField(sort_field)
    except ValueError:
        return SortField.NAME, SortDirection.ASCENDING
    try:
        direction = SortDirection(sort_direction)
    except ValueError:
        direction = SortDirection.ASCENDING
    return field, direction


def sort_foods(
    foods: list[FoodItem], sort_field: SortField, sort_direction: SortDirection
) -> list[FoodItem]:
    """Sort foods by a field and direction."""
    return sorted(
        foods,
        key=_SORT_KEYS[sort_field],
        reverse=sort_direction is SortDirection.DESCENDING,
    )


def rank_foods(
    foods: list[FoodItem],
    consumed_ids: set[int],
    sort_field: SortField,
    sort_direction: SortDirection,
) -> list[SearchResult]:
    """Sort foods, placing ones the user has eaten before the rest."""
    ordered = sort_foods(foods, sort_field, sort_direction)
    previous = [
        SearchResult(food=food, previously_consumed=True)
        for food in ordered
        if food.id in consumed_ids
    ]
    fresh = [
        SearchResult(food=food, previously_consumed=False)
        for food in ordered
        if food.id not in consumed_ids
    ]
    return previous + fresh


def paginate(
    results: list[SearchResult],
    total_count: int,
    page: int,
    page_size: int,
    was_truncated: bool = False,
) -> SearchPage:
    """Slice ranked results into a page."""
    start = (page - 1) * page_size
    return SearchPage(
        items=results[start : start + page_size],
        total_count=total_count,
        page=page,
        page_size=page_size,
        total_pages=math.ceil(total_count / page_size) if page_size else 0,
        was_truncated=was_truncated,
    )


@dataclass
class FoodSearchService:
    """Searches the local catalog and scrapes the source on a miss."""

    catalog_repository: CatalogRepository
    entry_repository: ConsumptionEntryRepository
    finder: CandidateFinder
    max_results: int = 10_000
    force_refresh_token: str = "!refresh"

    async def search(  # noqa: PLR0913
        self,
        query: str,
        user_id: str | None = None,
        page: int = 1,
        page_size: int = 20,
        sort_field: SortField | str = SortField.NAME,
        sort_direction: SortDirection | str = SortDirection.ASCENDING,
        force_refresh: bool = False,
    ) -> SearchPage:
        """Search foods, falling back to the source on the first page."""
        cleaned, directive = strip_directive(query, self.force_refresh_token)
        refresh = force_refresh or directive
        field, direction = resolve_sort(sort_field, sort_direction)
        tokens = cleaned.split()

        local, total_count, truncated = self._search_local(tokens)
        consumed_ids = self._consumed_ids(user_id)
        local_page = paginate(
            rank_foods(local, consumed_ids, field, direction),
            total_count,
            page,
            page_size,
            truncated,
        )
        if page != 1 or not tokens or (local and not refresh):
            return local_page

        if refresh:
            _logger.info("Force refresh requested for '%s'", cleaned)
        else:
            _logger.info("No local results for '%s', attempting to scrape", cleaned)
        try:
            candidates = await self.finder.find_candidates(cleaned)
        except Exception:
            _logger.exception("Scraping failed for '%s'", cleaned)
            return local_page
        if not candidates:
            return local_page

        persisted = self._persist_candidates(candidates)
        if not persisted:
            return local_page

        merged = list(local)
        known_ids = {food.id for food in local}
        merged.extend(food for food in persisted if food.id not in known_ids)
        return paginate(
            rank_foods(merged, consumed_ids, field, direction),
            len(merged),
            page,
            page_size,
            truncated,
        )

    def get_food(self, food_id: int) -> FoodItem:
        """Return a catalog food by id."""
        food = self.catalog_repository.get_food(food_id)
        if food is None:
            raise FoodNotFoundError(food_id)
        return food

    def list_categories(self) -> list[str]:
        """Return distinct tags across the catalog, sorted."""
        tags = {
            tag for tag_list in self.catalog_repository.list_tags() for tag in tag_list
        }
        return sorted(tags)

    def count_foods(self) -> int:
        """Return the number of stored foods."""
        return self.catalog_repository.count_foods()

    def past_eaten_foods(
        self, user_id: str, page: int = 1, page_size: int = 20
    ) -> SearchPage:
        """Return a user's distinct foods, most recently eaten first."""
        food_ids: list[int] = []
        seen: set[int] = set()
        for entry in self.entry_repository.list_for_user(user_id):
            if entry.food_id not in seen:
                seen.add(entry.food_id)
                food_ids.append(entry.food_id)

        start = (page - 1) * page_size
        results = []
        for food_id in food_ids[start : start + page_size]:
            food = self.catalog_repository.get_food(food_id)
            if food is not None:
                results.append(SearchResult(food=food, previously_consumed=True))
        return SearchPage(
            items=results,
            total_count=len(food_ids),
            page=page,
            page_size=page_size,
            total_pages=math.ceil(len(food_ids) / page_size) if page_size else 0,
        )

    def _search_local(self, tokens: list[str]) -> tuple[list[FoodItem], int, bool]:
        """Return capped matches, the capped count and whether it was capped."""
        try:
            match_count = self.catalog_repository.count_by_predicate(tokens)
            foods = self.catalog_repository.find_by_predicate(tokens, self.max_results)
        except Exception:
            _logger.exception("Local catalog search failed for %s", tokens)
            return [], 0, False
        if match_count > self.max_results:
            _logger.warning(
                "Search %s matched %s foods, truncating to %s",
                tokens,
                match_count,
                self.max_results,
            )
            return foods[: self.max_results], self.max_results, True
        return foods, match_count, False

    def _consumed_ids(self, user_id: str | None) -> set[int]:
        if user_id is None:
            return set()
        try:
            return self.entry_repository.list_consumed_food_ids(user_id)
        except Exception:
            _logger.exception("Failed to load consumption history for %s", user_id)
            return set()

    def _persist_candidates(self, candidates: list[FoodItem]) -> list[FoodItem]:
        """Store new candidates and reuse stored copies of known ones."""
        persisted: list[FoodItem] = []
        seen_ids: set[int | None] = set()
        created = 0
        for candidate in candidates:
            try:
                stored = self.catalog_repository.find_by_natural_key(
                    candidate.url, candidate.ean
                )
                if stored is None:
                    stored = self._insert_candidate(candidate)
                    created += 1
            except Exception:
                _logger.exception("Failed to save scraped food %s", candidate.url)
                continue
            if stored.id not in seen_ids:
                seen_ids.add(stored.id)
                persisted.append(stored)
        _logger.info(
            "Saved %s new scraped foods, %s already stored",
            created,
            len(persisted) - created,
        )
        return persisted

    def _insert_candidate(self, candidate: FoodItem) -> FoodItem:
        """Insert a scraped food, falling back to a copy stored concurrently."""
        try:
            return self.catalog_repository.upsert(candidate)
        except Exception:
            stored = self.catalog_repository.find_by_natural_key(
                candidate.url, candidate.ean
            )
            if stored is None:
                raise
            _logger.info(
                "Scraped food %s was stored concurrently as %s",
                candidate.url,
                stored.id,
            )
            return stored
