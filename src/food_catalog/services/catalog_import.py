"""Catalog import, consumption-entry repair and text cleanup."""

import html
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from urllib.parse import urlsplit

from food_catalog.domain.catalog import (
    FoodItem,
    FoodNotFoundError,
    InvalidFoodItemError,
)
from food_catalog.domain.entries import SCALED_NUTRIENTS, ConsumptionEntry
from food_catalog.services.catalog import CatalogRepository, ConsumptionEntryRepository

_logger = logging.getLogger(__name__)


@dataclass
class ImportSummary:
    """Counters describing a finished import."""

    inserted: int = 0
    updated: int = 0
    skipped: int = 0
    failed_chunks: int = 0
    repaired_entries: int = 0


@dataclass
class _ChunkIndex:
    """Natural-key index of the foods staged for one chunk."""

    staged: list[FoodItem] = field(default_factory=list)
    by_url: dict[str, FoodItem] = field(default_factory=dict)
    by_ean: dict[str, FoodItem] = field(default_factory=dict)
    by_id: dict[int, FoodItem] = field(default_factory=dict)

    def register(self, target: FoodItem, incoming: FoodItem) -> None:
        self.by_url[target.url] = target
        self.by_url[incoming.url] = target
        if target.ean:
            self.by_ean[target.ean] = target
        if target.id:
            self.by_id[target.id] = target


def scale_entry(entry: ConsumptionEntry, food: FoodItem) -> ConsumptionEntry:
    """Recompute an entry's nutrients and cached metadata from its food."""
    scaled = {
        entry_field: getattr(food.nutrition, nutrition_field).value
        * entry.grams_consumed
        / 100
        for entry_field, nutrition_field in SCALED_NUTRIENTS.items()
    }
    return replace(
        entry,
        food_name=decode_html_text(food.name),
        brand=food.brand,
        image_url=food.image_url,
        food_url=food.url,
        **scaled,
    )


def normalize_food_text(food: FoodItem) -> bool:
    """Blank malformed image URLs and HTML-decode text fields in place.

    Returns whether any field changed.
    """
    changed = False
    if food.image_url and not is_absolute_uri(food.image_url):
        food.image_url = ""
        changed = True
    for attribute in ("name", "description", "brand"):
        value = getattr(food, attribute)
        if value and decode_html_text(value) != value:
            setattr(food, attribute, decode_html_text(value))
            changed = True
    decoded_tags = [decode_html_text(tag) for tag in food.tags]
    if decoded_tags != food.tags:
        food.tags = decoded_tags
        changed = True
    return changed


def decode_html_text(value: str) -> str:
    """Decode HTML entities repeatedly until the text stops changing."""
    decoded = html.unescape(value)
    while decoded != value:
        value, decoded = decoded, html.unescape(decoded)
    return decoded


def is_absolute_uri(value: str) -> bool:
    """Whether a string is an absolute URI with a scheme and host."""
    try:
        parts = urlsplit(value.strip())
    except ValueError:
        return False
    return bool(parts.scheme and parts.netloc)


@dataclass
class CatalogImportService:
    """Imports foods in chunks and keeps consumption entries consistent."""

    catalog_repository: CatalogRepository
    entry_repository: ConsumptionEntryRepository
    batch_size: int = 1000

    def import_batch(
        self, items: Sequence[FoodItem], batch_size: int | None = None
    ) -> ImportSummary:
        """Upsert foods by natural key and repair entries of changed foods."""
        size = max(1, batch_size or self.batch_size)
        total_chunks = (len(items) + size - 1) // size
        summary = ImportSummary()
        _logger.info(
            "Starting import of %s foods in %s batches", len(items), total_chunks
        )
        for number, start in enumerate(range(0, len(items), size), start=1):
            self._import_chunk(items[start : start + size], summary)
            _logger.info("Imported batch %s/%s", number, total_chunks)
        _logger.info(
            "Food import completed: inserted=%s updated=%s skipped=%s "
            "failed_chunks=%s repaired_entries=%s",
            summary.inserted,
            summary.updated,
            summary.skipped,
            summary.failed_chunks,
            summary.repaired_entries,
        )
        return summary

    def _import_chunk(self, chunk: Sequence[FoodItem], summary: ImportSummary) -> None:
        index = _ChunkIndex()
        changed_ids: set[int] = set()
        inserted = updated = 0
        for item in chunk:
            try:
                incoming = _validated(item)
                target = self._match(incoming, index)
            except Exception:
                _logger.exception(
                    "Skipping import record %r", getattr(item, "url", item)
                )
                summary.skipped += 1
                continue
            if target is None:
                target = replace(incoming, id=None, tags=list(incoming.tags))
                index.staged.append(target)
                inserted += 1
            else:
                _overwrite(target, incoming)
                updated += 1
                if target.id:
                    changed_ids.add(target.id)
            index.register(target, incoming)

        if not index.staged:
            return
        try:
            self.catalog_repository.bulk_upsert(index.staged)
        except Exception:
            _logger.exception("Import chunk of %s foods failed", len(chunk))
            summary.failed_chunks += 1
            return
        summary.inserted += inserted
        summary.updated += updated
        for food_id in sorted(changed_ids):
            try:
                summary.repaired_entries += self.repair_consumption_entries(food_id)
            except Exception:
                _logger.exception("Failed to repair entries for food %s", food_id)

    def _match(self, incoming: FoodItem, index: _ChunkIndex) -> FoodItem | None:
        """Find the staged or stored food sharing a natural key, URL first."""
        if incoming.url in index.by_url:
            return index.by_url[incoming.url]
        stored = self.catalog_repository.find_by_natural_key(incoming.url, incoming.ean)
        if stored is not None:
            if stored.id in index.by_id:
                return index.by_id[stored.id]
            index.staged.append(stored)
            return stored
        if incoming.ean and incoming.ean in index.by_ean:
            return index.by_ean[incoming.ean]
        return None

    def repair_consumption_entries(self, food_id: int) -> int:
        """Rescale every entry of a food and refresh its cached metadata."""
        food = self.catalog_repository.get_food(food_id)
        if food is None:
            raise FoodNotFoundError(food_id)
        touched = 0
        for entry in self.entry_repository.find_by_food_id(food_id):
            repaired = scale_entry(entry, food)
            if repaired != entry:
                self.entry_repository.save(repaired)
                touched += 1
        if touched:
            _logger.info(
                "Repaired %s consumption entries for food %s", touched, food_id
            )
        return touched

    def repair_all_consumption_entries(self) -> int:
        """Repair entries of every food referenced by any entry."""
        touched = 0
        for food_id in sorted(self.entry_repository.list_referenced_food_ids()):
            try:
                touched += self.repair_consumption_entries(food_id)
            except FoodNotFoundError:
                _logger.warning("Entries reference missing food %s", food_id)
        _logger.info("Repaired %s consumption entries across the catalog", touched)
        return touched

    def cleanup(self) -> int:
        """Normalize stored text fields; return how many foods changed."""
        changed_total = 0
        offset = 0
        while True:
            foods = self.catalog_repository.list_foods(offset, self.batch_size)
            if not foods:
                break
            offset += len(foods)
            changed = [food for food in foods if normalize_food_text(food)]
            if not changed:
                continue
            self.catalog_repository.bulk_upsert(changed)
            changed_total += len(changed)
            for food in changed:
                if food.id:
                    self.repair_consumption_entries(food.id)
        _logger.info("Cleanup changed %s foods", changed_total)
        return changed_total


def _validated(item: FoodItem) -> FoodItem:
    if not item.url or not item.url.strip():
        raise InvalidFoodItemError("Import record has no URL")
    if not item.name or not item.name.strip():
        raise InvalidFoodItemError(f"Import record {item.url} has no name")
    ean = item.ean.strip() if item.ean else None
    return replace(item, url=item.url.strip(), ean=ean or None)


def _overwrite(target: FoodItem, incoming: FoodItem) -> None:
    """Copy every mutable field onto a stored food, keeping its id and URL."""
    target.name = incoming.name
    target.description = incoming.description
    target.image_url = incoming.image_url
    target.brand = incoming.brand
    target.tags = list(incoming.tags)
    target.ean = incoming.ean
    target.nutrition = incoming.nutrition
