"""Supabase repository for consumption entries."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from food_catalog.domain.entries import SCALED_NUTRIENTS, ConsumptionEntry
from food_catalog.services.catalog import ConsumptionEntryRepository

_TABLE = "food_entries"
_PAGE_SIZE = 1000


@dataclass
class SupabaseConsumptionEntryRepository(ConsumptionEntryRepository):
    """Supabase implementation for consumption entries."""

    client: Client

    def find_by_food_id(self, food_id: int) -> list[ConsumptionEntry]:
        """Return every entry referencing a food."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .eq("food_id", food_id)
            .order("id", desc=False)
            .execute()
        )
        return [_parse_entry(row) for row in response.data or []]

    def list_consumed_food_ids(self, user_id: str) -> set[int]:
        """Return ids of all foods a user has eaten."""
        response = (
            self.client.table(_TABLE).select("food_id").eq("user_id", user_id).execute()
        )
        return {int(row["food_id"]) for row in response.data or []}

    def list_for_user(self, user_id: str) -> list[ConsumptionEntry]:
        """Return a user's entries, most recent first."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .order("consumed_at", desc=True)
            .execute()
        )
        return [_parse_entry(row) for row in response.data or []]

    def list_referenced_food_ids(self) -> set[int]:
        """Return ids of every food referenced by any entry."""
        food_ids: set[int] = set()
        offset = 0
        while True:
            response = (
                self.client.table(_TABLE)
                .select("food_id")
                .order("id")
                .range(offset, offset + _PAGE_SIZE - 1)
                .execute()
            )
            rows = response.data or []
            food_ids.update(int(row["food_id"]) for row in rows)
            if len(rows) < _PAGE_SIZE:
                return food_ids
            offset += _PAGE_SIZE

    def save(self, entry: ConsumptionEntry) -> None:
        """Update an entry's computed nutrients and cached metadata."""
        payload: dict[str, object] = {
            "food_name": entry.food_name,
            "brand": entry.brand,
            "image_url": entry.image_url,
            "food_url": entry.food_url,
        }
        payload.update({name: getattr(entry, name) for name in SCALED_NUTRIENTS})
        self.client.table(_TABLE).update(payload).eq("id", entry.id).execute()


def _parse_entry(row: dict[str, object]) -> ConsumptionEntry:
    return ConsumptionEntry(
        id=int(row["id"]),
        user_id=str(row["user_id"]),
        food_id=int(row["food_id"]),
        grams_consumed=float(row.get("grams_consumed", 0.0)),
        consumed_at=datetime.fromisoformat(row["consumed_at"]),
        food_name=str(row.get("food_name") or ""),
        brand=row.get("brand"),
        image_url=row.get("image_url"),
        food_url=row.get("food_url"),
        **{name: float(row.get(name) or 0.0) for name in SCALED_NUTRIENTS},
    )
