"""Admin API endpoints with simple token auth."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from pydantic import ValidationError

from food_catalog.api.schemas import (
    FoodCompleteUpdateRequest,
    FoodImportRecord,
    FoodInfoUpdateRequest,
    NutrientUpdateModel,
    nutrient_updates,
)
from food_catalog.domain.catalog import FoodNotFoundError

if TYPE_CHECKING:
    from food_catalog.containers import AppContainer
    from food_catalog.domain.catalog import FoodItem

router = APIRouter(prefix="/admin", tags=["admin"])

_logger = logging.getLogger(__name__)


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


def _not_found(exc: FoodNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.post("/foods/import", dependencies=[Depends(require_admin)])
def import_foods(
    records: list[dict[str, Any]],
    request: Request,
    batch_size: int | None = None,
) -> dict[str, int]:
    """Import raw food records, skipping the ones that fail validation."""
    container: AppContainer = request.app.state.container
    items: list[FoodItem] = []
    invalid = 0
    for position, record in enumerate(records):
        try:
            items.append(FoodImportRecord.model_validate(record).to_domain())
        except ValidationError as exc:
            invalid += 1
            _logger.warning(
                "Rejected import record %s: %s", position, exc.errors()[0]["msg"]
            )
    summary = container.import_service.import_batch(items, batch_size=batch_size)
    return {
        "imported": summary.inserted + summary.updated,
        "inserted": summary.inserted,
        "updated": summary.updated,
        "skipped": summary.skipped + invalid,
        "failed_chunks": summary.failed_chunks,
        "repaired_entries": summary.repaired_entries,
    }


@router.post("/foods/cleanup", dependencies=[Depends(require_admin)])
def cleanup_foods(request: Request) -> dict[str, int]:
    """Normalize stored food text and image URLs."""
    container: AppContainer = request.app.state.container
    return {"changed": container.import_service.cleanup()}


@router.post("/foods/repair-entries", dependencies=[Depends(require_admin)])
def repair_all_entries(request: Request) -> dict[str, int]:
    """Recompute every consumption entry from current catalog data."""
    container: AppContainer = request.app.state.container
    return {
        "repaired_entries": container.import_service.repair_all_consumption_entries()
    }


@router.post("/foods/{food_id}/repair-entries", dependencies=[Depends(require_admin)])
def repair_entries(food_id: int, request: Request) -> dict[str, int]:
    """Recompute the consumption entries of one food."""
    container: AppContainer = request.app.state.container
    try:
        count = container.import_service.repair_consumption_entries(food_id)
    except FoodNotFoundError as exc:
        raise _not_found(exc) from exc
    return {"repaired_entries": count}


@router.put("/foods/{food_id}/info", dependencies=[Depends(require_admin)])
def update_food_info(
    food_id: int, update: FoodInfoUpdateRequest, request: Request
) -> dict[str, object]:
    """Apply a partial update to a food's descriptive fields."""
    container: AppContainer = request.app.state.container
    try:
        count = container.editor_service.update_info(food_id, update.to_domain())
    except FoodNotFoundError as exc:
        raise _not_found(exc) from exc
    return {"success": True, "repaired_entries": count}


@router.put("/foods/{food_id}/nutrition", dependencies=[Depends(require_admin)])
def update_food_nutrition(
    food_id: int, update: dict[str, NutrientUpdateModel], request: Request
) -> dict[str, object]:
    """Apply a partial update to a food's nutrition values."""
    container: AppContainer = request.app.state.container
    try:
        count = container.editor_service.update_nutrition(
            food_id, nutrient_updates(update)
        )
    except FoodNotFoundError as exc:
        raise _not_found(exc) from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    return {"success": True, "repaired_entries": count}


@router.put("/foods/{food_id}", dependencies=[Depends(require_admin)])
def update_food(
    food_id: int, update: FoodCompleteUpdateRequest, request: Request
) -> dict[str, object]:
    """Apply descriptive and nutrition updates together."""
    if update.info is None and update.nutrition is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Update must contain food info or nutrition data",
        )
    container: AppContainer = request.app.state.container
    try:
        count = container.editor_service.update_complete(
            food_id,
            info=update.info.to_domain() if update.info else None,
            nutrients=nutrient_updates(update.nutrition) if update.nutrition else None,
        )
    except FoodNotFoundError as exc:
        raise _not_found(exc) from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    return {"success": True, "repaired_entries": count}
