"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from food_catalog.adapters.source_client import HttpxSourceClient
from food_catalog.adapters.supabase_catalog_repository import SupabaseCatalogRepository
from food_catalog.adapters.supabase_entry_repository import (
    SupabaseConsumptionEntryRepository,
)
from food_catalog.config import Settings
from food_catalog.services.acquisition import AcquisitionService
from food_catalog.services.catalog_import import CatalogImportService
from food_catalog.services.editor import FoodEditorService
from food_catalog.services.search import FoodSearchService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    search_service: FoodSearchService
    import_service: CatalogImportService
    editor_service: FoodEditorService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    catalog_repository = SupabaseCatalogRepository(supabase_client)
    entry_repository = SupabaseConsumptionEntryRepository(supabase_client)
    source_client = HttpxSourceClient.create(
        user_agent=resolved_settings.source_user_agent,
        timeout_seconds=resolved_settings.source_timeout_seconds,
    )
    acquisition_service = AcquisitionService(
        source_client=source_client,
        base_url=resolved_settings.source_base_url,
        max_retries=resolved_settings.scrape_max_retries,
        max_concurrency=resolved_settings.scrape_max_concurrency,
        timeout_seconds=resolved_settings.scrape_timeout_seconds,
    )
    search_service = FoodSearchService(
        catalog_repository=catalog_repository,
        entry_repository=entry_repository,
        finder=acquisition_service,
        max_results=resolved_settings.search_max_results,
        force_refresh_token=resolved_settings.force_refresh_token,
    )
    import_service = CatalogImportService(
        catalog_repository=catalog_repository,
        entry_repository=entry_repository,
        batch_size=resolved_settings.import_batch_size,
    )
    editor_service = FoodEditorService(
        catalog_repository=catalog_repository,
        import_service=import_service,
    )

    async def close_resources() -> None:
        await source_client.close()

    return AppContainer(
        settings=resolved_settings,
        search_service=search_service,
        import_service=import_service,
        editor_service=editor_service,
        close_resources=close_resources,
    )
