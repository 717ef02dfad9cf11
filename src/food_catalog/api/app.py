"""FastAPI application factory."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status

from food_catalog.api.admin import router as admin_router
from food_catalog.api.schemas import FoodResponse, SearchResponse
from food_catalog.app_logging import configure_logging
from food_catalog.containers import AppContainer
from food_catalog.domain.catalog import FoodNotFoundError

MAX_PAGE_SIZE = 100


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/foods/search")
    async def search_foods(  # noqa: PLR0913
        request: Request,
        query: str = "",
        page: int = 1,
        page_size: int = 20,
        sort_by: str = "name",
        sort_direction: str = "asc",
        user_id: str | None = None,
        force_refresh: bool = False,
    ) -> SearchResponse:
        """Search the catalog, scraping the source on a miss."""
        if not query.strip():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Query parameter is required",
            )
        state_container: AppContainer = request.app.state.container
        result = await state_container.search_service.search(
            query,
            user_id=user_id,
            page=max(page, 1),
            page_size=min(max(page_size, 1), MAX_PAGE_SIZE),
            sort_field=sort_by,
            sort_direction=sort_direction,
            force_refresh=force_refresh,
        )
        return SearchResponse.from_domain(result)

    @app.get("/foods/categories")
    def food_categories(request: Request) -> list[str]:
        """Return every tag used in the catalog."""
        state_container: AppContainer = request.app.state.container
        return state_container.search_service.list_categories()

    @app.get("/foods/count")
    def food_count(request: Request) -> dict[str, int]:
        """Return the number of catalog foods."""
        state_container: AppContainer = request.app.state.container
        return {"count": state_container.search_service.count_foods()}

    @app.get("/foods/eaten")
    def eaten_foods(
        request: Request, user_id: str, page: int = 1, page_size: int = 20
    ) -> SearchResponse:
        """Return foods a user has eaten, most recent first."""
        state_container: AppContainer = request.app.state.container
        result = state_container.search_service.past_eaten_foods(
            user_id,
            page=max(page, 1),
            page_size=min(max(page_size, 1), MAX_PAGE_SIZE),
        )
        return SearchResponse.from_domain(result)

    @app.get("/foods/{food_id}")
    def get_food(food_id: int, request: Request) -> FoodResponse:
        """Return a catalog food by id."""
        state_container: AppContainer = request.app.state.container
        try:
            food = state_container.search_service.get_food(food_id)
        except FoodNotFoundError as exc:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)
            ) from exc
        return FoodResponse.from_domain(food)

    return app
