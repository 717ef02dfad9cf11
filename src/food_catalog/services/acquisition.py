"""Acquisition of candidate foods from the external source."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from urllib.parse import quote, urlsplit

import httpx

from food_catalog.adapters.source_client import SourceClient, SourceResponse
from food_catalog.domain.catalog import FoodItem
from food_catalog.services.page_parser import (
    ITEM_PATH_PREFIX,
    PageParseError,
    parse_food_page,
    parse_search_links,
)

_TRANSIENT_EXCEPTIONS = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
    TimeoutError,
    ConnectionError,
)

_logger = logging.getLogger(__name__)


class FailureKind(Enum):
    """Whether a failed fetch is worth retrying."""

    TRANSIENT = "transient"
    TERMINAL = "terminal"


def classify_status(status_code: int) -> FailureKind:
    """Classify an unsuccessful HTTP status."""
    if 500 <= status_code < 600:  # noqa: PLR2004
        return FailureKind.TRANSIENT
    return FailureKind.TERMINAL


def classify_exception(exc: BaseException) -> FailureKind:
    """Classify an exception raised while fetching."""
    if isinstance(exc, _TRANSIENT_EXCEPTIONS):
        return FailureKind.TRANSIENT
    return FailureKind.TERMINAL


@dataclass
class AcquisitionService:
    """Finds candidate foods by scraping the external source."""

    source_client: SourceClient
    base_url: str = "https://fddb.info"
    max_retries: int = 3
    max_concurrency: int = 4
    timeout_seconds: float | None = None
    item_prefix: str = ITEM_PATH_PREFIX
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    async def find_candidates(self, name: str) -> list[FoodItem]:
        """Return unpersisted foods found for a name; never raises on failure."""
        try:
            return await self._find_candidates(name)
        except Exception:
            _logger.exception("Source search failed for %s", name)
            return []

    async def _find_candidates(self, name: str) -> list[FoodItem]:
        _logger.info("Searching source for food: %s", name)
        response = await self.source_client.get(
            f"{self.base_url}/db/de/suche/?search={quote(name)}"
        )
        if not response.is_success:
            _logger.warning(
                "Source search for %s failed with status %s",
                name,
                response.status_code,
            )
            return []

        final_path = urlsplit(response.url).path
        if final_path.startswith(self.item_prefix):
            item = await self._fetch_item(final_path)
            return [item] if item else []

        links = parse_search_links(response.text, self.item_prefix)
        if not links:
            _logger.info("No source items found for %s", name)
            return []

        items = await self._fetch_items(links)
        _logger.info("Found %s source items for %s", len(items), name)
        return items

    async def _fetch_items(self, links: list[str]) -> list[FoodItem]:
        """Fetch item pages concurrently and keep them in discovery order."""
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def fetch(link: str) -> FoodItem | None:
            async with semaphore:
                return await self._fetch_item(link)

        tasks = [asyncio.create_task(fetch(link)) for link in links]
        try:
            done, pending = await asyncio.wait(tasks, timeout=self.timeout_seconds)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
        if pending:
            _logger.warning(
                "Source deadline reached, abandoning %s of %s items",
                len(pending),
                len(tasks),
            )
            await asyncio.gather(*pending, return_exceptions=True)

        items: list[FoodItem] = []
        for task in tasks:
            if task not in done or task.cancelled():
                continue
            if task.exception() is not None:
                _logger.error("Source item fetch crashed: %r", task.exception())
                continue
            item = task.result()
            if item is not None:
                items.append(item)
        return items

    async def _fetch_item(self, path: str) -> FoodItem | None:
        url = f"{self.base_url}{path}"
        response = await self.fetch_with_retry(url)
        if response is None:
            return None
        try:
            item = parse_food_page(response.text, url)
        except PageParseError as exc:
            _logger.warning("Skipping unparseable food page %s: %s", url, exc)
            return None
        _logger.debug("Found source item %s (%s)", item.name, item.url)
        return item

    async def fetch_with_retry(self, url: str) -> SourceResponse | None:
        """Fetch a page, retrying transient failures with exponential backoff."""
        attempt = 0
        while True:
            try:
                response = await self.source_client.get(url)
            except Exception as exc:
                kind = classify_exception(exc)
                reason = repr(exc)
            else:
                if response.is_success:
                    return response
                kind = classify_status(response.status_code)
                reason = f"status {response.status_code}"

            if kind is FailureKind.TERMINAL:
                _logger.warning("Giving up on %s: %s", url, reason)
                return None
            if attempt >= self.max_retries:
                _logger.warning(
                    "Giving up on %s after %s attempts: %s", url, attempt + 1, reason
                )
                return None
            attempt += 1
            delay = 2**attempt
            _logger.warning(
                "Transient failure fetching %s (%s), retrying in %ss (%s/%s)",
                url,
                reason,
                delay,
                attempt,
                self.max_retries,
            )
            await self.sleep(delay)
