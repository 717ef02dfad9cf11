"""HTTP client for the external food source (fddb.info)."""

from dataclasses import dataclass
from typing import Protocol

import httpx


@dataclass(frozen=True)
class SourceResponse:
    """Status, final resolved URL and body of a source page."""

    status_code: int
    url: str
    text: str

    @property
    def is_success(self) -> bool:
        """Whether the status code is 2xx."""
        return 200 <= self.status_code < 300


class SourceClient(Protocol):
    """Interface for fetching pages from the external food source."""

    async def get(self, url: str) -> SourceResponse:
        """Fetch a page, following redirects."""


@dataclass
class HttpxSourceClient(SourceClient):
    """HTTPX-backed source client."""

    http_client: httpx.AsyncClient
    timeout_seconds: float = 15.0

    @classmethod
    def create(
        cls, user_agent: str, timeout_seconds: float = 15.0
    ) -> "HttpxSourceClient":
        """Create a source client with a managed httpx session."""
        return cls(
            http_client=httpx.AsyncClient(
                headers={"User-Agent": user_agent},
                follow_redirects=True,
            ),
            timeout_seconds=timeout_seconds,
        )

    async def get(self, url: str) -> SourceResponse:
        """Fetch a page and return its status, final URL and text."""
        response = await self.http_client.get(url, timeout=self.timeout_seconds)
        return SourceResponse(
            status_code=response.status_code,
            url=str(response.url),
            text=response.text,
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
