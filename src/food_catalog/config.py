"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    source_base_url: str = "https://fddb.info"
    source_user_agent: str = "Mozilla/5.0 (compatible; food-catalog/0.1)"
    source_timeout_seconds: float = 15.0
    scrape_max_retries: int = 3
    scrape_max_concurrency: int = 4
    scrape_timeout_seconds: float | None = 60.0
    search_max_results: int = 10_000
    force_refresh_token: str = "!refresh"
    import_batch_size: int = 1000
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def strip_directive(query: str, token: str) -> tuple[str, bool]:
    """Remove a directive token from a query and report whether it was there."""
    if not token:
        return query.strip(), False
    parts = query.split()
    kept = [part for part in parts if part.lower() != token.lower()]
    return " ".join(kept), len(kept) != len(parts)
