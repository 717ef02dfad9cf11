"""ASGI entrypoint serving the catalog API with environment settings."""

from food_catalog.api.app import create_app
from food_catalog.config import Settings
from food_catalog.containers import build_container

settings = Settings()
app = create_app(build_container(settings))
