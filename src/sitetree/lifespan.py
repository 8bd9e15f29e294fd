"""Application lifespan management (startup/shutdown hooks)."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from .config.settings import get_settings
from .observability.logger import configure_logging, get_logger
from .services.links_tree_service import LinksTreeService
from .services.url_normalizer import LinkNormalizer
from .storage.tree_store import InMemoryKVStore, TreeRepository

logger = get_logger(__name__)

# Long-lived services shared with the HTTP layer
app_state: dict[str, Any] = {}


def build_links_tree_service() -> LinksTreeService:
    settings = get_settings()
    repository = TreeRepository(
        store=InMemoryKVStore(),
        expiration_ttl=settings.tree_cache_ttl_seconds,
    )
    return LinksTreeService(
        repository=repository,
        normalizer=LinkNormalizer(max_visited_urls=settings.max_visited_urls),
    )


@asynccontextmanager
async def lifespan_manager():
    """Manage application lifespan (startup and shutdown)."""
    settings = get_settings()

    configure_logging()
    logger.info("starting_application", service_name=settings.service_name)

    app_state["links_tree_service"] = build_links_tree_service()
    logger.info(
        "links_tree_service_configured",
        tree_cache_ttl_seconds=settings.tree_cache_ttl_seconds,
        max_visited_urls=settings.max_visited_urls,
        default_folder_first=settings.default_folder_first,
        default_links_order=settings.default_links_order,
    )

    logger.info("application_started")
    try:
        yield
    finally:
        app_state.clear()
        logger.info("application_shutdown_complete")
