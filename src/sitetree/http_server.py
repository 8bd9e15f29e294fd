"""Uvicorn runner for the tree API."""

from __future__ import annotations

import uvicorn

from .config.settings import TreeSettings, get_settings
from .http_app import app
from .observability.logger import get_logger

logger = get_logger(__name__)


def build_server_config(settings: TreeSettings) -> uvicorn.Config:
    # structlog owns application logs; uvicorn only reports its own failures
    return uvicorn.Config(
        app=app,
        host=settings.http_host,
        port=settings.http_port,
        log_level="warning",
        access_log=settings.http_access_log,
        loop="asyncio",
    )


async def run_http_server(settings: TreeSettings | None = None) -> None:
    settings = settings or get_settings()
    if not settings.http_enable:
        logger.info("tree_api_disabled", service=settings.service_name)
        return

    server = uvicorn.Server(build_server_config(settings))
    logger.info(
        "tree_api_listening",
        address=f"http://{settings.http_host}:{settings.http_port}",
        tree_cache_ttl_seconds=settings.tree_cache_ttl_seconds,
    )
    await server.serve()
    logger.info("tree_api_stopped")
