"""Structured logging for the tree service.

Every event carries the service name; `tree_log_context` binds the site root
being updated so per-link warnings from the builder and merger can be traced
back to one request.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from ..config.settings import get_settings


def _add_service_name(service_name: str) -> Processor:
    def processor(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", service_name)
        return event_dict

    return processor


def configure_logging() -> None:
    """Configure structlog: JSON for deployments, console rendering for local runs."""
    settings = get_settings()
    log_level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        _add_service_name(settings.service_name),
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]
    if settings.log_format == "console":
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


@contextmanager
def tree_log_context(**values: str) -> Iterator[None]:
    with structlog.contextvars.bound_contextvars(**values):
        yield


def get_logger(name: str | None = None):
    return structlog.get_logger(name)
