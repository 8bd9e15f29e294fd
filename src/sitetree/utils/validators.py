"""Validation helpers."""

from __future__ import annotations

from urllib.parse import urlparse


def is_valid_http_url(url: str) -> bool:
    try:
        parsed = urlparse(url)
        return parsed.scheme in ("http", "https") and bool(parsed.hostname)
    except ValueError:
        return False


def path_segments(path: str) -> list[str]:
    """Split a URL path into its non-empty segments."""
    return [s for s in (path or "").split("/") if s]
