"""URL normalization and domain helpers.

Tree construction talks to URLs only through `UrlNormalizer`, so a crawl
worker can plug in its own normalization as long as it is deterministic and
idempotent. `LinkNormalizer` is the default used by the service.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Optional
from urllib.parse import urljoin, urlsplit, urlunsplit

import tldextract

from ..config.settings import get_settings
from ..domain.errors import InvalidURLError
from ..domain.models import VisitedUrl
from ..observability.logger import get_logger
from ..utils.time import parse_iso, utc_now_iso
from ..utils.validators import path_segments

logger = get_logger(__name__)

_DEFAULT_PORTS = {"http": 80, "https": 443}

# Bundled public suffix snapshot only; never fetched over the network
_DOMAIN_EXTRACTOR = tldextract.TLDExtract(suffix_list_urls=(), cache_dir=None)


class UrlNormalizer:
    def normalize_url(self, url: str, base_url: str, strict: bool = True) -> str:  # pragma: no cover - interface
        raise NotImplementedError

    def extract_root_domain(self, hostname: str) -> str:  # pragma: no cover - interface
        raise NotImplementedError


class LinkNormalizer(UrlNormalizer):
    """Default normalizer: drops fragments, (optionally) queries and trailing slashes."""

    def __init__(self, max_visited_urls: int | None = None):
        self._max_visited_urls = max_visited_urls

    def normalize_url(self, url: str, base_url: str = "", strict: bool = True) -> str:
        if not url or not isinstance(url, str):
            return url or ""
        try:
            if url.lower().startswith(("http://", "https://")):
                target = url
            elif base_url:
                target = urljoin(base_url, url)
            else:
                # Relative URL without a base cannot be resolved
                return url

            parts = urlsplit(target.strip())
            host = parts.hostname
            if not host:
                return url
            scheme = parts.scheme.lower()
            if ":" in host:
                host = f"[{host}]"
            port = parts.port
            netloc = host if port is None or port == _DEFAULT_PORTS.get(scheme) else f"{host}:{port}"
            if parts.username:
                userinfo = parts.username if parts.password is None else f"{parts.username}:{parts.password}"
                netloc = f"{userinfo}@{netloc}"

            query = "" if strict else parts.query
            path = parts.path.rstrip("/")
            if query and not path:
                path = "/"
            return urlunsplit((scheme, netloc, path, query, ""))
        except ValueError as e:
            logger.warning("url_normalization_failed", url=url, error=str(e))
            return url

    def extract_root_domain(self, hostname: str) -> str:
        """Registrable domain of `hostname` (`docs.example.co.uk` -> `example.co.uk`).

        IP addresses and hosts without a public suffix come back unchanged, so
        they only ever match themselves.
        """
        ext = _DOMAIN_EXTRACTOR(hostname)
        if ext.domain and ext.suffix:
            return f"{ext.domain}.{ext.suffix}"
        return hostname

    def get_root_url(self, url: str) -> str:
        parts = urlsplit(url)
        if parts.scheme not in ("http", "https") or not parts.hostname:
            raise InvalidURLError("cannot determine root url", detail=url)
        return f"{parts.scheme}://{self.extract_root_domain(parts.hostname)}"

    def get_ancestor_paths(self, url: str) -> Optional[list[str]]:
        """Root URL (when different) followed by every proper path prefix of `url`."""
        root_url = self.get_root_url(url)
        parts = urlsplit(url)
        segments = path_segments(parts.path)
        ancestors: list[str] = []

        if root_url and root_url != url:
            ancestors.append(root_url)

        current = f"{parts.scheme}://{parts.netloc}"
        for segment in segments[:-1]:
            current += f"/{segment}"
            ancestors.append(current)

        return ancestors or None

    def get_descendant_paths(
        self,
        base_url: str,
        internal_links: Iterable[str],
        max_steps: int | None = None,
    ) -> Optional[list[str]]:
        """Links strictly below `base_url` on the same host, shallowest first.

        Args:
            base_url: URL whose descendants are wanted.
            internal_links: Candidate links.
            max_steps: Maximum depth below `base_url` (1 = direct children only).
        """
        normalized_base = self.normalize_url(base_url, "", True)
        base_parts = urlsplit(normalized_base)
        base_segments = path_segments(base_parts.path)
        descendants: list[tuple[int, str]] = []

        for link in internal_links:
            try:
                normalized_link = self.normalize_url(link, "", True)
                link_parts = urlsplit(normalized_link)
                if not link_parts.hostname or link_parts.hostname != base_parts.hostname:
                    continue
                link_segments = path_segments(link_parts.path)
                if len(link_segments) <= len(base_segments):
                    continue
                if link_segments[: len(base_segments)] != base_segments:
                    continue
                steps_away = len(link_segments) - len(base_segments)
                if max_steps and steps_away > max_steps:
                    continue
                descendants.append((len(link_segments), normalized_link))
            except ValueError as e:
                logger.error("descendant_link_invalid", link=link, error=str(e))

        if not descendants:
            return None
        descendants.sort(key=lambda item: item[0])
        return [url for _, url in descendants]

    def merge_visited_urls(
        self,
        existing: Iterable[VisitedUrl],
        newly_visited: Iterable[str],
        timestamps: Mapping[str, str],
    ) -> set[VisitedUrl]:
        """Union of visited URLs (new timestamps win), newest first, capped."""
        by_url: dict[str, VisitedUrl] = {}
        for item in existing:
            by_url[item.url] = item
        for url in newly_visited:
            by_url[url] = VisitedUrl(url=url, last_visited=timestamps.get(url) or utc_now_iso())

        def _sort_key(item: VisitedUrl) -> tuple[int, float]:
            when = parse_iso(item.last_visited) if item.last_visited else None
            if when is None:
                return (1, 0.0)
            return (0, -when.timestamp())

        ordered = sorted(by_url.values(), key=_sort_key)
        limit = self._max_visited_urls or get_settings().max_visited_urls
        return set(ordered[:limit])
