"""Links-tree orchestration service (business logic).

Takes the links a crawl worker discovered for one target URL, folds them into
the persisted tree of the target's site and returns the tree shaped for the
response.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import urlsplit

from ..config.settings import get_settings
from ..domain.errors import InvalidURLError, StorageError
from ..domain.models import StoredTreeMetadata, VisitedUrl
from ..models.requests import LinksTreeRequest
from ..models.tree import TreeNode
from ..observability.logger import get_logger, tree_log_context
from ..storage.tree_store import TreeRepository
from ..utils.time import current_time_ms, elapsed_ms, format_duration, parse_iso, utc_now_iso
from ..utils.tree import clean_empty_values, iter_tree_bfs
from ..utils.validators import is_valid_http_url
from .skipped_urls import categorize_skipped_urls
from .tree_builder import build_links_tree
from .tree_merger import merge_new_links_into_tree
from .tree_postprocess import extract_visited_urls_from_tree, process_extracted_links_in_tree
from .url_normalizer import LinkNormalizer

logger = get_logger(__name__)


@dataclass(frozen=True)
class SiteRoot:
    target_url: str
    root_url: str
    storage_key: str
    ancestors: Optional[list[str]] = None


@dataclass
class LinksTreeResult:
    target_url: str
    root_url: str
    tree: TreeNode
    cached: bool
    timestamp: str
    execution_time: str
    ancestors: Optional[list[str]] = None
    descendants: Optional[list[str]] = None

    def to_payload(self) -> dict:
        return clean_empty_values(
            {
                "success": True,
                "cached": self.cached,
                "targetUrl": self.target_url,
                "timestamp": self.timestamp,
                "ancestors": self.ancestors,
                "descendants": self.descendants,
                "tree": self.tree.to_payload(),
            }
        )


@dataclass
class _CachedTree:
    tree: Optional[TreeNode] = None
    visited: set[VisitedUrl] = field(default_factory=set)
    fresh: bool = False


class LinksTreeService:
    """Service layer for site-tree maintenance.

    Responsibilities:
    - Resolve the site root (and storage key) of a target URL
    - Serialize updates per storage key (one writer per root in this process)
    - Merge into a fresh persisted tree, or build a new one
    - Persist the tree without cleaned HTML, then shape the response copy
    """

    def __init__(self, repository: TreeRepository, normalizer: LinkNormalizer):
        self._repository = repository
        self._normalizer = normalizer
        self._settings = get_settings()
        self._locks: dict[str, asyncio.Lock] = {}

    def resolve_root(self, url: str, subdomain_as_root_url: bool = True) -> SiteRoot:
        if not is_valid_http_url(url):
            raise InvalidURLError("target url must be an absolute http(s) url", detail=url)

        target_url = self._normalizer.normalize_url(url, "", True)
        ancestors = self._normalizer.get_ancestor_paths(target_url)

        parts = urlsplit(target_url)
        origin = f"{parts.scheme}://{parts.netloc}"
        is_platform = origin in set(self._settings.platform_urls)
        # On code-hosting platforms the site is the org, not the host
        platform_root = ancestors[1] if is_platform and ancestors and len(ancestors) > 1 else origin

        if subdomain_as_root_url:
            root_url = platform_root
        else:
            root_url = self._normalizer.get_root_url(target_url)

        storage_key = platform_root if is_platform else root_url
        return SiteRoot(target_url=target_url, root_url=root_url, storage_key=storage_key, ancestors=ancestors)

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def _apply_exclude_patterns(self, links: list[str], patterns: list[str]) -> tuple[list[str], dict[str, str]]:
        """Split `links` into kept links and `{url: reason}` for regex-excluded ones.

        Patterns are searched against the full URL; invalid patterns are
        logged and ignored.
        """
        compiled: list[re.Pattern[str]] = []
        for pattern in patterns:
            try:
                compiled.append(re.compile(pattern))
            except re.error as e:
                logger.warning("exclude_pattern_invalid", pattern=pattern, error=str(e))
        if not compiled:
            return list(links), {}

        kept: list[str] = []
        excluded: dict[str, str] = {}
        for link in links:
            match = next((p for p in compiled if p.search(link)), None)
            if match is None:
                kept.append(link)
            else:
                excluded[link] = f"Excluded by pattern: {match.pattern}"
        return kept, excluded

    async def _load_cached(self, key: str) -> _CachedTree:
        try:
            loaded = await self._repository.load_tree(key)
        except StorageError as e:
            # Proceed without cache
            logger.error("tree_cache_read_failed", key=key, error=str(e), detail=e.info.detail)
            return _CachedTree()
        if loaded is None:
            return _CachedTree()

        tree, metadata = loaded
        stored_at = parse_iso(metadata.timestamp) if metadata.timestamp else None
        max_age = timedelta(seconds=self._settings.tree_cache_ttl_seconds)
        if stored_at is None or datetime.now(timezone.utc) - stored_at >= max_age:
            logger.info("tree_cache_stale", key=key, timestamp=metadata.timestamp)
            return _CachedTree()

        return _CachedTree(tree=tree, visited=extract_visited_urls_from_tree(tree), fresh=True)

    async def update_tree(self, request: LinksTreeRequest) -> LinksTreeResult:
        start_ms = current_time_ms()
        site = self.resolve_root(request.url, request.subdomain_as_root_url)
        with tree_log_context(root_url=site.root_url, storage_key=site.storage_key):
            return await self._update_tree(request, site, start_ms)

    async def _update_tree(self, request: LinksTreeRequest, site: SiteRoot, start_ms: int) -> LinksTreeResult:
        timestamp = utc_now_iso()

        folder_first = (
            request.folder_first if request.folder_first is not None else self._settings.default_folder_first
        )
        links_order = request.links_order or self._settings.default_links_order

        links, excluded = self._apply_exclude_patterns(request.links, request.links_options.exclude_patterns)
        skipped_urls = {**request.skipped_urls, **excluded}

        logger.info(
            "links_tree_update_started",
            target_url=site.target_url,
            links=len(links),
            excluded=len(excluded),
        )

        async with self._lock_for(site.storage_key):
            cached = await self._load_cached(site.storage_key)

            visited_urls = self._normalizer.merge_visited_urls(
                cached.visited,
                [v.url for v in request.visited_urls],
                {v.url: v.last_visited for v in request.visited_urls if v.last_visited},
            )

            # A fresh tree is always merged into; an empty link list only refreshes it
            if cached.fresh and cached.tree is not None:
                tree = await merge_new_links_into_tree(
                    existing_tree=cached.tree,
                    new_links=links,
                    root_url=site.root_url,
                    normalizer=self._normalizer,
                    visited_urls=visited_urls,
                    metadata_cache=request.metadata_cache,
                    extracted_links_map=request.extracted_links_map,
                    include_extracted_links=request.extracted_links,
                    folder_first=folder_first,
                    links_order=links_order,
                )
            else:
                tree = build_links_tree(
                    internal_links=links,
                    root_url=site.root_url,
                    normalizer=self._normalizer,
                    visited_urls=visited_urls,
                    metadata_cache=request.metadata_cache,
                    extracted_links_map=request.extracted_links_map,
                    include_extracted_links=request.extracted_links,
                    folder_first=folder_first,
                    links_order=links_order,
                )

            try:
                await self._repository.save_tree(
                    site.storage_key,
                    tree,
                    StoredTreeMetadata(
                        timestamp=utc_now_iso(),
                        title=request.title,
                        description=request.description,
                    ),
                )
            except StorageError as e:
                logger.warning("tree_persist_failed", key=site.storage_key, error=str(e))

        # Cleaned HTML only goes into the response copy, after persisting
        if request.cleaned_html and request.cleaned_html_cache:
            tree = await merge_new_links_into_tree(
                existing_tree=tree,
                new_links=[],
                root_url=site.root_url,
                normalizer=self._normalizer,
                visited_urls=visited_urls,
                cleaned_html_cache=request.cleaned_html_cache,
                folder_first=folder_first,
                links_order=links_order,
            )

        if not request.metadata:
            for node in iter_tree_bfs(tree):
                node.metadata = None

        process_extracted_links_in_tree(tree, request.extracted_links, request.links_options)

        if skipped_urls:
            tree.skipped_urls = categorize_skipped_urls(skipped_urls, site.root_url, tree.children)

        descendants = self._normalizer.get_descendant_paths(site.target_url, links)
        execution_time = format_duration(elapsed_ms(start_ms))
        tree.execution_time = execution_time

        logger.info(
            "links_tree_update_completed",
            target_url=site.target_url,
            total_urls=tree.total_urls,
            cached=cached.fresh,
            execution_time=execution_time,
        )

        return LinksTreeResult(
            target_url=site.target_url,
            root_url=site.root_url,
            tree=tree,
            cached=cached.fresh,
            timestamp=timestamp,
            execution_time=execution_time,
            ancestors=site.ancestors,
            descendants=descendants[: self._settings.max_kin_limit] if descendants else None,
        )

    async def get_tree(self, url: str) -> Optional[TreeNode]:
        site = self.resolve_root(url)
        loaded = await self._repository.load_tree(site.storage_key)
        if loaded is None:
            return None
        tree, _ = loaded
        return tree
