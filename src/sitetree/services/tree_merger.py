"""Merge newly discovered links into a previously persisted tree."""

from __future__ import annotations

from typing import Iterable, Mapping, Optional
from urllib.parse import urlsplit

from ..domain.models import LinksOrder, VisitedUrl
from ..models.tree import ExtractedLinks, PageMetadata, TreeNode
from ..observability.logger import get_logger
from ..utils.time import utc_now_iso
from ..utils.tree import (
    collect_all_urls,
    count_tree_links,
    get_tree_name_for_url,
    iter_tree_bfs,
    prune_empty_children,
)
from .node_sorter import resort_tree
from .tree_walk import NodeSources, build_visited_map, insert_segments, link_segments
from .url_normalizer import UrlNormalizer

logger = get_logger(__name__)


def _rehydrate_root(tree: TreeNode, sources: NodeSources, now: str) -> None:
    if tree.url and not tree.name:
        tree.name = get_tree_name_for_url(tree.url)
    if tree.url and not tree.root_url:
        parts = urlsplit(tree.url)
        if parts.scheme and parts.netloc:
            tree.root_url = f"{parts.scheme}://{parts.netloc}"
    tree.last_updated = now
    if tree.url in sources.visited:
        tree.last_visited = sources.visited[tree.url] or None


def _fill_absent(node: TreeNode, sources: NodeSources) -> None:
    if node.metadata is None:
        node.metadata = sources.metadata_for(node.url)
    if node.cleaned_html is None:
        node.cleaned_html = sources.cleaned_html_for(node.url)
    if node.extracted_links is None:
        node.extracted_links = sources.extracted_links_for(node.url)


def _refresh_existing(node: TreeNode, sources: NodeSources) -> None:
    if node.url in sources.visited:
        node.last_visited = sources.visited[node.url] or None
    if node.metadata is None:
        node.metadata = sources.metadata_for(node.url)
    cleaned_html = sources.cleaned_html_for(node.url)
    if cleaned_html is not None:
        node.cleaned_html = cleaned_html
    if node.extracted_links is None:
        node.extracted_links = sources.extracted_links_for(node.url)


async def merge_new_links_into_tree(
    existing_tree: TreeNode,
    new_links: list[str],
    root_url: str,
    normalizer: UrlNormalizer,
    visited_urls: Optional[Iterable[VisitedUrl]] = None,
    metadata_cache: Optional[Mapping[str, PageMetadata]] = None,
    cleaned_html_cache: Optional[Mapping[str, str]] = None,
    extracted_links_map: Optional[Mapping[str, ExtractedLinks]] = None,
    include_extracted_links: bool = False,
    folder_first: bool = True,
    links_order: LinksOrder = "page",
) -> TreeNode:
    """Fold `new_links` into `existing_tree` and return it.

    Links already present (after normalization) are ignored, so resubmitting
    known links only refreshes per-node cached data. Nodes are never
    replaced: existing ones only get absent fields filled in. Nothing here
    awaits; the coroutine signature matches the callers that persist the
    result. Callers must serialize merges against the same persisted tree.
    """
    sources = NodeSources(
        visited=build_visited_map(visited_urls),
        metadata_cache=metadata_cache,
        cleaned_html_cache=cleaned_html_cache,
        extracted_links_map=extracted_links_map,
        include_extracted_links=include_extracted_links,
    )
    now = utc_now_iso()

    _rehydrate_root(existing_tree, sources, now)
    _fill_absent(existing_tree, sources)

    # Refresh derived views of an unchanged tree (e.g. cleaned HTML for the response)
    if not new_links and (
        sources.visited or metadata_cache or cleaned_html_cache or (include_extracted_links and extracted_links_map)
    ):
        for node in iter_tree_bfs(existing_tree):
            if not node.url:
                continue
            if node.url in sources.visited:
                node.last_visited = sources.visited[node.url] or node.last_visited
            _fill_absent(node, sources)

    existing_urls = collect_all_urls(existing_tree)

    links_to_merge: list[str] = []
    for link in new_links:
        try:
            if normalizer.normalize_url(link, root_url, True) not in existing_urls:
                links_to_merge.append(link)
        except Exception as e:
            logger.warning("merge_link_invalid", link=link, error=str(e))

    if not links_to_merge:
        return existing_tree

    url_map: dict[str, TreeNode] = {}
    for node in iter_tree_bfs(existing_tree):
        if node.url:
            url_map.setdefault(node.url, node)
            _refresh_existing(node, sources)

    normalized_root_url = normalizer.normalize_url(root_url, root_url, True)
    root_node = url_map.get(normalized_root_url, existing_tree)

    for link_url in links_to_merge:
        try:
            normalized_link_url = normalizer.normalize_url(link_url, root_url, True)
            if normalized_link_url in url_map:
                continue

            segments = link_segments(normalized_link_url, root_node.url, normalizer)
            if segments is None:
                logger.warning("link_skipped_unrelated_domain", link=link_url, root_url=root_node.url)
                continue

            insert_segments(
                root_node,
                segments,
                url_map=url_map,
                sources=sources,
                normalizer=normalizer,
                root_url=root_url,
                now=now,
                folder_first=folder_first,
                links_order=links_order,
            )
        except Exception as e:
            logger.error("link_merge_failed", link=link_url, error=str(e))

    prune_empty_children(existing_tree)
    resort_tree(existing_tree, folder_first, links_order)
    existing_tree.total_urls = count_tree_links(existing_tree)

    return existing_tree
