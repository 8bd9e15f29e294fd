"""Build a site tree from a flat list of internal URLs."""

from __future__ import annotations

from typing import Iterable, Mapping, Optional

from ..domain.models import LinksOrder, VisitedUrl
from ..models.tree import ExtractedLinks, PageMetadata, TreeNode
from ..observability.logger import get_logger
from ..utils.time import utc_now_iso
from ..utils.tree import count_tree_links, get_tree_name_for_url, prune_empty_children
from .node_sorter import resort_tree
from .tree_walk import NodeSources, build_visited_map, insert_segments, link_segments
from .url_normalizer import UrlNormalizer

logger = get_logger(__name__)


def build_links_tree(
    internal_links: Optional[list[str]],
    root_url: str,
    normalizer: UrlNormalizer,
    visited_urls: Optional[Iterable[VisitedUrl]] = None,
    metadata_cache: Optional[Mapping[str, PageMetadata]] = None,
    extracted_links_map: Optional[Mapping[str, ExtractedLinks]] = None,
    include_extracted_links: bool = False,
    folder_first: bool = True,
    links_order: LinksOrder = "page",
) -> TreeNode:
    """Build a hierarchical tree mirroring the path structure of `internal_links`.

    Args:
        internal_links: Discovered internal URLs, in page order.
        root_url: Absolute root of the site (e.g. "https://nextjs.org").
        normalizer: URL normalizer used for every node key.
        visited_urls: Visited URLs with their last-visit timestamps.
        metadata_cache: Page metadata keyed by normalized URL.
        extracted_links_map: Links extracted from each page, keyed by normalized URL.
        include_extracted_links: Attach `extracted_links_map` entries to nodes.
        folder_first: Put nodes with children before leaves.
        links_order: "page" (discovery order) or "alphabetical".

    Returns:
        The root node. Links that fail to parse or belong to another domain
        are logged and left out; construction never aborts.
    """
    sources = NodeSources(
        visited=build_visited_map(visited_urls),
        metadata_cache=metadata_cache,
        extracted_links_map=extracted_links_map,
        include_extracted_links=include_extracted_links,
    )
    normalized_root_url = normalizer.normalize_url(root_url, root_url, True)
    now = utc_now_iso()

    root_node = TreeNode(
        total_urls=1,
        name=get_tree_name_for_url(normalized_root_url),
        url=normalized_root_url,
        root_url=normalized_root_url,
        last_visited=sources.visited.get(normalized_root_url) or None,
        last_updated=now,
        metadata=sources.metadata_for(normalized_root_url),
        extracted_links=sources.extracted_links_for(normalized_root_url),
        children=[],
    )

    if not internal_links:
        prune_empty_children(root_node)
        return root_node

    url_map: dict[str, TreeNode] = {root_node.url: root_node}

    for link_url in internal_links:
        try:
            if link_url in url_map:
                continue
            normalized_link_url = normalizer.normalize_url(link_url, root_url, True)
            if normalized_link_url in url_map:
                continue

            segments = link_segments(normalized_link_url, normalized_root_url, normalizer)
            if segments is None:
                logger.warning("link_skipped_unrelated_domain", link=link_url, root_url=normalized_root_url)
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
            logger.error("link_processing_failed", link=link_url, error=str(e))

    prune_empty_children(root_node)
    # Incremental sorts only see a parent's children at insertion time
    resort_tree(root_node, folder_first, links_order)
    root_node.total_urls = count_tree_links(root_node)

    return root_node
