"""Post-processing passes over a finished tree."""

from __future__ import annotations

from typing import Optional

from ..domain.models import VisitedUrl
from ..models.requests import LinkExtractionOptions
from ..models.tree import ExtractedLinks, TreeNode
from ..utils.tree import iter_tree_bfs


def _has_links(links: Optional[ExtractedLinks]) -> bool:
    return links is not None and bool(links.internal or links.external or links.media)


def process_extracted_links_in_tree(
    tree: Optional[TreeNode],
    include_extracted_links: bool,
    link_options: Optional[LinkExtractionOptions] = None,
) -> Optional[TreeNode]:
    """Narrow each node's extracted links to what the caller asked for.

    Mutates and returns `tree`. Internal links are always kept; external and
    media only when the matching option is enabled.
    """
    if tree is None:
        return None

    for node in iter_tree_bfs(tree):
        if not _has_links(node.extracted_links):
            continue
        if not include_extracted_links:
            node.extracted_links = None
        elif link_options is not None:
            links = node.extracted_links
            filtered = ExtractedLinks(
                internal=links.internal or None,
                external=(links.external or None) if link_options.include_external else None,
                media=links.media if link_options.include_media else None,
            )
            node.extracted_links = filtered if _has_links(filtered) else None

    return tree


def extract_visited_urls_from_tree(tree: Optional[TreeNode]) -> set[VisitedUrl]:
    """Every node with a last-visit timestamp, as `VisitedUrl` entries."""
    return {
        VisitedUrl(url=node.url, last_visited=node.last_visited)
        for node in iter_tree_bfs(tree)
        if node.url and node.last_visited
    }
