"""Path-segment decomposition and node placement shared by build and merge.

A link is turned into a list of segments relative to the tree root:
subdomain labels that differ from the root host become virtual leading
segments (one folder per label, outermost label first), followed by the
link's non-empty path segments. Walking those segments from the root
creates every missing intermediate node exactly once, keyed by its
normalized URL.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, NamedTuple, Optional
from urllib.parse import urlsplit

from ..domain.errors import InvalidURLError
from ..domain.models import LinksOrder, VisitedUrl
from ..models.tree import ExtractedLinks, PageMetadata, TreeNode
from ..utils.validators import path_segments
from .node_sorter import sort_node_children
from .url_normalizer import UrlNormalizer


class PathSegment(NamedTuple):
    name: str
    # Set for subdomain segments, whose URL is a host rather than a path
    url: Optional[str] = None


def build_visited_map(visited_urls: Optional[Iterable[VisitedUrl]]) -> dict[str, Optional[str]]:
    visited: dict[str, Optional[str]] = {}
    for item in visited_urls or ():
        visited[item.url] = item.last_visited or None
    return visited


@dataclass
class NodeSources:
    """Per-URL data attached to nodes when they are created."""

    visited: dict[str, Optional[str]]
    metadata_cache: Optional[Mapping[str, PageMetadata]] = None
    cleaned_html_cache: Optional[Mapping[str, str]] = None
    extracted_links_map: Optional[Mapping[str, ExtractedLinks]] = None
    include_extracted_links: bool = False

    def metadata_for(self, url: str) -> Optional[PageMetadata]:
        if self.metadata_cache and url in self.metadata_cache:
            return self.metadata_cache[url] or None
        return None

    def cleaned_html_for(self, url: str) -> Optional[str]:
        if self.cleaned_html_cache and url in self.cleaned_html_cache:
            return self.cleaned_html_cache[url] or None
        return None

    def extracted_links_for(self, url: str) -> Optional[ExtractedLinks]:
        if self.include_extracted_links and self.extracted_links_map and url in self.extracted_links_map:
            return self.extracted_links_map[url]
        return None

    def new_node(self, url: str, name: str, now: str) -> TreeNode:
        return TreeNode(
            name=name,
            url=url,
            last_visited=self.visited.get(url) or None,
            last_updated=now,
            metadata=self.metadata_for(url),
            cleaned_html=self.cleaned_html_for(url),
            extracted_links=self.extracted_links_for(url),
            children=[],
        )


def link_segments(
    link_url: str,
    root_url: str,
    normalizer: UrlNormalizer,
) -> Optional[list[PathSegment]]:
    """Segments of `link_url` relative to `root_url`.

    Both URLs must already be normalized. Returns None when the link does not
    belong under the root (unrelated domain, parent domain of the root host,
    or a same-host path outside the root path).

    Raises:
        InvalidURLError: if either URL is not an absolute http(s) URL.
    """
    link = urlsplit(link_url)
    root = urlsplit(root_url)
    if link.scheme not in ("http", "https") or not link.hostname:
        raise InvalidURLError("link is not an absolute http(s) url", detail=link_url)
    if not root.hostname:
        raise InvalidURLError("root url has no hostname", detail=root_url)

    segments: list[PathSegment] = []
    link_path = path_segments(link.path)

    if link.hostname != root.hostname:
        root_domain = normalizer.extract_root_domain(root.hostname)
        if not link.hostname.endswith(f".{root_domain}"):
            return None

        link_labels = link.hostname.split(".")
        root_labels = root.hostname.split(".")
        common = 0
        while (
            common < min(len(link_labels), len(root_labels))
            and link_labels[-1 - common] == root_labels[-1 - common]
        ):
            common += 1
        differing = len(link_labels) - common
        if differing <= 0:
            return None

        for i in range(differing - 1, -1, -1):
            host = link.netloc if i == 0 else ".".join(link_labels[i:])
            url = normalizer.normalize_url(f"{link.scheme}://{host}", root_url, True)
            segments.append(PathSegment(name=link_labels[i], url=url))
    else:
        root_path = path_segments(root.path)
        if root_path:
            if link_path[: len(root_path)] != root_path:
                return None
            link_path = link_path[len(root_path) :]

    segments.extend(PathSegment(name=s) for s in link_path)
    return segments


def insert_segments(
    root_node: TreeNode,
    segments: list[PathSegment],
    *,
    url_map: dict[str, TreeNode],
    sources: NodeSources,
    normalizer: UrlNormalizer,
    root_url: str,
    now: str,
    folder_first: bool = True,
    links_order: LinksOrder = "page",
) -> TreeNode:
    """Walk `segments` from `root_node`, creating missing nodes. Returns the deepest node."""
    current = root_node
    current_url = root_node.url

    for segment in segments:
        if segment.url is not None:
            next_url = segment.url
        else:
            separator = "" if current_url.endswith("/") else "/"
            next_url = normalizer.normalize_url(f"{current_url}{separator}{segment.name}", root_url, True)

        next_node = url_map.get(next_url)
        if next_node is None:
            next_node = sources.new_node(next_url, segment.name, now)
            url_map[next_url] = next_node

            if current.children is None:
                current.children = []
            current.children.append(next_node)
            if len(current.children) > 1:
                current.children = sort_node_children(current.children, folder_first, links_order)

        current = next_node
        current_url = next_node.url

    return current
