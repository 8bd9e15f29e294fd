"""Tree traversal helpers shared by the builder, merger and post-processing."""

from __future__ import annotations

from collections import deque
from typing import Any, Iterable, Iterator, Optional
from urllib.parse import urlsplit

from ..config.settings import get_settings
from ..models.tree import TreeNode
from .validators import path_segments


def iter_tree_bfs(tree: TreeNode | None) -> Iterator[TreeNode]:
    """Yield every node breadth-first, root first."""
    if tree is None:
        return
    queue: deque[TreeNode] = deque([tree])
    while queue:
        node = queue.popleft()
        yield node
        if node.children:
            queue.extend(node.children)


def count_tree_links(tree: TreeNode | None) -> int:
    """Number of nodes in the tree, root included."""
    return sum(1 for _ in iter_tree_bfs(tree))


def collect_all_urls(tree: TreeNode | None) -> set[str]:
    return {node.url for node in iter_tree_bfs(tree) if node.url}


def prune_empty_children(tree: TreeNode) -> None:
    """Replace every empty `children` list with None."""
    stack = [tree]
    while stack:
        node = stack.pop()
        if node.children is None:
            continue
        if not node.children:
            node.children = None
            continue
        stack.extend(node.children)


def get_tree_name_for_url(url: str, platform_urls: Optional[Iterable[str]] = None) -> str:
    """Display name for a tree root.

    Code-hosting platforms (github.com etc.) host many unrelated sites, so
    their trees are named `host/org/repo` instead of just the host.
    """
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    host = parts.hostname
    if not host:
        return url

    platforms = get_settings().platform_urls if platform_urls is None else platform_urls
    if f"{parts.scheme}://{host}" in set(platforms):
        segments = path_segments(parts.path)
        if len(segments) >= 2:
            return f"{host}/{segments[0]}/{segments[1]}"
        if len(segments) == 1:
            return f"{host}/{segments[0]}"
    return host


def clean_empty_values(data: Any) -> Any:
    """Recursively drop None, blank strings, empty lists and empty dicts.

    Returns None when nothing is left.
    """
    if data is None:
        return None
    if isinstance(data, str):
        return data if data.strip() else None
    if isinstance(data, (list, tuple)):
        cleaned = [c for c in (clean_empty_values(item) for item in data) if c is not None]
        return cleaned or None
    if isinstance(data, dict):
        out = {}
        for key, value in data.items():
            cleaned_value = clean_empty_values(value)
            if cleaned_value is not None:
                out[key] = cleaned_value
        return out or None
    return data
