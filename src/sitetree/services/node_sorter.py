"""Ordering of a node's children (folder-first / alphabetical / page order)."""

from __future__ import annotations

from collections import deque
from urllib.parse import urlsplit

from ..domain.models import LinksOrder
from ..models.tree import TreeNode
from ..utils.validators import path_segments


def _last_segment(node: TreeNode) -> str:
    if not node.url:
        return ""
    try:
        segments = path_segments(urlsplit(node.url).path)
    except ValueError:
        return ""
    return segments[-1] if segments else ""


def _alphabetical_key(node: TreeNode) -> tuple[str, str]:
    seg = _last_segment(node)
    return (seg.casefold(), seg)


def _is_folder(node: TreeNode) -> bool:
    return bool(node.children)


def sort_node_children(
    children: list[TreeNode],
    folder_first: bool = True,
    links_order: LinksOrder = "page",
) -> list[TreeNode]:
    """Return `children` ordered for display.

    With `folder_first`, nodes that have children come before leaves (VS
    Code style). Within each group, "page" keeps discovery order and
    "alphabetical" sorts by the last path segment of the node URL.
    """
    if not children or len(children) <= 1:
        return children

    if not folder_first:
        if links_order == "alphabetical":
            return sorted(children, key=_alphabetical_key)
        return list(children)

    folders = [c for c in children if _is_folder(c)]
    leaves = [c for c in children if not _is_folder(c)]
    if links_order == "alphabetical":
        folders.sort(key=_alphabetical_key)
        leaves.sort(key=_alphabetical_key)
    return folders + leaves


def resort_tree(tree: TreeNode, folder_first: bool = True, links_order: LinksOrder = "page") -> None:
    """Re-sort the children of every node, breadth-first."""
    queue: deque[TreeNode] = deque([tree])
    while queue:
        node = queue.popleft()
        if not node.children:
            continue
        if len(node.children) > 1:
            node.children = sort_node_children(node.children, folder_first, links_order)
        queue.extend(node.children)
