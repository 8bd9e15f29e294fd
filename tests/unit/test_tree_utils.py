from __future__ import annotations

from sitetree.models.tree import TreeNode
from sitetree.utils.tree import (
    clean_empty_values,
    collect_all_urls,
    count_tree_links,
    get_tree_name_for_url,
    iter_tree_bfs,
    prune_empty_children,
)


def _tree() -> TreeNode:
    return TreeNode(
        url="r",
        children=[
            TreeNode(url="a", children=[TreeNode(url="a1", children=[])]),
            TreeNode(url="b", children=[]),
        ],
    )


def test_iter_tree_bfs_is_breadth_first() -> None:
    assert [n.url for n in iter_tree_bfs(_tree())] == ["r", "a", "b", "a1"]
    assert list(iter_tree_bfs(None)) == []


def test_count_and_collect() -> None:
    tree = _tree()
    assert count_tree_links(tree) == 4
    assert collect_all_urls(tree) == {"r", "a", "b", "a1"}


def test_prune_empty_children() -> None:
    tree = _tree()
    prune_empty_children(tree)
    a, b = tree.children
    assert b.children is None
    assert a.children[0].children is None
    assert len(a.children) == 1


def test_prune_handles_deep_trees() -> None:
    root = TreeNode(url="0", children=[])
    node = root
    for i in range(1, 3000):
        child = TreeNode(url=str(i), children=[])
        node.children.append(child)
        node = child
    prune_empty_children(root)
    assert node.children is None
    assert count_tree_links(root) == 3000


def test_tree_name_for_platform_and_regular_hosts() -> None:
    assert get_tree_name_for_url("https://docs.example.com/a/b") == "docs.example.com"
    assert get_tree_name_for_url("https://github.com/org/repo/tree/main") == "github.com/org/repo"
    assert get_tree_name_for_url("https://github.com/org") == "github.com/org"
    assert get_tree_name_for_url("https://git.internal/org/repo", ["https://git.internal"]) == "git.internal/org/repo"


def test_clean_empty_values() -> None:
    data = {"a": "", "b": [], "c": {"d": None, "e": "  "}, "f": 0, "g": False, "h": ["x", "", {}]}
    assert clean_empty_values(data) == {"f": 0, "g": False, "h": ["x"]}
    assert clean_empty_values({"a": None}) is None
