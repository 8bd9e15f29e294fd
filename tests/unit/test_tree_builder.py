from __future__ import annotations

from sitetree.domain.models import VisitedUrl
from sitetree.models.tree import ExtractedLinks, TreeNode
from sitetree.services.tree_builder import build_links_tree
from sitetree.services.tree_postprocess import extract_visited_urls_from_tree
from sitetree.services.url_normalizer import LinkNormalizer
from sitetree.utils.tree import collect_all_urls, count_tree_links, iter_tree_bfs


def _child(node: TreeNode, name: str) -> TreeNode:
    for c in node.children or []:
        if c.name == name:
            return c
    raise AssertionError(f"{name!r} not found under {node.url}")


def _assert_folder_first(tree: TreeNode) -> None:
    for node in iter_tree_bfs(tree):
        kinds = [bool(c.children) for c in node.children or []]
        assert kinds == sorted(kinds, reverse=True), node.url


def test_builds_nested_tree_folder_first() -> None:
    tree = build_links_tree(
        ["https://example.com/a", "https://example.com/a/b", "https://example.com/c"],
        "https://example.com",
        LinkNormalizer(),
    )

    assert tree.url == "https://example.com"
    assert tree.name == "example.com"
    assert tree.root_url == "https://example.com"
    assert [c.name for c in tree.children] == ["a", "c"]
    assert [c.name for c in _child(tree, "a").children] == ["b"]
    assert _child(tree, "c").children is None
    assert tree.total_urls == 4


def test_folder_first_reorders_late_folders() -> None:
    links = [
        "https://example.com/leaf",
        "https://example.com/docs",
        "https://example.com/docs/intro",
        "https://example.com/blog",
        "https://example.com/blog/post-1",
    ]
    tree = build_links_tree(links, "https://example.com", LinkNormalizer())

    assert [c.name for c in tree.children] == ["docs", "blog", "leaf"]
    _assert_folder_first(tree)


def test_alphabetical_order_without_folder_first() -> None:
    links = ["https://example.com/zeta", "https://example.com/alpha/x", "https://example.com/beta"]
    tree = build_links_tree(
        links, "https://example.com", LinkNormalizer(), folder_first=False, links_order="alphabetical"
    )
    assert [c.name for c in tree.children] == ["alpha", "beta", "zeta"]


def test_intermediate_nodes_are_created_once() -> None:
    tree = build_links_tree(
        ["https://example.com/a/b/c", "https://example.com/a/b/d"],
        "https://example.com",
        LinkNormalizer(),
    )
    a = _child(tree, "a")
    b = _child(a, "b")
    assert b.url == "https://example.com/a/b"
    assert [c.name for c in b.children] == ["c", "d"]
    assert tree.total_urls == 5


def test_empty_links_return_root_only() -> None:
    tree = build_links_tree(None, "https://example.com/", LinkNormalizer())
    assert tree.url == "https://example.com"
    assert tree.children is None
    assert tree.total_urls == 1


def test_duplicates_and_trailing_slashes_collapse() -> None:
    links = [
        "https://example.com/a/",
        "https://example.com/a",
        "https://example.com/a#section",
        "https://example.com//a//b/",
    ]
    tree = build_links_tree(links, "https://example.com", LinkNormalizer())
    assert collect_all_urls(tree) == {"https://example.com", "https://example.com/a", "https://example.com/a/b"}
    assert tree.total_urls == 3


def test_subdomain_becomes_virtual_folder() -> None:
    tree = build_links_tree(
        ["https://blog.example.com/posts/hello"],
        "https://example.com",
        LinkNormalizer(),
    )
    blog = _child(tree, "blog")
    assert blog.url == "https://blog.example.com"
    posts = _child(blog, "posts")
    assert posts.url == "https://blog.example.com/posts"
    assert _child(posts, "hello").url == "https://blog.example.com/posts/hello"
    assert tree.total_urls == 4


def test_multi_level_subdomain_nests_labels_outwards() -> None:
    tree = build_links_tree(
        ["https://api.docs.example.com/v1", "https://docs.example.com/guide"],
        "https://example.com",
        LinkNormalizer(),
    )
    docs = _child(tree, "docs")
    assert docs.url == "https://docs.example.com"
    api = _child(docs, "api")
    assert api.url == "https://api.docs.example.com"
    assert _child(api, "v1").url == "https://api.docs.example.com/v1"
    assert _child(docs, "guide").url == "https://docs.example.com/guide"
    assert count_tree_links(tree) == tree.total_urls == 5


def test_unrelated_domain_and_bad_links_are_skipped() -> None:
    links = [
        "https://other.org/page",
        "mailto:someone@example.com",
        "https://example.com/ok",
        "http://[::1",
    ]
    tree = build_links_tree(links, "https://example.com", LinkNormalizer())
    assert collect_all_urls(tree) == {"https://example.com", "https://example.com/ok"}
    assert tree.total_urls == 2


def test_root_with_path_only_takes_links_below_it() -> None:
    tree = build_links_tree(
        ["https://github.com/org/repo", "https://github.com/org/repo/issues", "https://github.com/other"],
        "https://github.com/org",
        LinkNormalizer(),
    )
    assert tree.name == "github.com/org"
    repo = _child(tree, "repo")
    assert repo.url == "https://github.com/org/repo"
    assert _child(repo, "issues").url == "https://github.com/org/repo/issues"
    assert "https://github.com/other" not in collect_all_urls(tree)


def test_cached_data_is_attached_to_nodes() -> None:
    tree = build_links_tree(
        ["https://example.com/a"],
        "https://example.com",
        LinkNormalizer(),
        visited_urls={VisitedUrl("https://example.com/a", "2024-01-15T10:30:00.000Z")},
        metadata_cache={
            "https://example.com": {"title": "Home"},
            "https://example.com/a": {"title": "A"},
        },
        extracted_links_map={"https://example.com/a": ExtractedLinks(internal=["https://example.com"])},
        include_extracted_links=True,
    )
    a = _child(tree, "a")
    assert tree.metadata == {"title": "Home"}
    assert a.metadata == {"title": "A"}
    assert a.last_visited == "2024-01-15T10:30:00.000Z"
    assert a.extracted_links.internal == ["https://example.com"]
    assert a.last_updated


def test_extracted_links_are_not_attached_unless_requested() -> None:
    tree = build_links_tree(
        ["https://example.com/a"],
        "https://example.com",
        LinkNormalizer(),
        extracted_links_map={"https://example.com/a": ExtractedLinks(internal=["https://example.com"])},
    )
    assert _child(tree, "a").extracted_links is None


def test_build_is_idempotent() -> None:
    links = [
        "https://example.com/docs/a",
        "https://example.com/docs/b",
        "https://shop.example.com/cart",
        "https://example.com/about",
    ]
    first = build_links_tree(links, "https://example.com", LinkNormalizer())
    second = build_links_tree(links, "https://example.com", LinkNormalizer())
    assert first.total_urls == second.total_urls
    assert collect_all_urls(first) == collect_all_urls(second)


def test_visited_round_trip_keeps_only_present_urls() -> None:
    visited = {
        VisitedUrl("https://example.com", "2024-01-01T00:00:00.000Z"),
        VisitedUrl("https://example.com/a", "2024-01-02T00:00:00.000Z"),
        VisitedUrl("https://example.com/missing", "2024-01-03T00:00:00.000Z"),
    }
    tree = build_links_tree(["https://example.com/a"], "https://example.com", LinkNormalizer(), visited_urls=visited)

    assert extract_visited_urls_from_tree(tree) == {
        VisitedUrl("https://example.com", "2024-01-01T00:00:00.000Z"),
        VisitedUrl("https://example.com/a", "2024-01-02T00:00:00.000Z"),
    }


def test_no_empty_children_lists_after_build() -> None:
    tree = build_links_tree(
        ["https://example.com/a/b", "https://example.com/c"], "https://example.com", LinkNormalizer()
    )
    for node in iter_tree_bfs(tree):
        assert node.children is None or len(node.children) > 0


def test_multi_part_suffix_root_rejects_sibling_registrable_domains() -> None:
    tree = build_links_tree(
        ["https://other.co.uk/x", "https://blog.example.co.uk/post", "https://example.co.uk/about"],
        "https://example.co.uk",
        LinkNormalizer(),
    )
    assert collect_all_urls(tree) == {
        "https://example.co.uk",
        "https://blog.example.co.uk",
        "https://blog.example.co.uk/post",
        "https://example.co.uk/about",
    }


def test_ip_root_does_not_adopt_other_ips() -> None:
    tree = build_links_tree(
        ["http://10.0.0.1/x", "http://192.168.0.1/y"],
        "http://192.168.0.1",
        LinkNormalizer(),
    )
    assert collect_all_urls(tree) == {"http://192.168.0.1", "http://192.168.0.1/y"}
