from __future__ import annotations

import pytest

from sitetree.config.settings import TreeSettings, get_settings, reset_settings


def test_defaults_are_valid() -> None:
    settings = TreeSettings()
    settings.validate()
    assert settings.default_links_order == "page"
    assert settings.max_visited_urls == 1000
    assert "https://github.com" in settings.platform_urls


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DEFAULT_LINKS_ORDER", "alphabetical")
    monkeypatch.setenv("TREE_CACHE_TTL_SECONDS", "60")
    reset_settings()
    try:
        settings = get_settings()
        assert settings.default_links_order == "alphabetical"
        assert settings.tree_cache_ttl_seconds == 60
    finally:
        reset_settings()


def test_invalid_values_are_rejected() -> None:
    with pytest.raises(ValueError):
        TreeSettings(default_links_order="random").validate()
    with pytest.raises(ValueError):
        TreeSettings(max_visited_urls=0).validate()
