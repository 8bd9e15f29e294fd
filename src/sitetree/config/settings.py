"""Configuration management using Pydantic Settings."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class TreeSettings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Service
    service_name: str = "sitetree-service"

    # FastAPI (internal-only)
    http_enable: bool = True
    http_host: str = "127.0.0.1"
    http_port: int = 8000
    http_access_log: bool = False

    # Tree ordering defaults (used when a request does not specify them)
    default_folder_first: bool = True
    default_links_order: str = "page"  # "page" | "alphabetical"

    # Visited-set and kin caps
    max_visited_urls: int = 1000
    max_kin_limit: int = 30

    # Persisted trees older than this are rebuilt instead of merged into
    tree_cache_ttl_seconds: int = 86400

    # Hosts where the first path segments name the "site" (org/repo)
    platform_urls: list[str] = [
        "https://github.com",
        "https://www.github.com",
        "https://gist.github.com",
        "https://www.gist.github.com",
        "https://gitlab.com",
        "https://www.gitlab.com",
        "https://bitbucket.org",
        "https://www.bitbucket.org",
        "https://dev.azure.com",
        "https://www.dev.azure.com",
        "https://gitea.com",
        "https://www.gitea.com",
        "https://sourceforge.net",
        "https://www.sourceforge.net",
        "https://code.google.com",
        "https://www.notion.so",
        "https://notion.so",
        "https://atlassian.net",
    ]

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # "json" | "console"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def validate(self) -> None:
        if self.http_port <= 0:
            raise ValueError("http_port must be > 0")
        if self.default_links_order not in ("page", "alphabetical"):
            raise ValueError("default_links_order must be 'page' or 'alphabetical'")
        if self.max_visited_urls <= 0:
            raise ValueError("max_visited_urls must be > 0")
        if self.max_kin_limit <= 0:
            raise ValueError("max_kin_limit must be > 0")
        if self.tree_cache_ttl_seconds <= 0:
            raise ValueError("tree_cache_ttl_seconds must be > 0")
        if self.log_format not in ("json", "console"):
            raise ValueError("log_format must be 'json' or 'console'")


_settings: TreeSettings | None = None


def get_settings() -> TreeSettings:
    global _settings
    if _settings is None:
        _settings = TreeSettings()
        _settings.validate()
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None
