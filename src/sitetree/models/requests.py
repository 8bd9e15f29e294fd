"""Request/option models for tree construction."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..domain.models import LinksOrder
from .tree import ExtractedLinks


class LinkExtractionOptions(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    include_external: bool = False
    include_media: bool = False
    exclude_patterns: List[str] = Field(default_factory=list)


class VisitedUrlIn(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    url: str
    last_visited: Optional[str] = None


class LinksTreeRequest(BaseModel):
    """Discovered links for one target URL, plus whatever the crawl already cached."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    url: str
    links: List[str] = Field(default_factory=list)
    visited_urls: List[VisitedUrlIn] = Field(default_factory=list)

    # Per-URL caches produced upstream, keyed by normalized URL
    metadata_cache: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    cleaned_html_cache: Dict[str, str] = Field(default_factory=dict)
    extracted_links_map: Dict[str, ExtractedLinks] = Field(default_factory=dict)
    skipped_urls: Dict[str, str] = Field(default_factory=dict)

    # Output switches
    metadata: bool = True
    cleaned_html: bool = False
    extracted_links: bool = True
    subdomain_as_root_url: bool = True

    # Tree ordering; None falls back to settings
    folder_first: Optional[bool] = None
    links_order: Optional[LinksOrder] = None

    links_options: LinkExtractionOptions = Field(default_factory=LinkExtractionOptions)

    title: Optional[str] = None
    description: Optional[str] = None

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        v = v.strip()
        if not (v.startswith("http://") or v.startswith("https://")):
            raise ValueError("url must start with http:// or https://")
        return v
