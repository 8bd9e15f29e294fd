"""Tree models (the persisted / returned site topology).

Field names are snake_case in Python and camelCase on the wire, so a tree
round-trips through `model_dump(by_alias=True, exclude_none=True)` and
`TreeNode.model_validate(...)` unchanged.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..utils.time import utc_now_iso


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class MediaLinks(_CamelModel):
    images: Optional[List[str]] = None
    videos: Optional[List[str]] = None
    documents: Optional[List[str]] = None


class ExtractedLinks(_CamelModel):
    internal: Optional[List[str]] = None
    external: Optional[List[str]] = None
    media: Optional[MediaLinks] = None


class SkippedUrl(_CamelModel):
    url: str
    reason: str


class SkippedMedia(_CamelModel):
    images: Optional[List[SkippedUrl]] = None
    videos: Optional[List[SkippedUrl]] = None
    documents: Optional[List[SkippedUrl]] = None


class SkippedLinks(_CamelModel):
    internal: Optional[List[SkippedUrl]] = None
    external: Optional[List[SkippedUrl]] = None
    media: Optional[SkippedMedia] = None
    other: Optional[List[SkippedUrl]] = None


PageMetadata = Dict[str, Any]


class TreeNode(_CamelModel):
    """One page (or virtual folder) of the site tree, keyed by normalized URL."""

    url: str
    root_url: Optional[str] = None
    name: Optional[str] = None
    total_urls: Optional[int] = None
    execution_time: Optional[str] = None
    # Stored trees written before every node carried it get "now" on load
    last_updated: str = Field(default_factory=utc_now_iso)
    last_visited: Optional[str] = None
    children: Optional[List[TreeNode]] = None
    error: Optional[str] = None
    metadata: Optional[PageMetadata] = None
    cleaned_html: Optional[str] = None
    extracted_links: Optional[ExtractedLinks] = None
    skipped_urls: Optional[SkippedLinks] = None
