"""Framework-agnostic domain models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal, Optional


LinksOrder = Literal["page", "alphabetical"]


class ErrorCode(str, Enum):
    INVALID_URL = "INVALID_URL"
    STORAGE_ERROR = "STORAGE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class SkipCategory(str, Enum):
    INTERNAL = "internal"
    EXTERNAL = "external"
    IMAGE = "images"
    VIDEO = "videos"
    DOCUMENT = "documents"
    OTHER = "other"


@dataclass(frozen=True)
class VisitedUrl:
    url: str
    last_visited: Optional[str] = None


@dataclass(frozen=True)
class StoredTreeMetadata:
    timestamp: str
    title: Optional[str] = None
    description: Optional[str] = None
