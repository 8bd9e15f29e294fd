"""Categorize URLs that were deliberately left out of the tree."""

from __future__ import annotations

from typing import Mapping, Optional
from urllib.parse import urlsplit

from ..domain.models import SkipCategory
from ..models.tree import SkippedLinks, SkippedMedia, SkippedUrl, TreeNode
from ..observability.logger import get_logger

logger = get_logger(__name__)

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg", ".ico")
VIDEO_EXTENSIONS = (".mp4", ".webm", ".ogg", ".mov", ".avi")
DOCUMENT_EXTENSIONS = (".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx")
IMAGE_PATH_MARKERS = ("/image", "/img/")

NON_WEB_SCHEMES = ("mailto:", "tel:", "javascript:", "data:")

_REASON_MARKERS = (
    ("Media URL (image)", SkipCategory.IMAGE),
    ("Media URL (video)", SkipCategory.VIDEO),
    ("Media URL (document)", SkipCategory.DOCUMENT),
)


def _media_category(url: str, reason: str) -> Optional[SkipCategory]:
    for marker, category in _REASON_MARKERS:
        if marker in reason:
            return category

    lowered = url.lower()
    try:
        path = urlsplit(lowered).path or lowered
    except ValueError:
        path = lowered
    if path.endswith(IMAGE_EXTENSIONS) or any(m in lowered for m in IMAGE_PATH_MARKERS):
        return SkipCategory.IMAGE
    if path.endswith(VIDEO_EXTENSIONS):
        return SkipCategory.VIDEO
    if path.endswith(DOCUMENT_EXTENSIONS):
        return SkipCategory.DOCUMENT
    return None


def _is_internal(url: str, root_hostname: Optional[str]) -> bool:
    if not root_hostname:
        return False
    try:
        hostname = urlsplit(url).hostname
    except ValueError:
        hostname = None
    if not hostname:
        logger.warning("skipped_url_invalid", url=url)
        return False
    return hostname == root_hostname or hostname.endswith(f".{root_hostname}")


def categorize_skipped_urls(
    skipped_urls: Mapping[str, str],
    root_url: str,
    existing_children: Optional[list[TreeNode]] = None,
) -> SkippedLinks:
    """Split skipped URLs into internal / external / media / other buckets.

    URLs already represented as error nodes among `existing_children` are
    dropped. With an unparsable `root_url` nothing can be called internal,
    so everything that is not media or other ends up external.
    """
    errored = {child.url for child in existing_children or () if child.error}

    root_hostname: Optional[str]
    try:
        root_hostname = urlsplit(root_url).hostname
    except ValueError:
        root_hostname = None
    if not root_hostname:
        logger.error("skipped_urls_invalid_root_url", root_url=root_url)

    buckets: dict[SkipCategory, list[SkippedUrl]] = {category: [] for category in SkipCategory}

    for url, reason in skipped_urls.items():
        if not url or url in errored:
            continue
        reason = reason or ""
        item = SkippedUrl(url=url, reason=reason)

        media = _media_category(url, reason)
        if media is not None:
            buckets[media].append(item)
        elif url.lower().startswith(NON_WEB_SCHEMES):
            buckets[SkipCategory.OTHER].append(item)
        elif _is_internal(url, root_hostname):
            buckets[SkipCategory.INTERNAL].append(item)
        else:
            buckets[SkipCategory.EXTERNAL].append(item)

    media_bucket = None
    if buckets[SkipCategory.IMAGE] or buckets[SkipCategory.VIDEO] or buckets[SkipCategory.DOCUMENT]:
        media_bucket = SkippedMedia(
            images=buckets[SkipCategory.IMAGE] or None,
            videos=buckets[SkipCategory.VIDEO] or None,
            documents=buckets[SkipCategory.DOCUMENT] or None,
        )

    return SkippedLinks(
        internal=buckets[SkipCategory.INTERNAL] or None,
        external=buckets[SkipCategory.EXTERNAL] or None,
        media=media_bucket,
        other=buckets[SkipCategory.OTHER] or None,
    )
