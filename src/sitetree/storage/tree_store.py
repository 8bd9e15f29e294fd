"""Tree persistence keyed by root URL.

`InMemoryKVStore` mimics a key-value store with per-entry metadata and
expiration; `TreeRepository` (de)serializes trees on top of it.
"""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass
from typing import Callable, Optional

from pydantic import ValidationError

from ..domain.errors import StorageError
from ..domain.models import StoredTreeMetadata
from ..models.tree import TreeNode
from ..observability.logger import get_logger

logger = get_logger(__name__)


@dataclass
class _Entry:
    value: str
    metadata: dict
    expires_at: Optional[float]


class InMemoryKVStore:
    """Process-local key-value store with per-key TTL."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, _Entry] = {}

    async def get_with_metadata(self, key: str) -> tuple[Optional[str], Optional[dict]]:
        entry = self._entries.get(key)
        if entry is None:
            return None, None
        if entry.expires_at is not None and entry.expires_at <= self._clock():
            del self._entries[key]
            return None, None
        return entry.value, dict(entry.metadata)

    async def put(
        self,
        key: str,
        value: str,
        *,
        metadata: Optional[dict] = None,
        expiration_ttl: Optional[int] = None,
    ) -> None:
        expires_at = self._clock() + expiration_ttl if expiration_ttl else None
        self._entries[key] = _Entry(value=value, metadata=dict(metadata or {}), expires_at=expires_at)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)


class TreeRepository:
    """Repository for persisted site trees."""

    def __init__(self, store: InMemoryKVStore, expiration_ttl: int):
        self._store = store
        self._expiration_ttl = expiration_ttl

    async def load_tree(self, key: str) -> Optional[tuple[TreeNode, StoredTreeMetadata]]:
        value, metadata = await self._store.get_with_metadata(key)
        if value is None:
            return None
        try:
            tree = TreeNode.model_validate_json(value)
        except ValidationError as e:
            raise StorageError("stored_tree_invalid", detail=str(e)) from e
        meta = metadata or {}
        return tree, StoredTreeMetadata(
            timestamp=str(meta.get("timestamp") or ""),
            title=meta.get("title"),
            description=meta.get("description"),
        )

    async def save_tree(self, key: str, tree: TreeNode, metadata: StoredTreeMetadata) -> None:
        # Cleaned HTML is response-only; it is never persisted
        if _has_cleaned_html(tree):
            value = _strip_cleaned_html(tree)
        else:
            value = tree.model_dump_json(by_alias=True, exclude_none=True)
        try:
            await self._store.put(
                key,
                value,
                metadata={k: v for k, v in asdict(metadata).items() if v is not None},
                expiration_ttl=self._expiration_ttl,
            )
        except Exception as e:
            raise StorageError("tree_save_failed", detail=str(e)) from e
        logger.info("tree_saved", key=key, total_urls=tree.total_urls)

    async def delete_tree(self, key: str) -> None:
        await self._store.delete(key)


def _has_cleaned_html(tree: TreeNode) -> bool:
    stack = [tree]
    while stack:
        node = stack.pop()
        if node.cleaned_html:
            return True
        stack.extend(node.children or ())
    return False


def _strip_cleaned_html(tree: TreeNode) -> str:
    copy = tree.model_copy(deep=True)
    stack = [copy]
    while stack:
        node = stack.pop()
        node.cleaned_html = None
        stack.extend(node.children or ())
    return copy.model_dump_json(by_alias=True, exclude_none=True)
