"""
Store — one namespace of key -> bytes records on a backend.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from agentkv.core.errors import NotFoundError, StoreClosedError, ValidationError
from agentkv.store.iterator import StoreIterator

if TYPE_CHECKING:
    from agentkv.store.base import Backend

logger = logging.getLogger(__name__)


def _check_key(key: str) -> None:
    if not isinstance(key, str):
        raise ValidationError(f"key must be a string, got {type(key).__name__}")
    if not key:
        raise ValidationError("key is mandatory")


class Store:
    """
    A namespaced key-value map.

    Handles come from Provider.open_store(); opening the same name again
    returns this same object, so every caller sees the same records.

    Usage:
        store = await provider.open_store("dids")
        await store.put("did:example:123", b"{...}")
        doc = await store.get("did:example:123")
    """

    def __init__(self, backend: Backend, name: str, batch_size: int = 100) -> None:
        self._backend = backend
        self._name = name
        self._batch_size = batch_size
        self._closed = False

    @property
    def name(self) -> str:
        """Canonical (backend) name of this store."""
        return self._name

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise StoreClosedError(self._name)

    async def put(self, key: str, value: bytes) -> None:
        """Store value under key, replacing any previous value."""
        _check_key(key)
        if value is None:
            raise ValidationError("value is mandatory", details={"key": key})
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise ValidationError(
                f"value must be bytes, got {type(value).__name__}", details={"key": key}
            )
        if len(value) == 0:
            raise ValidationError("value is mandatory", details={"key": key})
        self._ensure_open()
        await self._backend.put(self._name, key, bytes(value))

    async def get(self, key: str) -> bytes:
        """
        Get the value stored under key.

        Raises:
            NotFoundError: If the key is absent
        """
        _check_key(key)
        self._ensure_open()
        value = await self._backend.get(self._name, key)
        if value is None:
            raise NotFoundError(key=key)
        return value

    async def delete(self, key: str) -> None:
        """Delete key. Deleting an absent key is not an error."""
        _check_key(key)
        self._ensure_open()
        await self._backend.delete(self._name, key)

    def iterator(self, start_key: str, end_key: str) -> StoreIterator:
        """
        Iterate [start_key, end_key) in ascending key order.

        Use END_KEY_SUFFIX for "rest of prefix": iterator(p, p + END_KEY_SUFFIX).
        Empty, inverted or sentinel-only ranges yield nothing.
        """
        self._ensure_open()
        return StoreIterator(
            self._backend,
            self._name,
            start_key,
            end_key,
            self._batch_size,
            is_closed=lambda: self._closed,
        )

    def close(self) -> None:
        """Mark the handle closed. Records stay in the backend."""
        if not self._closed:
            self._closed = True
            logger.debug(f"Closed store '{self._name}'")

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"Store(name={self._name!r}, {state})"
