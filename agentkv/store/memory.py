"""
In-memory backend — for testing.

Dict-based storage. Data lost when process exits or the backend is closed.
"""

from __future__ import annotations

from typing import AsyncIterator

from agentkv.store.base import Backend


class InMemoryBackend(Backend):
    """
    In-memory key-value backend.

    Usage:
        provider = Provider(InMemoryBackend())
        await provider.initialize()
    """

    kind = "memory"

    def __init__(self) -> None:
        self._namespaces: dict[str, dict[str, bytes]] = {}

    async def ping(self) -> None:
        return None

    async def ensure_namespace(self, name: str) -> None:
        self._namespaces.setdefault(name, {})

    async def get(self, namespace: str, key: str) -> bytes | None:
        return self._namespaces.get(namespace, {}).get(key)

    async def put(self, namespace: str, key: str, value: bytes) -> None:
        self._namespaces.setdefault(namespace, {})[key] = value

    async def delete(self, namespace: str, key: str) -> bool:
        data = self._namespaces.get(namespace, {})
        if key in data:
            del data[key]
            return True
        return False

    async def scan(
        self,
        namespace: str,
        start_key: str,
        end_key: str,
        batch_size: int = 100,
    ) -> AsyncIterator[tuple[str, bytes]]:
        data = self._namespaces.get(namespace, {})
        # Snapshot so puts during iteration don't break the dict walk
        items = sorted(
            (k, v) for k, v in data.items() if start_key <= k < end_key
        )
        for item in items:
            yield item

    async def close(self) -> None:
        self._namespaces.clear()
