"""
Backend interface.

A backend holds named namespaces of key -> bytes records and knows how to
reach its physical storage. Stores and iterators sit on top of it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AsyncIterator


class Backend(ABC):
    """
    Abstract base class for storage backends.

    Keys are strings, values are bytes (serialization is caller's responsibility).
    Every record lives in a namespace; the same key in two namespaces is two records.

    Implementations:
        CouchDBBackend — document database over HTTP
        SQLiteBackend — file-based
        InMemoryBackend — for testing
    """

    #: Short backend name used in logs
    kind: str = "backend"

    @abstractmethod
    async def ping(self) -> None:
        """Check connectivity. Raises ConnectionError_ if unreachable."""
        ...

    @abstractmethod
    async def ensure_namespace(self, name: str) -> None:
        """Create the namespace if it doesn't exist yet."""
        ...

    @abstractmethod
    async def get(self, namespace: str, key: str) -> bytes | None:
        """Get a value by key. Returns None if not found."""
        ...

    @abstractmethod
    async def put(self, namespace: str, key: str, value: bytes) -> None:
        """Set a value. Overwrites if exists."""
        ...

    @abstractmethod
    async def delete(self, namespace: str, key: str) -> bool:
        """Delete a key. Returns True if existed."""
        ...

    @abstractmethod
    def scan(
        self,
        namespace: str,
        start_key: str,
        end_key: str,
        batch_size: int = 100,
    ) -> AsyncIterator[tuple[str, bytes]]:
        """
        Yield (key, value) for start_key <= key < end_key in ascending key order.

        Implemented as an async generator; closing it releases the cursor.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close the backend. Safe to call more than once."""
        ...
