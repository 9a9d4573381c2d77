"""
Provider — owns the backend connection and the registry of open stores.

URL forms accepted by Provider.connect():
    memory://                       in-process dict, for tests
    sqlite:///abs/path/data.db      SQLite file
    sqlite://:memory:               SQLite in memory
    http(s)://[user:pass@]host:port CouchDB
    host:port                       CouchDB over http
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import httpx

from agentkv.core.errors import (
    BLANK_HOST_ERR_MSG,
    ConfigError,
    ConnectionError_,
    ValidationError,
)
from agentkv.core.logging import setup_logging_from_config
from agentkv.store.base import Backend
from agentkv.store.couchdb import CouchDBBackend
from agentkv.store.keys import canonical_store_name
from agentkv.store.memory import InMemoryBackend
from agentkv.store.sqlite import SQLiteBackend
from agentkv.store.store import Store

if TYPE_CHECKING:
    from agentkv.core.config import AgentKVConfig

logger = logging.getLogger(__name__)

MEMORY_SCHEME = "memory://"
SQLITE_SCHEME = "sqlite://"


def backend_from_url(
    url: str,
    timeout: float = 30.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Backend:
    """
    Pick a backend for the URL.

    Raises:
        ConfigError: If the URL is blank
        ConnectionError_: If a SQLite URL has no path
    """
    if url is None or not url.strip():
        raise ConfigError(BLANK_HOST_ERR_MSG)

    url = url.strip()
    lowered = url.lower()

    if lowered.startswith(MEMORY_SCHEME):
        return InMemoryBackend()

    if lowered.startswith(SQLITE_SCHEME):
        path = url[len(SQLITE_SCHEME):]
        if not path:
            raise ConnectionError_(f"SQLite URL has no path: {url}", url=url)
        return SQLiteBackend(path)

    return CouchDBBackend(url, timeout=timeout, transport=transport)


class Provider:
    """
    Creates, deduplicates and closes named stores on one backend.

    Usage:
        provider = await Provider.connect("localhost:5984", db_prefix="agent")
        store = await provider.open_store("dids")
        ...
        await provider.close()

    At most one Store object exists per canonical name. The registry is
    guarded by a lock, so concurrent open_store() calls for the same name
    get the same handle.
    """

    def __init__(
        self,
        backend: Backend,
        db_prefix: str = "",
        batch_size: int = 100,
    ) -> None:
        self._backend = backend
        self._db_prefix = db_prefix
        self._batch_size = batch_size
        self._stores: dict[str, Store] = {}
        self._lock = asyncio.Lock()

    @classmethod
    async def connect(
        cls,
        url: str,
        db_prefix: str = "",
        timeout: float = 30.0,
        batch_size: int = 100,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> Provider:
        """
        Build a provider for url and check the backend is reachable.

        Raises:
            ConfigError: If url is blank
            ConnectionError_: If the backend can't be reached or url is malformed
        """
        backend = backend_from_url(url, timeout=timeout, transport=transport)
        provider = cls(backend, db_prefix=db_prefix, batch_size=batch_size)
        await provider.initialize()
        return provider

    @classmethod
    async def from_config(
        cls,
        config: AgentKVConfig,
        transport: httpx.AsyncBaseTransport | None = None,
        configure_logging: bool = True,
    ) -> Provider:
        """
        Build a provider from the config.

        Applies the [logging] section first unless configure_logging is False,
        then connects with the [provider] section.
        """
        if configure_logging:
            setup_logging_from_config(config)

        settings = config.provider
        return await cls.connect(
            settings.url,
            db_prefix=settings.db_prefix,
            timeout=settings.timeout,
            batch_size=settings.batch_size,
            transport=transport,
        )

    async def initialize(self) -> None:
        """Ping the backend. Releases it again if the ping fails."""
        try:
            await self._backend.ping()
        except Exception:
            await self._backend.close()
            raise
        logger.debug(
            f"Provider ready on {self._backend.kind} backend (prefix={self._db_prefix!r})"
        )

    @property
    def backend(self) -> Backend:
        return self._backend

    @property
    def db_prefix(self) -> str:
        return self._db_prefix

    @property
    def store_names(self) -> list[str]:
        """Canonical names of the open stores."""
        return list(self._stores)

    def canonical_name(self, name: str) -> str:
        return canonical_store_name(name, self._db_prefix)

    async def open_store(self, name: str) -> Store:
        """
        Open (creating if needed) the store called name.

        Returns the same Store object for the same name until it is closed.

        Raises:
            ValidationError: If the name can't be used as a backend name
        """
        canonical = self.canonical_name(name)

        async with self._lock:
            store = self._stores.get(canonical)
            if store is not None:
                return store

            await self._backend.ensure_namespace(canonical)
            store = Store(self._backend, canonical, batch_size=self._batch_size)
            self._stores[canonical] = store

        logger.debug(f"Opened store '{canonical}'")
        return store

    async def close_store(self, name: str) -> None:
        """Close the named store. Closing a store that isn't open does nothing."""
        try:
            canonical = self.canonical_name(name)
        except ValidationError:
            # An invalid name can't be open
            return

        async with self._lock:
            store = self._stores.pop(canonical, None)

        if store is not None:
            store.close()

    async def close(self) -> None:
        """Close every open store and release the backend. Safe to call twice."""
        async with self._lock:
            stores = list(self._stores.values())
            self._stores.clear()

        for store in stores:
            store.close()

        await self._backend.close()
        if stores:
            logger.debug(f"Provider closed {len(stores)} store(s)")

    def __len__(self) -> int:
        return len(self._stores)

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        try:
            return self.canonical_name(name) in self._stores
        except ValidationError:
            return False

    async def __aenter__(self) -> Provider:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
