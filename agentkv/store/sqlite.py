"""
SQLite backend.

Uses aiosqlite for async SQLite access.
WAL mode enabled for concurrent read support.
All namespaces share one file; each record row carries its namespace.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

from agentkv.core.errors import ConnectionError_, StorageError
from agentkv.store.base import Backend

logger = logging.getLogger(__name__)

MEMORY_PATH = ":memory:"


class SQLiteBackend(Backend):
    """
    SQLite-based key-value backend.

    Usage:
        backend = SQLiteBackend("~/.agentkv/data.db")
        provider = Provider(backend)
        await provider.initialize()
    """

    kind = "sqlite"

    def __init__(self, db_path: str | Path) -> None:
        if str(db_path) == MEMORY_PATH:
            self._db_path: Path | None = None
        else:
            self._db_path = Path(db_path).expanduser()
        self._db: aiosqlite.Connection | None = None

    @property
    def location(self) -> str:
        return str(self._db_path) if self._db_path else MEMORY_PATH

    async def initialize(self) -> None:
        """Open the database and create tables."""
        try:
            if self._db_path is not None:
                self._db_path.parent.mkdir(parents=True, exist_ok=True)

            self._db = await aiosqlite.connect(self.location)

            await self._db.execute("PRAGMA journal_mode=WAL")
            await self._db.execute("PRAGMA synchronous=NORMAL")

            await self._db.execute(
                """
                CREATE TABLE IF NOT EXISTS namespaces (
                    name TEXT PRIMARY KEY,
                    created_at REAL NOT NULL DEFAULT (strftime('%s', 'now'))
                )
                """
            )
            await self._db.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    namespace TEXT NOT NULL,
                    key TEXT NOT NULL,
                    value BLOB NOT NULL,
                    updated_at REAL NOT NULL DEFAULT (strftime('%s', 'now')),
                    PRIMARY KEY (namespace, key)
                )
                """
            )

            await self._db.commit()
            logger.debug(f"SQLite backend initialized at {self.location}")

        except Exception as e:
            await self.close()
            raise ConnectionError_(
                f"Failed to initialize SQLite at {self.location}: {e}",
                url=self.location,
            ) from e

    async def _ensure_db(self) -> aiosqlite.Connection:
        """Ensure database is initialized."""
        if self._db is None:
            await self.initialize()
        return self._db  # type: ignore[return-value]

    async def ping(self) -> None:
        db = await self._ensure_db()
        try:
            async with db.execute("SELECT 1") as cursor:
                await cursor.fetchone()
        except Exception as e:
            raise ConnectionError_(
                f"SQLite at {self.location} is not usable: {e}", url=self.location
            ) from e

    async def ensure_namespace(self, name: str) -> None:
        db = await self._ensure_db()
        try:
            cursor = await db.execute(
                "INSERT OR IGNORE INTO namespaces (name) VALUES (?)", (name,)
            )
            await db.commit()
            if cursor.rowcount > 0:
                logger.debug(f"Created namespace '{name}'")
        except Exception as e:
            raise StorageError(f"Failed to create namespace '{name}': {e}") from e

    async def get(self, namespace: str, key: str) -> bytes | None:
        db = await self._ensure_db()
        try:
            async with db.execute(
                "SELECT value FROM kv WHERE namespace = ? AND key = ?",
                (namespace, key),
            ) as cursor:
                row = await cursor.fetchone()
                return bytes(row[0]) if row else None
        except Exception as e:
            raise StorageError(f"Failed to get key '{key}': {e}") from e

    async def put(self, namespace: str, key: str, value: bytes) -> None:
        db = await self._ensure_db()
        try:
            await db.execute(
                """
                INSERT INTO kv (namespace, key, value, updated_at)
                VALUES (?, ?, ?, strftime('%s', 'now'))
                ON CONFLICT(namespace, key)
                DO UPDATE SET value = excluded.value, updated_at = strftime('%s', 'now')
                """,
                (namespace, key, value),
            )
            await db.commit()
        except Exception as e:
            raise StorageError(f"Failed to put key '{key}': {e}") from e

    async def delete(self, namespace: str, key: str) -> bool:
        db = await self._ensure_db()
        try:
            cursor = await db.execute(
                "DELETE FROM kv WHERE namespace = ? AND key = ?", (namespace, key)
            )
            await db.commit()
            return cursor.rowcount > 0
        except Exception as e:
            raise StorageError(f"Failed to delete key '{key}': {e}") from e

    async def scan(
        self,
        namespace: str,
        start_key: str,
        end_key: str,
        batch_size: int = 100,
    ) -> AsyncIterator[tuple[str, bytes]]:
        db = await self._ensure_db()
        lower_op = ">="
        lower = start_key

        while True:
            try:
                async with db.execute(
                    f"""
                    SELECT key, value FROM kv
                    WHERE namespace = ? AND key {lower_op} ? AND key < ?
                    ORDER BY key
                    LIMIT ?
                    """,
                    (namespace, lower, end_key, batch_size),
                ) as cursor:
                    rows = await cursor.fetchall()
            except Exception as e:
                raise StorageError(
                    f"Failed to scan [{start_key!r}, {end_key!r}) in '{namespace}': {e}"
                ) from e

            for key, value in rows:
                yield key, bytes(value)

            if len(rows) < batch_size:
                return

            # Next page starts strictly after the last key seen
            lower_op = ">"
            lower = rows[-1][0]

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None
