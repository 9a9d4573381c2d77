"""
StoreIterator — forward-only cursor over a key range.

States:
    ready     → created, backend not queried yet
    advancing → next() has pulled at least once
    released  → release() called; every accessor returns empty

The backend scan starts lazily on the first next(), so building an
iterator never fails, even for empty or inverted ranges.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, AsyncIterator, Callable

from agentkv.core.errors import (
    AgentKVError,
    ClosedIteratorError,
    StorageError,
    StoreClosedError,
)
from agentkv.store.keys import is_empty_range

if TYPE_CHECKING:
    from agentkv.store.base import Backend

logger = logging.getLogger(__name__)


class StoreIterator:
    """
    Cursor over [start_key, end_key) in ascending key order.

    Not safe for concurrent use; one owner drives it. Once the owning store
    is closed, next() returns False and error() reports StoreClosedError.

    Usage:
        itr = store.iterator("abc_", "abc_" + END_KEY_SUFFIX)
        while await itr.next():
            print(itr.key(), itr.value())
        await itr.release()

    Or:
        async with store.iterator(start, end) as itr:
            async for key, value in itr:
                ...
    """

    def __init__(
        self,
        backend: Backend,
        namespace: str,
        start_key: str,
        end_key: str,
        batch_size: int = 100,
        is_closed: Callable[[], bool] | None = None,
    ) -> None:
        self._backend = backend
        self._namespace = namespace
        self._start_key = start_key
        self._end_key = end_key
        self._batch_size = batch_size
        self._is_closed = is_closed

        self._source: AsyncIterator[tuple[str, bytes]] | None = None
        self._current: tuple[str, bytes] | None = None
        self._exhausted = is_empty_range(start_key, end_key)
        self._released = False
        self._error: AgentKVError | None = None

    @property
    def released(self) -> bool:
        return self._released

    async def next(self) -> bool:
        """Advance to the next record. Returns False at the end or after release."""
        self._current = None
        if self._released or self._exhausted:
            return False

        if self._is_closed is not None and self._is_closed():
            self._error = StoreClosedError(self._namespace)
            self._exhausted = True
            await self._close_source()
            return False

        if self._source is None:
            self._source = self._backend.scan(
                self._namespace, self._start_key, self._end_key, self._batch_size
            )

        try:
            self._current = await anext(self._source)
        except StopAsyncIteration:
            self._exhausted = True
            return False
        except AgentKVError as e:
            self._error = e
            self._exhausted = True
            return False
        except Exception as e:
            self._error = StorageError(f"Iterator failed on '{self._namespace}': {e}")
            self._exhausted = True
            return False

        return True

    def key(self) -> str:
        """Key of the current record, or "" when there is none."""
        return self._current[0] if self._current else ""

    def value(self) -> bytes:
        """Value of the current record, or b"" when there is none."""
        return self._current[1] if self._current else b""

    def error(self) -> AgentKVError | None:
        """None while healthy or exhausted; ClosedIteratorError after release."""
        if self._released:
            return ClosedIteratorError()
        return self._error

    async def release(self) -> None:
        """Release the backend cursor. Safe to call more than once."""
        if self._released:
            return
        self._released = True
        self._current = None
        await self._close_source()

    async def _close_source(self) -> None:
        source, self._source = self._source, None
        if source is not None:
            aclose = getattr(source, "aclose", None)
            if aclose is not None:
                try:
                    await aclose()
                except Exception as e:
                    logger.warning(f"Failed to close scan on '{self._namespace}': {e}")

    # ━━━ Python protocols ━━━

    def __aiter__(self) -> StoreIterator:
        return self

    async def __anext__(self) -> tuple[str, bytes]:
        if not await self.next():
            raise StopAsyncIteration
        return self.key(), self.value()

    async def __aenter__(self) -> StoreIterator:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.release()
