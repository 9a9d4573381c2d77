"""Provider, Store and Iterator, plus the backends they run on."""

from agentkv.store.couchdb import CouchDBBackend
from agentkv.store.memory import InMemoryBackend
from agentkv.store.sqlite import SQLiteBackend

__all__ = ["CouchDBBackend", "InMemoryBackend", "SQLiteBackend"]
