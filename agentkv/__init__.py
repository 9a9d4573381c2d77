"""
agentkv — one key-value contract over CouchDB, SQLite or memory.

Public API:
    from agentkv import Provider, Store, StoreIterator, END_KEY_SUFFIX
"""

__version__ = "0.1.0"

# Core
from agentkv.core.config import AgentKVConfig
from agentkv.core.errors import (
    AgentKVError,
    ClosedIteratorError,
    ConfigError,
    ConnectionError_,
    NotFoundError,
    StorageError,
    StoreClosedError,
    ValidationError,
)
from agentkv.core.logging import setup_logging, setup_logging_from_config

# Store
from agentkv.store.base import Backend
from agentkv.store.iterator import StoreIterator
from agentkv.store.keys import END_KEY_SUFFIX, canonical_store_name
from agentkv.store.provider import Provider
from agentkv.store.store import Store

__all__ = [
    # Core
    "AgentKVConfig",
    "setup_logging",
    "setup_logging_from_config",
    # Errors
    "AgentKVError",
    "ClosedIteratorError",
    "ConfigError",
    "ConnectionError_",
    "NotFoundError",
    "StorageError",
    "StoreClosedError",
    "ValidationError",
    # Store
    "Backend",
    "Provider",
    "Store",
    "StoreIterator",
    "END_KEY_SUFFIX",
    "canonical_store_name",
]
