"""
agentkv exception hierarchy.

Every error in the package inherits from AgentKVError.
Each failure mode has its own class for targeted catching.

Usage:
    try:
        value = await store.get("did:example:123")
    except NotFoundError:
        # Key is absent
    except AgentKVError as e:
        # Any other storage failure
"""

# Message carried by ConfigError when Provider.connect() gets a blank URL
BLANK_HOST_ERR_MSG = "url for new provider can't be blank"


class AgentKVError(Exception):
    """Base exception for all agentkv errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


# ━━━ Setup Errors ━━━


class ConfigError(AgentKVError):
    """Configuration is invalid, missing, or malformed."""

    pass


class ConnectionError_(AgentKVError):
    """Backend unreachable or endpoint malformed. Named with underscore to avoid shadowing builtin."""

    def __init__(self, message: str, url: str = "", details: dict | None = None):
        self.url = url
        super().__init__(message, details)


# ━━━ Operation Errors ━━━


class ValidationError(AgentKVError):
    """Empty key, missing value, or a store name the backend can't hold."""

    pass


class NotFoundError(AgentKVError):
    """Requested key does not exist in the store."""

    def __init__(self, message: str = "data not found", key: str = "", details: dict | None = None):
        self.key = key
        super().__init__(message, details)


class StorageError(AgentKVError):
    """Backend failure during an operation: HTTP errors, database errors, etc."""

    pass


class StoreClosedError(StorageError):
    """Operation attempted on a store handle that was closed."""

    def __init__(self, store_name: str, details: dict | None = None):
        self.store_name = store_name
        super().__init__(f"Store '{store_name}' is closed", details)


class ClosedIteratorError(AgentKVError):
    """Iterator accessed after release()."""

    def __init__(self, message: str = "Iterator is closed", details: dict | None = None):
        super().__init__(message, details)
