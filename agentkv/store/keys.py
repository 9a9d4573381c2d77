"""
Key and store-name rules shared by every backend.

Ranges are half-open: [start_key, end_key). To scan everything under a
prefix, pass (prefix, prefix + END_KEY_SUFFIX).
"""

from __future__ import annotations

import re

from agentkv.core.errors import ValidationError

# Highest Unicode codepoint. Sorts after every other character in Python str
# order, and its UTF-8 form sorts last in SQLite BINARY and CouchDB raw order.
END_KEY_SUFFIX = "\U0010ffff"

# CouchDB database name rules, the strictest of the backends
_STORE_NAME_RE = re.compile(r"[a-z][a-z0-9_$()+/-]*")


def canonical_store_name(name: str, prefix: str = "") -> str:
    """
    Build the backend-safe store name: "<prefix>_<name>", lower-cased.

    Raises:
        ValidationError: If the name is empty or has characters a backend can't hold
    """
    if not isinstance(name, str) or not name:
        raise ValidationError("store name is mandatory")

    canonical = f"{prefix}_{name}" if prefix else name
    canonical = canonical.lower()

    if not _STORE_NAME_RE.fullmatch(canonical):
        raise ValidationError(
            f"Invalid store name '{canonical}': must start with a letter and contain "
            "only a-z, 0-9 and _$()+-/",
            details={"name": name, "prefix": prefix},
        )
    return canonical


def is_empty_range(start_key: str, end_key: str) -> bool:
    """
    True when [start_key, end_key) can't select anything.

    A bare END_KEY_SUFFIX (sentinel with no prefix) selects nothing rather
    than everything.
    """
    if not end_key or end_key == END_KEY_SUFFIX:
        return True
    return start_key >= end_key
