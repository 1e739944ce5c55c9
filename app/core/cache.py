"""Lightweight in-memory TTL cache for public catalog reads.

Activity branches and their default services change only when the seed runs,
while every registration form fetches them, so list responses are kept for a
short window instead of being re-queried.
"""

import time
from collections.abc import Hashable
from typing import Any

_cache: dict[Hashable, tuple[float, Any]] = {}

# Default TTL in seconds
DEFAULT_TTL = 300

_clock = time.monotonic


def get(key: Hashable, ttl: float = DEFAULT_TTL) -> Any | None:
    """Return cached value if present and not expired, else None."""
    entry = _cache.get(key)
    if entry is None:
        return None
    stored_at, value = entry
    if _clock() - stored_at > ttl:
        _cache.pop(key, None)
        return None
    return value


def put(key: Hashable, value: Any, ttl: float = DEFAULT_TTL) -> None:
    """Store ``value`` and drop every entry older than ``ttl``."""
    now = _clock()
    for stale in [k for k, (stored_at, _) in _cache.items() if now - stored_at > ttl]:
        _cache.pop(stale, None)
    _cache[key] = (now, value)


def size() -> int:
    return len(_cache)


def invalidate_prefix(prefix: str) -> None:
    """Drop every tuple key whose first element equals ``prefix``."""
    for key in [k for k in _cache if isinstance(k, tuple) and k and k[0] == prefix]:
        _cache.pop(key, None)


def clear() -> None:
    _cache.clear()
