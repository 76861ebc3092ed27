"""
Key-value cache contract used by the persisted query and document stores.

The pipeline only reads and writes through this contract; storage and
eviction belong to the store implementation.
"""

import asyncio
import time
from typing import Any, Dict, Optional, Protocol, Tuple, runtime_checkable


@runtime_checkable
class KeyValueCache(Protocol):
    """Async key-value store.

    Example:
        >>> class RedisCache:
        ...     async def get(self, key):
        ...         return await redis.get(key)
        ...
        ...     async def set(self, key, value, ttl=None):
        ...         await redis.set(key, value, ex=ttl)
    """

    async def get(self, key: str) -> Optional[Any]:
        ...

    async def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        ...


class InMemoryKeyValueCache:
    """
    Dict-backed store with optional per-entry TTL.

    Expired entries are dropped when read; there is no size limit.

    Example:
        >>> cache = InMemoryKeyValueCache()
        >>> await cache.set("apq:abc", "{ hello }", ttl=300)
        >>> await cache.get("apq:abc")
        '{ hello }'
    """

    def __init__(self):
        self._data: Dict[str, Tuple[Any, Optional[float]]] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[Any]:
        async with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None

            value, expires_at = entry
            if expires_at is not None and time.time() >= expires_at:
                del self._data[key]
                return None

            return value

    async def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        async with self._lock:
            expires_at = time.time() + ttl if ttl else None
            self._data[key] = (value, expires_at)

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._data.pop(key, None)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data


class PrefixingKeyValueCache:
    """Wraps a cache and namespaces every key with ``prefix``."""

    def __init__(self, wrapped: KeyValueCache, prefix: str):
        self.wrapped = wrapped
        self.prefix = prefix

    async def get(self, key: str) -> Optional[Any]:
        return await self.wrapped.get(self.prefix + key)

    async def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        await self.wrapped.set(self.prefix + key, value, ttl=ttl)

    def __repr__(self) -> str:
        return f"PrefixingKeyValueCache({self.wrapped!r}, prefix={self.prefix!r})"
