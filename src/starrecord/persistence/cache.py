"""
StarRecord Persistence Layer - Cache Stores

Key/value stores with per-entry time-to-live used by ``Cacheable``
models. ``get`` reports hits separately from values so that a cached
``None`` is distinguishable from a miss.
"""

import copy
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple


class CacheStore(ABC):
    """Abstract key/TTL cache store"""

    @abstractmethod
    def get(self, key: str) -> Tuple[Any, bool]:
        """
        Look up a key.

        Returns:
            ``(value, True)`` on a hit, ``(None, False)`` on a miss
        """
        pass

    @abstractmethod
    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """
        Store a value.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time-to-live in seconds, None or 0 never expires
        """
        pass

    @abstractmethod
    def clear(self, key: str) -> bool:
        """Evict a key, returns True if it was present"""
        pass


class MemoryCacheStore(CacheStore):
    """
    In-process cache store for development and testing.

    Values are deep-copied on the way in and out so callers cannot mutate
    cached entries.
    """

    def __init__(self):
        self._data: Dict[str, Any] = {}
        self._expiry: Dict[str, float] = {}

    def get(self, key: str) -> Tuple[Any, bool]:
        if self._expired(key):
            return None, False
        if key not in self._data:
            return None, False
        return copy.deepcopy(self._data[key]), True

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        self._data[key] = copy.deepcopy(value)
        if ttl:
            self._expiry[key] = time.time() + ttl
        elif key in self._expiry:
            del self._expiry[key]

    def clear(self, key: str) -> bool:
        existed = key in self._data
        self._data.pop(key, None)
        self._expiry.pop(key, None)
        return existed

    def cleanup_expired(self) -> int:
        """Remove every expired entry, returns how many were removed"""
        current_time = time.time()
        expired_keys = [
            key for key, expiry_time in self._expiry.items()
            if current_time > expiry_time
        ]

        for key in expired_keys:
            self.clear(key)

        return len(expired_keys)

    def _expired(self, key: str) -> bool:
        if key in self._expiry and time.time() > self._expiry[key]:
            self.clear(key)
            return True
        return False

    def __len__(self) -> int:
        return len(self._data)


__all__ = ["CacheStore", "MemoryCacheStore"]
