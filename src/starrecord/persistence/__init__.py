"""
StarRecord Persistence Layer

Storage drivers models are persisted through and cache stores used by
cacheable models.
"""

from .base import StorageDriver
from .cache import CacheStore, MemoryCacheStore
from .memory import MemoryDriver
from .sql import DatabaseDriver, SQLConnectionConfig

__all__ = [
    "StorageDriver", "CacheStore", "MemoryCacheStore",
    "MemoryDriver", "DatabaseDriver", "SQLConnectionConfig"
]
