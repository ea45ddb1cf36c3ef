"""
Cacheable Models

💾 Read-Through Model Cache:
``find()`` checks the cache store before querying storage, every load
caches the full value map for ``cache_ttl`` seconds and ``clear_cache()``
evicts the entry. Mix it in before ``Model``:

    class User(Cacheable, Model):
        cache_ttl = 3600

    Cacheable.set_cache_store(MemoryCacheStore())
"""

from typing import Any, Mapping, Optional
import logging

from ..config import get_config
from ..core.registry import registry
from ..persistence.cache import CacheStore

logger = logging.getLogger(__name__)


class Cacheable:
    """Model mixin caching loaded values in the shared cache store"""

    cache_ttl: Optional[int] = None

    @staticmethod
    def set_cache_store(store: CacheStore) -> None:
        registry.cache_store = store

    @staticmethod
    def get_cache_store() -> Optional[CacheStore]:
        return registry.cache_store

    @staticmethod
    def clear_cache_store() -> None:
        registry.cache_store = None

    @classmethod
    def find(cls, id: Any):
        store = cls.get_cache_store()
        if store is not None:
            model = cls.build_from_id(id)
            values, hit = store.get(model.get_cache_key())
            if hit:
                # set directly, refresh_with() would write the entry back
                model._values = values
                model._persisted = True
                model._loaded = True
                logger.debug(f"Cache hit for {model.get_cache_key()}")
                return model

        return super().find(id)

    def refresh_with(self, values: Mapping[str, Any]):
        # create() and set() leave only the ids behind and evict the entry,
        # so it is filled again by the next load rather than on the write
        return super().refresh_with(values).cache()

    def clear_cache(self):
        store = self.get_cache_store()
        if store is not None and self.persisted():
            store.clear(self.get_cache_key())
        return super().clear_cache()

    def get_cache_ttl(self) -> int:
        if self.cache_ttl is not None:
            return self.cache_ttl
        return get_config().cache.default_ttl

    def get_cache_key(self) -> str:
        prefix = get_config().cache.key_prefix
        return f"{prefix}/{self.model_name().lower()}/{self.id()}"

    def cache(self):
        """Write the stored values into the cache store"""
        store = self.get_cache_store()
        if store is None or not self._values:
            return self

        store.set(self.get_cache_key(), dict(self._values), self.get_cache_ttl())
        return self


__all__ = ["Cacheable"]
