"""
Process-wide cache of built mappings.

Mappings are immutable, so one instance per (record type, registry,
options) can be shared by the whole process. Uses a cachetools LRUCache.
"""
import logging
import threading
from typing import Any

import cachetools

from dbmap.adapters.registry import ConverterRegistry
from dbmap.mapping import Mapping, build_mapping
from dbmap.options import MappingOptions

logger = logging.getLogger(__name__)

__all__ = ['MappingCache', 'mapping_for']


class MappingCache:
    """Thread-safe singleton holding built mappings.
    """

    _instance = None
    _lock = threading.RLock()

    @classmethod
    def get_instance(cls) -> 'MappingCache':
        """Get singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    def __init__(self, maxsize: int = 256) -> None:
        self._cache: cachetools.LRUCache = cachetools.LRUCache(maxsize=maxsize)

    def get(self, record_type: type, registry: ConverterRegistry | None = None,
            options: MappingOptions | None = None) -> Mapping:
        """Return the cached mapping, building it on first use.

        Build errors are not cached.
        """
        registry = registry if registry is not None else ConverterRegistry.get_instance()
        options = options or MappingOptions()
        key = (record_type, registry, options)
        with self._lock:
            mapping = self._cache.get(key)
            if mapping is None:
                logger.debug(f'Mapping cache miss for {getattr(record_type, "__name__", record_type)}')
                mapping = build_mapping(record_type, registry, options)
                self._cache[key] = mapping
            return mapping

    def clear(self) -> None:
        """Clear all cached mappings."""
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, record_type: Any) -> bool:
        with self._lock:
            return any(key[0] is record_type for key in self._cache)


def mapping_for(record_type: type, registry: ConverterRegistry | None = None,
                options: MappingOptions | None = None) -> Mapping:
    """Build-once accessor for a record type's mapping.
    """
    return MappingCache.get_instance().get(record_type, registry, options)
