"""
Tests for the process-wide mapping cache.
"""
import threading
from dataclasses import dataclass

import pytest
from dbmap import MappingOptions, mapping_for
from dbmap.adapters import ConverterRegistry, NativeConverter
from dbmap.cache import MappingCache
from dbmap.exceptions import UnsupportedField


@dataclass
class Cached:
    name: str = None


@dataclass
class Broken:
    items: list = None


def test_singleton():
    assert MappingCache.get_instance() is MappingCache.get_instance()


def test_built_once():
    cache = MappingCache.get_instance()
    first = mapping_for(Cached)
    assert mapping_for(Cached) is first
    assert Cached in cache
    assert len(cache) == 1


def test_keyed_by_registry_and_options():
    """Test a different registry or options produces a separate mapping"""
    default = mapping_for(Cached)
    custom_registry = mapping_for(Cached, registry=ConverterRegistry(NativeConverter()))
    custom_options = mapping_for(Cached, options=MappingOptions(namer=str.upper))

    assert len({id(default), id(custom_registry), id(custom_options)}) == 3
    assert custom_options.columns == ('NAME',)
    assert mapping_for(Cached, options=MappingOptions(namer=str.upper)) is custom_options


def test_build_errors_are_not_cached():
    with pytest.raises(UnsupportedField):
        mapping_for(Broken)
    assert Broken not in MappingCache.get_instance()
    with pytest.raises(UnsupportedField):
        mapping_for(Broken)


def test_clear():
    cache = MappingCache.get_instance()
    first = mapping_for(Cached)
    cache.clear()
    assert len(cache) == 0
    assert mapping_for(Cached) is not first


def test_lru_eviction():
    cache = MappingCache(maxsize=2)
    records = [dataclass(type(f'Rec{i}', (), {'__annotations__': {'value': int}, 'value': None}))
               for i in range(3)]
    for record_type in records:
        cache.get(record_type)

    assert len(cache) == 2
    assert records[0] not in cache
    assert records[2] in cache


def test_concurrent_access():
    """Test concurrent lookups all observe the same mapping"""
    results = []

    def worker():
        results.append(mapping_for(Cached))

    threads = [threading.Thread(target=worker) for _ in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == 10
    assert all(m is results[0] for m in results)


if __name__ == '__main__':
    __import__('pytest').main([__file__])
