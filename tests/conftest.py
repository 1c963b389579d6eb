import pytest
from dbmap.adapters.registry import ConverterRegistry
from dbmap.cache import MappingCache


@pytest.fixture(autouse=True)
def clear_caches():
    """Reset the mapping cache and default registry around each test to ensure test isolation."""
    MappingCache.get_instance().clear()
    ConverterRegistry.reset_instance()
    yield
    MappingCache.get_instance().clear()
    ConverterRegistry.reset_instance()


pytest_plugins = [
    'tests.fixtures.mocks',
    'tests.fixtures.values',
    'tests.fixtures.sqlite',
]
