"""
Converter registry.

A converter decides which field types it can handle and how a field is
scanned. The registry keeps converters in priority order: `register()`
prepends, `find_for()` returns the first converter that accepts a type, so
the most recently registered converter wins.

The default registry is process-wide state intended to be configured during
initialisation only. Registering while other threads build mappings is not
guarded by a lock.
"""
import logging
from collections.abc import Iterator
from typing import Any, Protocol, Self, runtime_checkable

from dbmap.adapters.reference import FieldReference

logger = logging.getLogger(__name__)

__all__ = ['Converter', 'ConverterRegistry', 'Scanner', 'Valuer']


@runtime_checkable
class Scanner(Protocol):
    """A value that can bind a raw column value into itself.
    """

    def scan(self, value: Any) -> None:
        ...


@runtime_checkable
class Valuer(Protocol):
    """A value that can produce its own database representation.
    """

    def value(self) -> Any:
        ...


class Converter:
    """Base class for field converters.
    """

    def accepts(self, field_type: Any) -> bool:
        """Check whether this converter can handle the field type.

        Must be a pure predicate.
        """
        return False

    def receive(self, field: FieldReference) -> Any:
        """Return the placeholder the cursor scans the column into.

        The placeholder may write into the field directly, in which case
        `copy` has nothing left to do.
        """
        raise NotImplementedError('Subclasses must implement receive method')

    def copy(self, field: FieldReference, scanned: Any) -> None:
        """Commit a scanned placeholder into the field.
        """

    def value(self, field_value: Any) -> Any:
        """Encode a field value as a database parameter.
        """
        return field_value

    def __repr__(self) -> str:
        return type(self).__name__


class ConverterRegistry:
    """Priority-ordered collection of converters.

    Converters passed to the constructor are registered in the given order,
    so the last one ends up with the highest priority.
    """

    _instance = None

    @classmethod
    def get_instance(cls) -> Self:
        """Get the default registry, populated with the built-in converters.
        """
        if cls._instance is None:
            cls._instance = cls.default()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Drop the default registry so the next `get_instance` rebuilds it.
        """
        cls._instance = None

    @classmethod
    def default(cls) -> Self:
        """Create a registry holding only the built-in converters.

        Priority from highest: scanner, native, JSON.
        """
        from dbmap.adapters.json_text import JsonConverter
        from dbmap.adapters.native import NativeConverter, ScannerConverter
        return cls(JsonConverter(), NativeConverter(), ScannerConverter())

    def __init__(self, *converters: Converter) -> None:
        self._converters: list[Converter] = []
        for converter in converters:
            self.register(converter)

    def register(self, converter: Converter) -> None:
        """Register a converter ahead of every converter registered before it.
        """
        self._converters.insert(0, converter)
        logger.debug(f'Registered converter {converter!r}')

    def find_for(self, field_type: Any) -> Converter | None:
        """Return the highest priority converter accepting the type, or None.
        """
        for converter in self._converters:
            if converter.accepts(field_type):
                return converter
        return None

    def copy(self) -> Self:
        """Create an independent registry with the same priority order.
        """
        clone = type(self)()
        clone._converters = list(self._converters)
        return clone

    def __iter__(self) -> Iterator[Converter]:
        return iter(self._converters)

    def __len__(self) -> int:
        return len(self._converters)

    def __repr__(self) -> str:
        return f'ConverterRegistry({", ".join(map(repr, self._converters))})'
