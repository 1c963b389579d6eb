"""
Record mappings.

A `Mapping` is built once per record type. Building walks the dataclass
fields, assigns every field a column name and a converter, and folds the
fields of embedded records into the same mapping. Scanning a row afterwards
is only table lookups: no type introspection happens per row.

    @dataclass
    class Audit:
        created_at: datetime.datetime = None

    @dataclass
    class User:
        audit: Audit
        id: int = column('user_id')
        name: str = None
        settings: dict = None

    users = build_mapping(User)
    cursor.execute('SELECT user_id, name, settings, created_at FROM users')
    for user in users.scan_stream(DbapiRows(cursor)):
        ...
"""
import logging
import re
from collections.abc import Callable
from types import MappingProxyType
from typing import Any

from dbmap.adapters.reference import Discard, FieldReference
from dbmap.adapters.registry import Converter, ConverterRegistry
from dbmap.adapters.type_conversion import TypeConverter
from dbmap.cursor import Row, Rows
from dbmap.exceptions import ColumnListUnavailable, DuplicateColumn
from dbmap.exceptions import IncompatibleTarget, NotARecordType, ScanFailure
from dbmap.exceptions import UnsupportedField
from dbmap.options import MappingOptions
from dbmap.record import describe_record, is_record_type, new_record
from dbmap.record import same_shape
from dbmap.stream import RowStream

logger = logging.getLogger(__name__)

__all__ = ['Mapping', 'build_mapping']

FieldPath = tuple[str, ...]
Resolver = Callable[[Any], Any]

_ROW_SCAN_INDEX_RE = re.compile(r'index (\d+): (.+)$')
_DISCARD = Discard()


def _root(record: Any) -> Any:
    return record


def _nested(parent: Resolver, name: str, record_type: type) -> Resolver:
    """Compose a resolver that descends one embedding level.

    A missing (None) sub-record is replaced by a zero-valued one.
    """
    def resolve(record: Any) -> Any:
        owner = parent(record)
        sub = getattr(owner, name)
        if sub is None:
            sub = new_record(record_type)
            setattr(owner, name, sub)
        return sub
    return resolve


def _release(rows: Rows) -> None:
    try:
        rows.close()
    except Exception as e:
        logger.warning(f'Failed to close cursor {rows!r}: {e}')


def _is_frozen(record_type: type) -> bool:
    return record_type.__dataclass_params__.frozen


class _MappingBuilder:
    """Single-use walker that collects the tables of one Mapping.
    """

    def __init__(self, record_type: type, registry: ConverterRegistry,
                 options: MappingOptions) -> None:
        self.record_type = record_type
        self.registry = registry
        self.options = options
        self.columns: dict[str, FieldPath] = {}
        self.converters: dict[FieldPath, Converter] = {}
        self.nesting: dict[FieldPath, Resolver] = {}
        self.types: dict[FieldPath, Any] = {}
        self._walking: list[type] = []

    def build(self) -> 'Mapping':
        if not is_record_type(self.record_type):
            raise NotARecordType(self.record_type)
        self._walk(self.record_type, (), _root)
        return Mapping(self.record_type, self.columns, self.converters,
                       self.nesting, self.types, self.options)

    def _walk(self, record_type: type, prefix: FieldPath, nesting: Resolver) -> None:
        if _is_frozen(record_type):
            raise NotARecordType(record_type, f'{record_type.__name__} is a frozen dataclass and can not be scanned into')
        self._walking.append(record_type)
        for field in describe_record(record_type, self.options.tag, self.options.skip):
            if field.skip:
                continue

            path = (*prefix, field.name)
            if field.embedded:
                if field.type in self._walking:
                    raise UnsupportedField(field.name, field.type)
                self._walk(field.type, path, _nested(nesting, field.name, field.type))
                continue

            name = field.column or self.options.namer(field.name)
            if name in self.columns:
                raise DuplicateColumn(name, self.record_type)

            converter = self.registry.find_for(field.type)
            if converter is None:
                raise UnsupportedField(field.name, field.type)

            self.columns[name] = path
            self.converters[path] = converter
            self.nesting[path] = nesting
            self.types[path] = field.type
        self._walking.pop()


def build_mapping(record_type: type, registry: ConverterRegistry | None = None,
                  options: MappingOptions | None = None) -> 'Mapping':
    """Build the mapping for a record type.

    Args:
        record_type: A non-frozen dataclass
        registry: Converters to resolve fields with (default registry when None)
        options: Tag, naming and streaming options

    Raises
        NotARecordType, DuplicateColumn, UnsupportedField
    """
    registry = registry if registry is not None else ConverterRegistry.get_instance()
    options = options or MappingOptions()
    mapping = _MappingBuilder(record_type, registry, options).build()
    logger.debug(f'Built {mapping!r}')
    return mapping


class Mapping:
    """Translates queried rows into instances of a record type.

    Immutable once built; a single Mapping may be shared by any number of
    threads scanning concurrently.
    """

    def __init__(self, record_type: type, columns: dict[str, FieldPath],
                 converters: dict[FieldPath, Converter],
                 nesting: dict[FieldPath, Resolver], types: dict[FieldPath, Any],
                 options: MappingOptions) -> None:
        self.record_type = record_type
        self.options = options
        self._columns = MappingProxyType(dict(columns))
        self._converters = MappingProxyType(dict(converters))
        self._nesting = MappingProxyType(dict(nesting))
        self._types = MappingProxyType(dict(types))

    @property
    def columns(self) -> tuple[str, ...]:
        """Mapped column names in field declaration order."""
        return tuple(self._columns)

    def field_path(self, column: str) -> FieldPath:
        """Attribute path from the root record to the field holding `column`."""
        return self._columns[column]

    def field_type(self, column: str) -> Any:
        return self._types[self._columns[column]]

    def converter(self, column: str) -> Converter:
        return self._converters[self._columns[column]]

    def __contains__(self, column: object) -> bool:
        return column in self._columns

    def __len__(self) -> int:
        return len(self._columns)

    def _check_target(self, target: Any) -> None:
        if isinstance(target, self.record_type):
            return
        if not isinstance(target, type) and same_shape(type(target), self.record_type):
            return
        raise IncompatibleTarget(
            f'mapping type ({self.record_type.__name__}) is not convertible '
            f'to the scan target ({type(target).__name__})')

    def _field(self, target: Any, path: FieldPath) -> FieldReference:
        owner = self._nesting[path](target)
        return FieldReference(owner, path[-1], self._types[path])

    def scan_row(self, target: Any, row: Row, *columns: str) -> None:
        """Scan the row's current values into the target record.

        `columns` is the cursor's column order. Columns the mapping does not
        know are skipped.
        """
        self._check_target(target)

        placeholders = []
        bound = []
        for column in columns:
            path = self._columns.get(column)
            if path is None:
                placeholders.append(_DISCARD)
                continue
            field = self._field(target, path)
            converter = self._converters[path]
            placeholder = converter.receive(field)
            placeholders.append(placeholder)
            bound.append((converter, field, placeholder))

        try:
            row.scan(*placeholders)
        except Exception as e:
            m = _ROW_SCAN_INDEX_RE.search(str(e))
            if m is not None and int(m[1]) < len(placeholders):
                index = int(m[1])
                raise ScanFailure(index, m[2], type(placeholders[index])) from e
            raise

        for converter, field, placeholder in bound:
            converter.copy(field, placeholder)

    def _columns_of(self, rows: Rows) -> list[str]:
        try:
            return list(rows.columns())
        except ColumnListUnavailable:
            raise
        except Exception as e:
            raise ColumnListUnavailable(str(e)) from e

    def scan_one(self, target: Any, rows: Rows) -> bool:
        """Scan the next row into the target. The cursor is always closed.

        Returns False when the cursor has no row.
        """
        try:
            columns = self._columns_of(rows)
            if not rows.next():
                if (err := rows.err()) is not None:
                    raise err
                return False
            self.scan_row(target, rows, *columns)
            return True
        finally:
            _release(rows)

    def _produce(self, rows: Rows):
        try:
            columns = self._columns_of(rows)
            while rows.next():
                record = new_record(self.record_type)
                self.scan_row(record, rows, *columns)
                yield record
            if (err := rows.err()) is not None:
                raise err
        finally:
            _release(rows)

    def scan_stream(self, rows: Rows) -> RowStream:
        """Lazily scan every row into a fresh record.

        The first error is raised by the iterator and ends the stream. The
        cursor is closed once the stream is drained, fails, or is closed.
        """
        return RowStream(lambda: self._produce(rows),
                         threaded=self.options.threaded_stream,
                         on_abandon=lambda: _release(rows))

    def scan_all(self, rows: Rows) -> list:
        """Scan all rows into a list. On error nothing is returned.
        """
        with self.scan_stream(rows) as stream:
            return list(stream)

    def scan_frame(self, rows: Rows) -> Any:
        """Scan all rows into a pandas DataFrame.
        """
        from dbmap.loaders import dataframe_loader
        return dataframe_loader(self, self.scan_all(rows))

    def get(self, record: Any, column: str) -> Any:
        """Read the field value mapped to `column` without materialising
        missing sub-records.
        """
        value = record
        for name in self._columns[column]:
            if value is None:
                return None
            value = getattr(value, name)
        return value

    def values(self, record: Any, *columns: str) -> list[Any]:
        """Encode the record's fields as query parameters.

        Defaults to every mapped column in mapping order.
        """
        self._check_target(record)
        encoded = []
        for column in columns or self._columns:
            path = self._columns.get(column)
            if path is None:
                raise ValueError(f'column {column!r} is not mapped on {self.record_type.__name__}')
            value = self._converters[path].value(self.get(record, column))
            encoded.append(TypeConverter.convert_value(value))
        return encoded

    def as_dict(self, record: Any) -> dict[str, Any]:
        """Encode the record as `{column: parameter}`."""
        return dict(zip(self._columns, self.values(record)))

    def __repr__(self) -> str:
        pairs = ', '.join(f'{col}: {self._converters[path]!r}' for col, path in self._columns.items())
        return f'Mapping({self.record_type.__name__}){{{pairs}}}'
