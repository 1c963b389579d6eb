"""
Map database rows onto dataclass records.

Build a mapping once per record type, then scan cursors with it:

- Mapping functions: dbmap.scan_all(User, rows)
- Mapping methods: dbmap.build_mapping(User).scan_all(rows)

The module functions are facades over the cached mapping of a record type.
"""
__version__ = '0.1.0'

from typing import Any

from dbmap.adapters import Converter, ConverterRegistry, FieldReference
from dbmap.adapters import JsonConverter, JsonScanner, NativeConverter
from dbmap.adapters import Scanner, ScannerConverter, TypeConverter, Valuer
from dbmap.cache import MappingCache, mapping_for
from dbmap.cursor import DbapiRows, Row, Rows
from dbmap.exceptions import ColumnListUnavailable, CursorScanError
from dbmap.exceptions import DecodeFailure, DuplicateColumn, IncompatibleTarget
from dbmap.exceptions import MappingError, NotARecordType, ScanFailure
from dbmap.exceptions import UnsupportedField
from dbmap.mapping import Mapping, build_mapping
from dbmap.naming import default_column_name
from dbmap.options import MappingOptions
from dbmap.record import column
from dbmap.stream import RowStream


def register_converter(converter: Converter) -> None:
    """Register a converter on the default registry, ahead of all others.

    Call during process initialisation only, before mappings are built.
    """
    ConverterRegistry.get_instance().register(converter)
    MappingCache.get_instance().clear()


def scan_one(record_type: type, target: Any, rows: Rows) -> bool:
    """Scan the next row into target. Returns False when there is no row.
    """
    return mapping_for(record_type).scan_one(target, rows)


def scan_stream(record_type: type, rows: Rows) -> RowStream:
    """Lazily scan every row into a new record.
    """
    return mapping_for(record_type).scan_stream(rows)


def scan_all(record_type: type, rows: Rows) -> list:
    """Scan every row into a list of records.
    """
    return mapping_for(record_type).scan_all(rows)


__all__ = [
    'build_mapping',
    'mapping_for',
    'register_converter',
    'scan_one',
    'scan_stream',
    'scan_all',
    'column',
    'default_column_name',
    'Mapping',
    'MappingCache',
    'MappingOptions',
    'RowStream',
    'Row',
    'Rows',
    'DbapiRows',
    'Converter',
    'ConverterRegistry',
    'FieldReference',
    'NativeConverter',
    'ScannerConverter',
    'JsonConverter',
    'JsonScanner',
    'Scanner',
    'Valuer',
    'TypeConverter',
    'MappingError',
    'NotARecordType',
    'DuplicateColumn',
    'UnsupportedField',
    'IncompatibleTarget',
    'ColumnListUnavailable',
    'ScanFailure',
    'DecodeFailure',
    'CursorScanError',
]
