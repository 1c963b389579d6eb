"""
Built-in converters for scalar fields and self-decoding field types.
"""
import datetime
import decimal
import typing
import uuid
from typing import Any

import numpy as np

from dbmap.adapters.reference import FieldReference
from dbmap.adapters.registry import Converter, Valuer
from dbmap.record import unwrap_optional

__all__ = ['NativeConverter', 'ScannerConverter', 'NATIVE_TYPES']

NATIVE_TYPES: tuple[type, ...] = (
    int, float, bool, str, bytes, bytearray,
    decimal.Decimal, uuid.UUID,
    datetime.datetime, datetime.date, datetime.time, datetime.timedelta,
    np.integer, np.floating, np.bool_, np.datetime64,
)


class NativeConverter(Converter):
    """Scalars the cursor can store without help.

    The placeholder is a reference to the field itself, so the cursor writes
    the value straight into the record and `copy` has nothing to do.
    """

    def accepts(self, field_type: Any) -> bool:
        tp = unwrap_optional(field_type)
        if typing.get_origin(tp) is not None or not isinstance(tp, type):
            return False
        return issubclass(tp, NATIVE_TYPES)

    def receive(self, field: FieldReference) -> FieldReference:
        return field


class ScannerConverter(Converter):
    """Field types that decode raw column values themselves.

    Any class with a callable `scan` attribute qualifies. Scanning is
    delegated entirely to a fresh instance of the field type, assigned to
    the field before the row is scanned.
    """

    def accepts(self, field_type: Any) -> bool:
        tp = unwrap_optional(field_type)
        return isinstance(tp, type) and callable(getattr(tp, 'scan', None))

    def receive(self, field: FieldReference) -> Any:
        scanner = unwrap_optional(field.field_type)()
        field.set(scanner)
        return scanner

    def value(self, field_value: Any) -> Any:
        if isinstance(field_value, Valuer):
            return field_value.value()
        return field_value
