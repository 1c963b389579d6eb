"""
Mapping-specific exception classes.
"""
from typing import Any


class MappingError(Exception):
    """Base class for all dbmap errors.
    """


class NotARecordType(MappingError):
    """The type handed to the schema builder is not a record (dataclass) type.
    """

    def __init__(self, record_type: Any, reason: str | None = None) -> None:
        self.record_type = record_type
        detail = reason or f'argument is not a dataclass, actually is {record_type!r}'
        super().__init__(detail)


class DuplicateColumn(MappingError):
    """Two fields resolve to the same column name.
    """

    def __init__(self, column: str, record_type: Any = None) -> None:
        self.column = column
        self.record_type = record_type
        name = getattr(record_type, '__name__', record_type)
        super().__init__(f'duplicate mapping for {column!r} on {name}')


class UnsupportedField(MappingError):
    """No registered converter accepts the field's declared type.
    """

    def __init__(self, field_name: str, field_type: Any) -> None:
        self.field_name = field_name
        self.field_type = field_type
        super().__init__(f'unsupported field: {field_name} (type={field_type!r})')


class IncompatibleTarget(MappingError):
    """The scan target is not an instance of the mapping's record type.
    """


class ColumnListUnavailable(MappingError):
    """The cursor could not report its column list.
    """


class ScanFailure(MappingError):
    """The cursor failed to bind a column into its placeholder.

    Carries the placeholder index and receiver type when they could be
    recovered from the cursor's error message.
    """

    def __init__(self, index: int, message: str, receiver_type: type | None = None) -> None:
        self.index = index
        self.message = message
        self.receiver_type = receiver_type
        recv = getattr(receiver_type, '__name__', receiver_type)
        super().__init__(f'scan error on index {index}: {message} (recv: {recv})')


class DecodeFailure(MappingError):
    """A self-decoding value did not recognise the raw column value.
    """


class CursorScanError(MappingError):
    """Raised by the DB-API cursor adapter when a placeholder rejects a value.
    """
