"""
Scan placeholders.

Every placeholder handed to a cursor's scan primitive exposes `scan(value)`.
`FieldReference` writes straight into a record attribute, `Discard` swallows
columns the mapping does not know about.
"""
import datetime
from typing import Any

import dateutil.parser
import numpy as np

from dbmap.record import unwrap_optional

__all__ = ['FieldReference', 'Discard', 'convert_assign']


def convert_assign(value: Any, field_type: Any) -> Any:
    """Driver-level assignment conversion of a raw column value.

    Mirrors what a driver does when storing a column into a typed
    destination: buffers become bytes, ISO text becomes a date or datetime
    for temporal fields, NumPy scalar fields are cast to their declared
    type. Anything else is stored unchanged.

    >>> convert_assign(memoryview(b'abc'), bytes)
    b'abc'
    >>> convert_assign('2023-05-15T14:30:45', datetime.datetime)
    datetime.datetime(2023, 5, 15, 14, 30, 45)
    >>> convert_assign('2023-05-15', datetime.date)
    datetime.date(2023, 5, 15)
    >>> convert_assign(1, bool)
    True
    >>> convert_assign(None, int) is None
    True
    """
    if value is None:
        return None

    tp = unwrap_optional(field_type)
    if not isinstance(tp, type):
        return value

    if isinstance(value, memoryview):
        value = value.tobytes()

    if isinstance(value, str) and issubclass(tp, datetime.date):
        parsed = dateutil.parser.isoparse(value)
        if issubclass(tp, datetime.datetime):
            return parsed
        return parsed.date()

    if issubclass(tp, bool) and isinstance(value, int | np.integer):
        return bool(value)

    if issubclass(tp, np.generic) and not isinstance(value, tp):
        return tp(value)

    return value


class FieldReference:
    """Handle on one attribute of a (possibly nested) record instance.
    """

    __slots__ = ('owner', 'name', 'field_type')

    def __init__(self, owner: Any, name: str, field_type: Any) -> None:
        self.owner = owner
        self.name = name
        self.field_type = field_type

    def get(self) -> Any:
        return getattr(self.owner, self.name)

    def set(self, value: Any) -> None:
        setattr(self.owner, self.name, value)

    def scan(self, value: Any) -> None:
        self.set(convert_assign(value, self.field_type))

    def __repr__(self) -> str:
        return f'FieldReference({type(self.owner).__name__}.{self.name})'


class Discard:
    """Placeholder for a column that is not part of the mapping.
    """

    __slots__ = ()

    def scan(self, value: Any) -> None:
        pass

    def __repr__(self) -> str:
        return 'Discard()'


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
