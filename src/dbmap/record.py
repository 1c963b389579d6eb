"""
Record type introspection.

Record types are plain (non-frozen) dataclasses. This module turns a record
class into an ordered tuple of `RecordField` descriptors once, so the schema
builder never touches `dataclasses` or `typing` internals directly, and
creates zero-valued record instances for the streaming scanner.
"""
import dataclasses
import functools
import logging
import types
import typing
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

__all__ = [
    'RecordField',
    'column',
    'describe_record',
    'is_record_type',
    'new_record',
    'same_shape',
    'unwrap_optional',
]


@dataclass(frozen=True)
class RecordField:
    """Static description of one record field.

    `column` is the explicit column name from the field metadata, or None
    when the field carries no annotation. `embedded` is set for untagged
    fields whose type is itself a record type.
    """
    name: str
    type: Any
    column: str | None = None
    embedded: bool = False
    skip: bool = False


def column(name: str | None = None, *, skip: bool = False, tag: str = 'db',
           **kwargs: Any) -> Any:
    """Declare a dataclass field with an explicit column name.

    Thin wrapper over `dataclasses.field`; remaining keyword arguments are
    passed through.

        @dataclass
        class User:
            id: int = column('user_id')
            password: str = column(skip=True, default='')
    """
    if name is None and not skip:
        raise ValueError('column() needs a name unless skip=True')
    metadata = dict(kwargs.pop('metadata', None) or {})
    metadata[tag] = '-' if skip else name
    return dataclasses.field(metadata=metadata, **kwargs)


def is_record_type(tp: Any) -> bool:
    """Check whether `tp` is a dataclass class (not an instance).
    """
    return isinstance(tp, type) and dataclasses.is_dataclass(tp)


def unwrap_optional(tp: Any) -> Any:
    """Return `X` for `Optional[X]` / `X | None`, otherwise `tp` unchanged.
    """
    if typing.get_origin(tp) in {typing.Union, types.UnionType}:
        args = [a for a in typing.get_args(tp) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return tp


def _type_hints(record_type: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(record_type)
    except (NameError, TypeError) as e:
        logger.debug(f'Could not resolve annotations of {record_type.__name__}: {e}')
        return {}


@functools.cache
def describe_record(record_type: type, tag: str = 'db', skip: str = '-') -> tuple[RecordField, ...]:
    """Describe the fields of a record type in declaration order.
    """
    hints = _type_hints(record_type)
    described = []
    for f in dataclasses.fields(record_type):
        field_type = hints.get(f.name, f.type)
        name = f.metadata.get(tag) or None
        described.append(RecordField(
            name=f.name,
            type=field_type,
            column=None if name == skip else name,
            embedded=name is None and is_record_type(field_type),
            skip=name == skip,
        ))
    return tuple(described)


def same_shape(a: type, b: type) -> bool:
    """Check whether two record types have identical field names and types.
    """
    if a is b:
        return True
    if not (is_record_type(a) and is_record_type(b)):
        return False
    shape = lambda t: [(f.name, f.type) for f in describe_record(t)]
    return shape(a) == shape(b)


def new_record(record_type: type) -> Any:
    """Create a zero-valued instance of a record type.

    The dataclass `__init__` is bypassed so records with required fields can
    be created without arguments. Fields take their declared default, their
    default factory, a zero-valued sub-record for embedded record types, or
    None.
    """
    hints = _type_hints(record_type)
    obj = object.__new__(record_type)
    for f in dataclasses.fields(record_type):
        if f.default is not dataclasses.MISSING:
            value = f.default
        elif f.default_factory is not dataclasses.MISSING:
            value = f.default_factory()
        elif is_record_type(hints.get(f.name, f.type)):
            value = new_record(hints.get(f.name, f.type))
        else:
            value = None
        object.__setattr__(obj, f.name, value)
    return obj
