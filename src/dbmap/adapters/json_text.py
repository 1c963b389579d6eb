"""
JSON column support.

Fields declared as a string-keyed mapping (`dict`, a dict subclass,
`dict[str, Any]`, `Mapping[str, Any]`) are decoded from JSON text or JSON
bytes, and encoded back to JSON text when producing query parameters.
"""
import collections.abc
import json
import typing
from typing import Any

from dbmap.adapters.reference import FieldReference
from dbmap.adapters.registry import Converter
from dbmap.exceptions import DecodeFailure
from dbmap.record import unwrap_optional

__all__ = ['JsonConverter', 'JsonScanner']

_MAPPING_ORIGINS = {dict, collections.abc.Mapping, collections.abc.MutableMapping}


class JsonScanner(dict):
    """Decodes a JSON object column into itself.

    A SQL NULL or a JSON `null` document leaves the scanner empty with
    `null` set.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.null = False

    def scan(self, value: Any) -> None:
        if value is None:
            self.clear()
            self.null = True
            return
        if isinstance(value, memoryview):
            value = value.tobytes()
        if not isinstance(value, str | bytes | bytearray):
            raise DecodeFailure(f'can not decode json from {value!r}')
        try:
            decoded = json.loads(value)
        except ValueError as e:
            raise DecodeFailure(f'invalid json: {e}') from e
        if decoded is None:
            self.clear()
            self.null = True
            return
        if not isinstance(decoded, dict):
            raise DecodeFailure(f'expected a json object, got {type(decoded).__name__}')
        self.clear()
        self.update(decoded)
        self.null = False

    def value(self) -> str:
        return json.dumps(self)


def _is_plain_dict_class(tp: Any) -> bool:
    return isinstance(tp, type) and issubclass(tp, dict)


class JsonConverter(Converter):
    """Decode JSON columns into string-keyed mapping fields.
    """

    def accepts(self, field_type: Any) -> bool:
        tp = unwrap_optional(field_type)
        origin = typing.get_origin(tp)
        if origin in _MAPPING_ORIGINS:
            args = typing.get_args(tp)
            return not args or (len(args) == 2 and args[0] is str and args[1] is Any)
        return _is_plain_dict_class(tp)

    def receive(self, field: FieldReference) -> JsonScanner:
        return JsonScanner()

    def copy(self, field: FieldReference, scanned: JsonScanner) -> None:
        if scanned.null:
            field.set(None)
            return
        tp = unwrap_optional(field.field_type)
        factory = tp if _is_plain_dict_class(tp) else dict
        field.set(factory(scanned))

    def value(self, field_value: Any) -> str | None:
        if field_value is None:
            return None
        return json.dumps(field_value)
