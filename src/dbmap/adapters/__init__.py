"""
Field converters.

This package provides the following components:

- registry: the Converter base class and the priority-ordered ConverterRegistry
- reference: scan placeholders (FieldReference, Discard)
- native: scalar and self-decoding (Scanner) converters
- json_text: JSON object columns decoded into mapping fields
- type_conversion: parameter normalisation for the encoding direction

Converters registered later take priority over those registered earlier;
the built-in priority is scanner, native, JSON.
"""
from dbmap.adapters.json_text import JsonConverter, JsonScanner
from dbmap.adapters.native import NativeConverter, ScannerConverter
from dbmap.adapters.reference import Discard, FieldReference, convert_assign
from dbmap.adapters.registry import Converter, ConverterRegistry, Scanner
from dbmap.adapters.registry import Valuer
from dbmap.adapters.type_conversion import TypeConverter

__all__ = [
    'Converter',
    'ConverterRegistry',
    'Discard',
    'FieldReference',
    'JsonConverter',
    'JsonScanner',
    'NativeConverter',
    'Scanner',
    'ScannerConverter',
    'TypeConverter',
    'Valuer',
    'convert_assign',
]
