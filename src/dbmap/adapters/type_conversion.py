"""
Query parameter normalisation.

Values read from record fields may be NumPy scalars or pandas missing-value
markers (for example after a round trip through `Mapping.scan_frame`).
DB-API drivers only understand plain Python values, so every encoded field
goes through `TypeConverter` before it is bound:

1. NumPy scalars become the equivalent Python scalar
2. NaN, NaT and pandas NA become None (SQL NULL)
3. pandas Timestamps become `datetime.datetime`
4. Binary buffers become `bytes`

Usage:
    params = TypeConverter.convert_params(mapping.values(record))
    cursor.execute(sql, params)
"""
import datetime
import logging
import math
from typing import Any

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

__all__ = ['TypeConverter']

_EPOCH = datetime.datetime(1970, 1, 1)


def _convert_numpy_value(val: np.generic) -> Any:
    """Unwrap a NumPy scalar.

    >>> _convert_numpy_value(np.int16(42))
    42
    >>> _convert_numpy_value(np.float64('nan')) is None
    True
    >>> _convert_numpy_value(np.datetime64('2023-01-15T10:30:00'))
    datetime.datetime(2023, 1, 15, 10, 30)
    >>> _convert_numpy_value(np.datetime64('NaT')) is None
    True
    """
    if isinstance(val, np.datetime64):
        if np.isnat(val):
            return None
        micros = int(val.astype('datetime64[us]').astype(np.int64))
        return _EPOCH + datetime.timedelta(microseconds=micros)

    if isinstance(val, np.floating) and np.isnan(val):
        return None

    return val.item()


class TypeConverter:
    """Normalise encoded field values into DB-API parameters."""

    @staticmethod
    def convert_value(value: Any) -> Any:
        """Convert one encoded field value

        Args:
            value: Output of a converter's `value()`

        Returns
            A plain Python value, or None for missing values
        """
        if value is None or value is pd.NaT or value is pd.NA:
            return None

        if isinstance(value, np.generic):
            return _convert_numpy_value(value)

        if isinstance(value, float) and math.isnan(value):
            return None

        if isinstance(value, pd.Timestamp):
            return value.to_pydatetime()

        if isinstance(value, memoryview | bytearray):
            return bytes(value)

        return value

    @staticmethod
    def convert_params(params: Any) -> Any:
        """Convert a parameter collection, keeping its shape

        Args:
            params: dict, list or tuple of values, or a single value

        Returns
            The same kind of collection with every value converted
        """
        if isinstance(params, dict):
            return {name: TypeConverter.convert_value(v) for name, v in params.items()}
        if isinstance(params, list | tuple):
            return type(params)(map(TypeConverter.convert_value, params))
        logger.debug(f'Converting scalar parameter of type {type(params).__name__}')
        return TypeConverter.convert_value(params)


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
