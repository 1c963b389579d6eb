"""
Loaders turning scanned records into other containers.
"""
from typing import Any

import pandas as pd

__all__ = ['column_types', 'dataframe_loader', 'iterdict_loader']


def column_types(mapping: Any) -> dict[str, str]:
    """Declared field type name per mapped column."""
    return {
        col: getattr(mapping.field_type(col), '__name__', str(mapping.field_type(col)))
        for col in mapping.columns
    }


def iterdict_loader(mapping: Any, records: list) -> list[dict]:
    """Minimal loader: one `{column: field value}` dict per record.
    """
    return [
        {col: mapping.get(record, col) for col in mapping.columns}
        for record in records
    ]


def dataframe_loader(mapping: Any, records: list) -> pd.DataFrame:
    """Standard pandas DataFrame loader.

    Always returns a DataFrame, never None, with columns preserved for empty
    results. Includes type information in the DataFrame.attrs attribute.
    """
    columns = list(mapping.columns)
    if not records:
        df = pd.DataFrame(columns=columns)
    else:
        df = pd.DataFrame.from_records(iterdict_loader(mapping, records), columns=columns)
    df.attrs['column_types'] = column_types(mapping)
    return df
