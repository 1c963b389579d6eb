from collections.abc import Callable
from dataclasses import dataclass

from dbmap.naming import default_column_name

__all__ = ['MappingOptions']


@dataclass(frozen=True)
class MappingOptions:
    """Options

    - tag: dataclass field metadata key holding the column name (default: `db`)
    - skip: column name sentinel that excludes a field from the mapping
    - namer: infers a column name for fields without one
    - threaded_stream: run `scan_stream` producers in their own thread. Set
      to False for drivers that refuse cross-thread cursor use (sqlite3
      connections opened with the default `check_same_thread=True`).
    """
    tag: str = 'db'
    skip: str = '-'
    namer: Callable[[str], str] = default_column_name
    threaded_stream: bool = True

    def __post_init__(self):
        if not self.tag:
            raise ValueError('tag must be a non-empty metadata key')
        if not self.skip:
            raise ValueError('skip sentinel must be a non-empty string')
        if not callable(self.namer):
            raise ValueError('namer must be callable')
