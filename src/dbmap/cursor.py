"""
Row cursor interfaces and a DB-API 2.0 (PEP-249) adapter.

The mapping engine consumes cursors through the small `Rows` protocol:

- columns(): ordered column names, stable for the cursor's lifetime
- next(): advance to the next row, False once exhausted
- scan(*dest): bind the current row's values into placeholders
- err(): the error that ended iteration, if any
- close(): release the cursor

`DbapiRows` provides that protocol on top of any DB-API cursor
(`sqlite3`, `psycopg`, ...).
"""
import logging
from typing import Any, Protocol, runtime_checkable

from dbmap.exceptions import ColumnListUnavailable, CursorScanError

logger = logging.getLogger(__name__)

__all__ = ['Row', 'Rows', 'DbapiRows']


@runtime_checkable
class Row(Protocol):
    def scan(self, *dest: Any) -> None:
        ...


@runtime_checkable
class Rows(Row, Protocol):
    def columns(self) -> list[str]:
        ...

    def next(self) -> bool:
        ...

    def err(self) -> BaseException | None:
        ...

    def close(self) -> None:
        ...


class DbapiRows:
    """Row cursor over an executed DB-API cursor.

        cursor = connection.cursor()
        cursor.execute('SELECT id, name FROM users')
        users = mapping.scan_all(DbapiRows(cursor))
    """

    def __init__(self, cursor: Any) -> None:
        self.dbapi_cursor = cursor
        self._current: tuple | None = None
        self._error: BaseException | None = None
        self._closed = False

    def columns(self) -> list[str]:
        """Column names from the cursor description.
        """
        description = self.dbapi_cursor.description
        if description is None:
            raise ColumnListUnavailable('cursor has no result set (description is None)')
        return [d[0] for d in description]

    def next(self) -> bool:
        """Fetch the next row. Fetch errors end iteration and are kept for err().
        """
        if self._closed or self._error is not None:
            return False
        try:
            self._current = self.dbapi_cursor.fetchone()
        except Exception as e:
            logger.debug(f'Fetch failed: {e}')
            self._error = e
            self._current = None
            return False
        return self._current is not None

    def scan(self, *dest: Any) -> None:
        """Bind the current row into the placeholders, position by position.
        """
        if self._current is None:
            raise CursorScanError('scan called without a current row')
        if len(dest) != len(self._current):
            raise CursorScanError(f'expected {len(self._current)} destination arguments in scan, not {len(dest)}')
        for i, (placeholder, value) in enumerate(zip(dest, self._current)):
            try:
                placeholder.scan(value)
            except Exception as e:
                raise CursorScanError(f'converting column index {i}: {e}') from e

    def err(self) -> BaseException | None:
        return self._error

    def close(self) -> None:
        """Close the underlying cursor once. Further calls are no-ops.
        """
        if self._closed:
            return
        self._closed = True
        self.dbapi_cursor.close()
