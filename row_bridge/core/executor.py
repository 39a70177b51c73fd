"""Parameterized statement execution over a DB-API connection.

The mapping layer only needs a narrow executor: run a statement with named
parameters and either read rows back or count affected rows. Connection
pooling and transactions stay with the caller.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from row_bridge.core.exceptions import ParameterBindingError
from row_bridge.core.params import as_batch_values, normalize_params


@runtime_checkable
class ParameterizedExecutor(Protocol):
    """Executor protocol consumed by key generators and DAOs."""

    def query_rows(self, sql: str, params: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        """Run a query and return every row as a dict."""
        ...

    def query_scalar(self, sql: str, params: Mapping[str, Any] | None = None) -> Any:
        """Run a query and return the first column of the first row, or None."""
        ...

    def update(self, sql: str, params: Mapping[str, Any] | None = None) -> int:
        """Run a write statement and return the affected row count."""
        ...

    def batch_update(self, sql: str, batch: Sequence[Mapping[str, Any]]) -> list[int]:
        """Run a write statement once per parameter map."""
        ...


def rows_from_cursor(cursor: Any) -> list[dict[str, Any]]:
    """Convert cursor results to list of dicts.

    Handles both tuple-like rows and dict-like rows from different drivers.
    """
    if cursor.description is None:
        return []
    columns = [desc[0] for desc in cursor.description]
    rows = cursor.fetchall()
    if not rows:
        return []

    first_row = rows[0]
    if isinstance(first_row, dict):
        return [dict(row) for row in rows]

    # Tuple-like rows (sqlite3.Row included), zip with columns
    return [dict(zip(columns, tuple(row), strict=True)) for row in rows]


def _label(sql: str) -> str:
    first_line = sql.strip().splitlines()[0] if sql.strip() else ""
    return first_line[:60]


class ConnectionExecutor:
    """ParameterizedExecutor over a single DB-API connection.

    Statements use `:name` placeholders; they are rewritten for drivers
    with the 'pyformat' paramstyle. Writes are committed unless
    ``autocommit`` is False.

    Args:
        connection: Open DB-API 2.0 connection.
        paramstyle: 'named' (sqlite3, oracledb) or 'pyformat' (psycopg).
        autocommit: Commit after update and batch_update.
    """

    def __init__(self, connection: Any, paramstyle: str = "named", autocommit: bool = True) -> None:
        self._connection = connection
        self._paramstyle = paramstyle
        self._autocommit = autocommit

    @property
    def connection(self) -> Any:
        return self._connection

    def _execute(self, sql: str, params: Mapping[str, Any] | None) -> Any:
        statement = normalize_params(sql, self._paramstyle)
        cursor = self._connection.cursor()
        try:
            cursor.execute(statement, dict(params or {}))
        except Exception as e:
            raise ParameterBindingError(_label(sql), str(e)) from e
        return cursor

    def query_rows(self, sql: str, params: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        cursor = self._execute(sql, params)
        return rows_from_cursor(cursor)

    def query_scalar(self, sql: str, params: Mapping[str, Any] | None = None) -> Any:
        cursor = self._execute(sql, params)
        row = cursor.fetchone()
        if row is None:
            return None

        # Handle dict rows (e.g., psycopg dict_row)
        if isinstance(row, dict):
            return next(iter(row.values()))

        return row[0]

    def update(self, sql: str, params: Mapping[str, Any] | None = None) -> int:
        cursor = self._execute(sql, params)
        if self._autocommit:
            self._connection.commit()
        return int(cursor.rowcount)

    def batch_update(self, sql: str, batch: Sequence[Mapping[str, Any]]) -> list[int]:
        counts = []
        for values in as_batch_values(batch):
            cursor = self._execute(sql, values)
            counts.append(int(cursor.rowcount))
        if self._autocommit:
            self._connection.commit()
        return counts
