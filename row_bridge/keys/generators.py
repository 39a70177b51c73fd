"""Primary key generators.

QueryKeyGenerator asks the database (a sequence or a key table);
UuidKeyGenerator and SequenceKeyGenerator need no external system.
"""

from __future__ import annotations

import itertools
import threading
import uuid
from decimal import Decimal
from typing import Any, Protocol, TypeVar, runtime_checkable

from row_bridge.core.enums import Dialect
from row_bridge.core.exceptions import KeyGenerationError
from row_bridge.core.executor import ParameterizedExecutor
from row_bridge.core.statements import StatementLoaderRegistry, default_registry

K = TypeVar("K", covariant=True)


@runtime_checkable
class KeyGenerator(Protocol[K]):
    """Key generator protocol."""

    def generate_key(self) -> K:
        """Return a new primary key value."""
        ...


class QueryKeyGenerator:
    """Generates integer keys by running a parameterless query.

    The query must return exactly one row with exactly one integer column,
    e.g. ``SELECT person_seq.NEXTVAL FROM dual``.

    Args:
        executor: Executor the query runs on.
        sql: The key query.
    """

    def __init__(self, executor: ParameterizedExecutor, sql: str) -> None:
        self._executor = executor
        self._sql = sql

    @classmethod
    def from_statement(
        cls,
        executor: ParameterizedExecutor,
        owner: type,
        name: str,
        dialect: Dialect,
        registry: StatementLoaderRegistry | None = None,
    ) -> QueryKeyGenerator:
        """Create a generator whose query is an externalized statement of ``owner``."""
        if registry is None:
            registry = default_registry
        sql = registry.get_loader(owner, dialect).load(name)
        return cls(executor, sql)

    @property
    def sql(self) -> str:
        return self._sql

    def generate_key(self) -> int:
        try:
            rows = self._executor.query_rows(self._sql, {})
        except Exception as e:
            raise KeyGenerationError(f"Key query failed: {e}") from e

        if len(rows) != 1:
            raise KeyGenerationError(f"Key query returned {len(rows)} rows (expected 1)")
        row = rows[0]
        if len(row) != 1:
            raise KeyGenerationError(f"Key query returned {len(row)} columns (expected 1)")

        value: Any = next(iter(row.values()))
        # NUMBER columns may arrive as Decimal
        if isinstance(value, Decimal) and value == value.to_integral_value():
            value = int(value)
        if isinstance(value, bool) or not isinstance(value, int):
            raise KeyGenerationError(f"Key query returned non-integer value {value!r}")
        return int(value)


class UuidKeyGenerator:
    """Generates random UUID strings."""

    def generate_key(self) -> str:
        return str(uuid.uuid4())


class SequenceKeyGenerator:
    """Generates increasing integers in process. Thread-safe."""

    def __init__(self, start: int = 1) -> None:
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def generate_key(self) -> int:
        with self._lock:
            return next(self._counter)
