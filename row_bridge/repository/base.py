"""DAO base class.

Thin wrapper over an executor, the statement loaders of the concrete DAO
class and the metadata-driven mappers. Subclasses define the data access
methods; statements live in a ``sql`` directory next to the subclass module.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, TypeVar

from row_bridge.core.enums import Dialect
from row_bridge.core.exceptions import MultipleRowsError
from row_bridge.core.executor import ParameterizedExecutor
from row_bridge.core.statements import StatementLoader, StatementLoaderRegistry, default_registry
from row_bridge.mapping.metadata import MetadataIndex, default_index
from row_bridge.mapping.params import ParamsMapper
from row_bridge.mapping.protocol import Mapper
from row_bridge.mapping.rows import RowMapper

T = TypeVar("T")


class Dao:
    """Base DAO class.

    Args:
        executor: Executor statements run on.
        dialect: SQL dialect used to resolve statements.
        registry: Statement loader registry; the process-wide one by default.
        index: Metadata index; the process-wide one by default.
    """

    def __init__(
        self,
        executor: ParameterizedExecutor,
        dialect: Dialect,
        registry: StatementLoaderRegistry | None = None,
        index: MetadataIndex | None = None,
    ) -> None:
        self.executor = executor
        self.dialect = dialect
        self._registry = default_registry if registry is None else registry
        self._index = default_index if index is None else index
        self._params_mapper: ParamsMapper[Any] = ParamsMapper(self._index)

    @property
    def statements(self) -> StatementLoader:
        """Loader for the statements owned by this DAO class."""
        return self._registry.get_loader(type(self), self.dialect)

    def sql(self, name: str) -> str:
        """SQL text of the statement ``name``."""
        return self.statements.load(name)

    def row_mapper(self, target_class: type[T]) -> RowMapper[T]:
        return RowMapper(target_class, self._index)

    def fetch_all(
        self,
        name: str,
        target_class: type[T],
        params: Mapping[str, Any] | None = None,
        mapper: Mapper[T] | None = None,
    ) -> list[T]:
        """Run a query and map every row to ``target_class``.

        A custom ``mapper`` replaces the metadata-driven row mapper.
        """
        rows = self.executor.query_rows(self.sql(name), params)
        return (mapper or self.row_mapper(target_class)).map_many(rows)

    def fetch_one(
        self,
        name: str,
        target_class: type[T],
        params: Mapping[str, Any] | None = None,
        mapper: Mapper[T] | None = None,
    ) -> T | None:
        """Run a query expected to return zero or one row.

        Raises:
            MultipleRowsError: If more than one row matches.
        """
        rows = self.executor.query_rows(self.sql(name), params)
        if not rows:
            return None
        if len(rows) > 1:
            raise MultipleRowsError(name, len(rows))
        return (mapper or self.row_mapper(target_class)).map_one(rows[0])

    def insert(self, name: str, item: Any) -> int:
        """Run a write statement with the parameters mapped from ``item``."""
        return self.executor.update(self.sql(name), self._params_mapper.to_parameter_map(item))

    def insert_all(self, name: str, items: Iterable[Any]) -> list[int]:
        """Run a write statement once per item."""
        batch = self._params_mapper.to_parameter_maps(items)
        return self.executor.batch_update(self.sql(name), batch)
