"""Row-to-object mapper driven by column metadata.

Columns are read through a RowAccessor with the coercion chosen by the
field's annotation (integer, text or opaque) and written with setattr.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

import structlog

from row_bridge.core.enums import ColumnKind
from row_bridge.core.exceptions import MappingError, RowAccessError
from row_bridge.mapping.metadata import MetadataIndex, default_index, is_frozen
from row_bridge.mapping.results import FieldFailure, MappingResult

logger = structlog.get_logger()

T = TypeVar("T")

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


@runtime_checkable
class RowAccessor(Protocol):
    """Typed access to the columns of one fetched row."""

    def get_int(self, column_name: str) -> int | None:
        """Read the column as a 64-bit integer."""
        ...

    def get_str(self, column_name: str) -> str | None:
        """Read the column as a string."""
        ...

    def get_object(self, column_name: str) -> Any:
        """Read the column as the driver's native value."""
        ...


class DictRowAccessor:
    """RowAccessor over a row dict.

    Column names are matched exactly first, then case-insensitively.
    SQL NULL (None) is returned as None by every getter.
    """

    def __init__(self, row: Mapping[str, Any]) -> None:
        self._row = row
        self._folded: dict[str, str] | None = None

    def _raw(self, column_name: str) -> Any:
        if column_name in self._row:
            return self._row[column_name]
        if self._folded is None:
            self._folded = {str(k).lower(): k for k in self._row}
        key = self._folded.get(column_name.lower())
        if key is None:
            raise RowAccessError(column_name, "no such column in row")
        return self._row[key]

    def get_int(self, column_name: str) -> int | None:
        value = self._raw(column_name)
        if value is None:
            return None
        try:
            result = int(value)
        except (TypeError, ValueError) as e:
            raise RowAccessError(column_name, f"cannot convert {value!r} to integer") from e
        if not _INT64_MIN <= result <= _INT64_MAX:
            raise RowAccessError(column_name, f"{result} is outside the 64-bit range")
        return result

    def get_str(self, column_name: str) -> str | None:
        value = self._raw(column_name)
        if value is None:
            return None
        if isinstance(value, (bytes, bytearray, memoryview)):
            try:
                return bytes(value).decode("utf-8")
            except UnicodeDecodeError as e:
                raise RowAccessError(column_name, "binary value is not valid UTF-8") from e
        return value if isinstance(value, str) else str(value)

    def get_object(self, column_name: str) -> Any:
        return self._raw(column_name)


def _read(accessor: RowAccessor, column_name: str, kind: ColumnKind) -> Any:
    if kind is ColumnKind.INTEGER:
        return accessor.get_int(column_name)
    if kind is ColumnKind.TEXT:
        return accessor.get_str(column_name)
    return accessor.get_object(column_name)


class RowMapper(Generic[T]):
    """Maps rows to new instances of ``target_class``.

    The target must be constructible without arguments and mutable. A
    writer that rejects a value with TypeError or ValueError (a validating
    setter, a Pydantic model with ``validate_assignment``) is recorded as a
    FieldFailure and the remaining fields are still mapped. Any other writer
    error raises MappingError. Any accessor fault aborts the row as
    RowAccessError.

    Args:
        target_class: The class to instantiate for each row.
        index: Metadata index; the process-wide one by default.
    """

    def __init__(self, target_class: type[T], index: MetadataIndex | None = None) -> None:
        self._target_class = target_class
        self._index = default_index if index is None else index

    @property
    def target_class(self) -> type[T]:
        return self._target_class

    def _instantiate(self) -> T:
        cls = self._target_class
        if is_frozen(cls):
            raise MappingError(f"Cannot map rows to {cls.__qualname__}: instances are frozen")
        try:
            return cls()
        except Exception as e:
            raise MappingError(
                f"Cannot instantiate {cls.__qualname__} without arguments: {e}"
            ) from e

    def map_row_result(self, accessor: RowAccessor) -> MappingResult[T]:
        """Map one row and report the fields that could not be written."""
        metadata = self._index.metadata_for(self._target_class)
        instance = self._instantiate()
        result: MappingResult[T] = MappingResult(instance)

        for column in metadata:
            if not column.writable:
                continue
            try:
                value = _read(accessor, column.column_name, column.kind)
            except RowAccessError:
                raise
            except Exception as e:
                raise RowAccessError(column.column_name, str(e)) from e
            try:
                setattr(instance, column.property_name, value)
            except (TypeError, ValueError) as e:
                result.failures.append(FieldFailure(column.property_name, value, e))
            except Exception as e:
                raise MappingError(
                    f"Cannot write {self._target_class.__qualname__}.{column.property_name}: {e}"
                ) from e

        return result

    def from_row(self, accessor: RowAccessor) -> T:
        """Map one row to a new instance; unwritable fields are logged and skipped."""
        result = self.map_row_result(accessor)
        for failure in result.failures:
            logger.warning(
                "field_assignment_failed",
                target=self._target_class.__qualname__,
                field=failure.property_name,
                error=str(failure.error),
            )
        return result.instance

    def map_one(self, row: Mapping[str, Any]) -> T:
        """Map a single row dict to target_class instance."""
        return self.from_row(DictRowAccessor(row))

    def map_many(self, rows: list[dict[str, Any]]) -> list[T]:
        """Map all rows via map_one."""
        return [self.map_one(row) for row in rows]
