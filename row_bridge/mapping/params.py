"""Object-to-parameter-map mapper driven by column metadata."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Generic, TypeVar

from row_bridge.core.exceptions import MappingError
from row_bridge.mapping.metadata import MetadataIndex, default_index

T = TypeVar("T")


class ParamsMapper(Generic[T]):
    """Builds named parameter maps (column name -> value) from records.

    Args:
        index: Metadata index; the process-wide one by default.
    """

    def __init__(self, index: MetadataIndex | None = None) -> None:
        self._index = default_index if index is None else index

    def to_parameter_map(self, item: T) -> dict[str, Any]:
        """Read every readable mapped field of ``item`` into a dict.

        Raises:
            MappingError: If a getter raises.
        """
        metadata = self._index.metadata_for(type(item))
        result: dict[str, Any] = {}
        for column in metadata:
            if not column.readable:
                continue
            try:
                result[column.column_name] = getattr(item, column.property_name)
            except Exception as e:
                raise MappingError(
                    f"Cannot read {type(item).__qualname__}.{column.property_name}: {e}"
                ) from e
        return result

    def to_parameter_maps(self, items: Iterable[T]) -> list[dict[str, Any]]:
        """One parameter map per item, in input order."""
        return [self.to_parameter_map(item) for item in items]
