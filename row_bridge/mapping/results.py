"""Per-item outcomes of lenient mapping and key assignment paths."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class FieldFailure:
    """A field that could not be written; the rest of the item was processed."""

    property_name: str
    value: Any
    error: Exception

    @property
    def message(self) -> str:
        return f"{self.property_name}: {type(self.error).__name__}: {self.error}"


@dataclass
class MappingResult(Generic[T]):
    """Object built from one row plus the fields that were not written."""

    instance: T
    failures: list[FieldFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


@dataclass
class AssignmentResult(Generic[T]):
    """Keys written into one item plus the key fields that failed."""

    item: T
    assigned: dict[str, Any] = field(default_factory=dict)
    failures: list[FieldFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures
