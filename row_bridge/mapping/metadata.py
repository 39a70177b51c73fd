"""Column metadata extraction and caching.

Record types declare mapped fields with ``typing.Annotated`` markers:

    @dataclass
    class Person:
        id: Annotated[int | None, Column("PERSON_ID"), Id()] = None
        name: Annotated[str | None, Column("NAME")] = None
        nickname: str | None = None  # not mapped

Dataclasses, Pydantic models and plain annotated classes are supported.
Types that cannot carry annotations are registered explicitly with
``MetadataIndex.register``.
"""

from __future__ import annotations

import dataclasses
import inspect
import threading
import types
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Annotated, Any, ClassVar, Union, get_args, get_origin, get_type_hints

import structlog

from row_bridge.core.enums import ColumnKind
from row_bridge.core.exceptions import MetadataError

logger = structlog.get_logger()


@dataclass(frozen=True)
class Column:
    """Maps a field to the named column."""

    name: str

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("Column name must not be empty")


@dataclass(frozen=True)
class Id:
    """Marks a mapped field as (part of) the primary key."""


@dataclass(frozen=True)
class ColumnMetadata:
    """Mapping of one record field to one column."""

    property_name: str
    column_name: str
    primary_key: bool = False
    kind: ColumnKind = ColumnKind.OTHER
    readable: bool = True
    writable: bool = True


@dataclass(frozen=True)
class TypeMetadata:
    """Ordered column metadata of one record type."""

    target_class: type
    columns: tuple[ColumnMetadata, ...]

    def __iter__(self) -> Iterator[ColumnMetadata]:
        return iter(self.columns)

    def __len__(self) -> int:
        return len(self.columns)

    @property
    def primary_keys(self) -> tuple[ColumnMetadata, ...]:
        return tuple(c for c in self.columns if c.primary_key)

    @property
    def column_names(self) -> list[str]:
        return [c.column_name for c in self.columns]

    def by_property(self, property_name: str) -> ColumnMetadata | None:
        for column in self.columns:
            if column.property_name == property_name:
                return column
        return None

    def by_column(self, column_name: str) -> ColumnMetadata | None:
        for column in self.columns:
            if column.column_name == column_name:
                return column
        return None


def column_kind(hint: Any) -> ColumnKind:
    """Derive the coercion kind from a type annotation.

    ``int`` maps to INTEGER (``bool`` does not), ``str`` to TEXT, anything
    else to OTHER. Optional types are judged by their inner type.
    """
    if get_origin(hint) is Annotated:
        hint = get_args(hint)[0]

    if get_origin(hint) in (Union, types.UnionType):
        args = [a for a in get_args(hint) if a is not type(None)]
        if len(args) != 1:
            return ColumnKind.OTHER
        hint = args[0]

    if get_origin(hint) is not None or not isinstance(hint, type) or issubclass(hint, bool):
        return ColumnKind.OTHER
    if issubclass(hint, int):
        return ColumnKind.INTEGER
    if issubclass(hint, str):
        return ColumnKind.TEXT
    return ColumnKind.OTHER


def is_frozen(cls: type) -> bool:
    """True for frozen dataclasses and Pydantic models configured frozen."""
    if dataclasses.is_dataclass(cls):
        return bool(cls.__dataclass_params__.frozen)  # type: ignore[attr-defined]
    model_config = getattr(cls, "model_config", None)
    if isinstance(model_config, dict):
        return bool(model_config.get("frozen", False))
    return False


def _accessors(cls: type, name: str) -> tuple[bool, bool]:
    """Return (readable, writable) for the attribute ``name`` of ``cls``."""
    attr = inspect.getattr_static(cls, name, None)
    if isinstance(attr, property):
        return attr.fget is not None, attr.fset is not None
    if isinstance(attr, (types.FunctionType, classmethod, staticmethod)):
        raise MetadataError(cls.__qualname__, f"'{name}' is a method, not a field")
    return True, not is_frozen(cls)


def _field_annotations(cls: type) -> dict[str, tuple[Any, tuple[Any, ...]]]:
    """Map field name to (type, Annotated extras).

    Pydantic models are read from ``model_fields``, which keeps the Annotated
    extras in ``FieldInfo.metadata``; everything else goes through
    ``get_type_hints``.
    """
    model_fields = getattr(cls, "model_fields", None)
    if isinstance(model_fields, dict):
        return {
            name: (info.annotation, tuple(info.metadata)) for name, info in model_fields.items()
        }

    try:
        hints = get_type_hints(cls, include_extras=True)
    except Exception as e:
        raise MetadataError(cls.__qualname__, f"cannot resolve annotations: {e}") from e

    result: dict[str, tuple[Any, tuple[Any, ...]]] = {}
    for name, hint in hints.items():
        if get_origin(hint) is ClassVar:
            continue
        if get_origin(hint) is Annotated:
            args = get_args(hint)
            result[name] = (args[0], tuple(args[1:]))
        else:
            result[name] = (hint, ())
    return result


def _validate(cls: type, columns: Iterable[ColumnMetadata]) -> tuple[ColumnMetadata, ...]:
    result = tuple(columns)
    seen_properties: set[str] = set()
    seen_columns: set[str] = set()
    for column in result:
        if column.property_name in seen_properties:
            raise MetadataError(
                cls.__qualname__, f"field '{column.property_name}' is mapped twice"
            )
        if column.column_name in seen_columns:
            raise MetadataError(
                cls.__qualname__, f"column '{column.column_name}' is mapped by two fields"
            )
        seen_properties.add(column.property_name)
        seen_columns.add(column.column_name)
    return result


def build_metadata(cls: type) -> TypeMetadata:
    """Introspect the annotations of ``cls`` into TypeMetadata.

    Raises:
        MetadataError: If the annotations cannot be resolved or the markers
            are inconsistent.
    """
    if not isinstance(cls, type):
        raise MetadataError(repr(cls), "not a class")

    columns: list[ColumnMetadata] = []
    for name, (hint, extras) in _field_annotations(cls).items():
        markers = [m for m in extras if isinstance(m, Column)]
        is_id = any(isinstance(m, Id) for m in extras)
        if not markers:
            if is_id:
                raise MetadataError(cls.__qualname__, f"'{name}' is marked Id without a Column")
            continue
        if len(markers) > 1:
            raise MetadataError(cls.__qualname__, f"'{name}' has more than one Column marker")

        readable, writable = _accessors(cls, name)
        if not readable and not writable:
            continue
        columns.append(
            ColumnMetadata(
                property_name=name,
                column_name=markers[0].name,
                primary_key=is_id,
                kind=column_kind(hint),
                readable=readable,
                writable=writable,
            )
        )

    return TypeMetadata(cls, _validate(cls, columns))


class MetadataIndex:
    """Per-type cache of TypeMetadata.

    Metadata is built once per type and kept for the lifetime of the index.
    A missing entry is built under the index lock, so concurrent first
    requests for one type run a single build and all see the same result.
    """

    def __init__(self) -> None:
        self._cache: dict[type, TypeMetadata] = {}
        self._lock = threading.Lock()

    def metadata_for(self, cls: type) -> TypeMetadata:
        """Return the cached metadata of ``cls``, building it on first use."""
        metadata = self._cache.get(cls)
        if metadata is not None:
            return metadata

        with self._lock:
            metadata = self._cache.get(cls)
            if metadata is None:
                metadata = build_metadata(cls)
                self._cache[cls] = metadata
                logger.debug(
                    "metadata_built",
                    target=cls.__qualname__,
                    columns=metadata.column_names,
                )
            return metadata

    def register(self, cls: type, columns: Iterable[ColumnMetadata]) -> TypeMetadata:
        """Install an explicit column table for ``cls``, replacing discovery.

        Must happen before the first lookup of ``cls``; cached metadata never
        changes.

        Raises:
            MetadataError: If ``cls`` already has metadata in this index or the
                columns are inconsistent.
        """
        metadata = TypeMetadata(cls, _validate(cls, columns))
        with self._lock:
            if cls in self._cache:
                raise MetadataError(cls.__qualname__, "metadata is already registered")
            self._cache[cls] = metadata
        return metadata

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __contains__(self, cls: object) -> bool:
        return cls in self._cache

    def __len__(self) -> int:
        return len(self._cache)


default_index = MetadataIndex()


def metadata_for(cls: type) -> TypeMetadata:
    """Return metadata of ``cls`` from the process-wide index."""
    return default_index.metadata_for(cls)
