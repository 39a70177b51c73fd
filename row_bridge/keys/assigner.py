"""Primary key assignment.

Two ways to put generated keys into records:

* by field name - ``assign_id(item, "id")`` writes one key from the
  configured generator; failures raise KeyAssignmentError.
* by ``Id`` marker - ``assign_ids(items, generator)`` fills every Id field of
  every item; failures are recorded per field and never raised.

Records are modified in place and the given objects are returned.
"""

from __future__ import annotations

import dataclasses
import inspect
import types
from collections.abc import Collection
from typing import Any, ClassVar, Generic, TypeVar, get_origin

import structlog

from row_bridge.core.enums import Dialect
from row_bridge.core.exceptions import KeyAssignmentError, KeyGenerationError
from row_bridge.core.executor import ParameterizedExecutor
from row_bridge.core.statements import StatementLoaderRegistry
from row_bridge.keys.generators import KeyGenerator, QueryKeyGenerator
from row_bridge.mapping.metadata import MetadataIndex, default_index, is_frozen
from row_bridge.mapping.results import AssignmentResult, FieldFailure

logger = structlog.get_logger()

T = TypeVar("T")
C = TypeVar("C", bound=Collection[Any])


def _is_writable(cls: type, name: str) -> bool:
    attr = inspect.getattr_static(cls, name, None)
    if isinstance(attr, property):
        return attr.fset is not None
    if isinstance(attr, (types.FunctionType, classmethod, staticmethod)):
        return False
    if is_frozen(cls):
        return False
    return True


def _is_class_var(annotation: Any) -> bool:
    if isinstance(annotation, str):
        return annotation.startswith(("ClassVar", "typing.ClassVar"))
    return annotation is ClassVar or get_origin(annotation) is ClassVar


def writable_attributes(item: Any) -> list[str]:
    """Names of the attributes of ``item`` that accept assignment.

    Collected from dataclass fields, Pydantic fields, class annotations,
    properties with a setter and instance attributes. Class variables,
    dunder names and the ``model_`` namespace of Pydantic models are left out.
    """
    cls = type(item)
    names: dict[str, None] = {}

    if dataclasses.is_dataclass(cls):
        names.update((f.name, None) for f in dataclasses.fields(cls))
    model_fields = getattr(cls, "model_fields", None)
    is_model = isinstance(model_fields, dict)
    if is_model:
        names.update((name, None) for name in model_fields)
    for klass in reversed(cls.__mro__):
        names.update(
            (name, None)
            for name, annotation in inspect.get_annotations(klass).items()
            if not _is_class_var(annotation)
        )
        names.update(
            (name, None) for name, attr in vars(klass).items() if isinstance(attr, property)
        )
    names.update((name, None) for name in getattr(item, "__dict__", {}))

    return [
        name
        for name in names
        if not name.startswith("__")
        and not (is_model and name.startswith("model_"))
        and _is_writable(cls, name)
    ]


class PrimaryKeyAssigner(Generic[T]):
    """Writes generated primary keys into records.

    Args:
        generator: Generator used by new_id, assign_id and assign_ids_by_name.
        index: Metadata index used to find Id fields.
    """

    def __init__(self, generator: KeyGenerator[Any], index: MetadataIndex | None = None) -> None:
        self._generator = generator
        self._index = default_index if index is None else index

    @classmethod
    def from_statement(
        cls,
        executor: ParameterizedExecutor,
        owner: type,
        name: str,
        dialect: Dialect,
        registry: StatementLoaderRegistry | None = None,
        index: MetadataIndex | None = None,
    ) -> PrimaryKeyAssigner[T]:
        """Create an assigner backed by an externalized key query of ``owner``."""
        generator = QueryKeyGenerator.from_statement(executor, owner, name, dialect, registry)
        return cls(generator, index)

    @property
    def generator(self) -> KeyGenerator[Any]:
        return self._generator

    def new_id(self) -> Any:
        """Return one new key from the configured generator.

        Raises:
            KeyGenerationError: If the generator fails.
        """
        try:
            return self._generator.generate_key()
        except KeyGenerationError:
            raise
        except Exception as e:
            raise KeyGenerationError(f"Key generator failed: {e}") from e

    def assign_id(self, item: T, field_name: str) -> T:
        """Write a new key into the attribute named ``field_name`` (any case).

        An item without such a writable attribute is returned unchanged.

        Raises:
            KeyAssignmentError: If the generator fails or the write raises.
        """
        try:
            key = self.new_id()
        except KeyGenerationError as e:
            raise KeyAssignmentError(field_name, str(e)) from e

        wanted = field_name.lower()
        matches = [name for name in writable_attributes(item) if name.lower() == wanted]
        if not matches:
            logger.debug(
                "key_field_not_found", target=type(item).__qualname__, field=field_name
            )
            return item

        for name in matches:
            try:
                setattr(item, name, key)
            except Exception as e:
                raise KeyAssignmentError(field_name, str(e)) from e
        logger.debug("key_assigned", target=type(item).__qualname__, field=field_name, key=key)
        return item

    def assign_ids_by_name(self, items: C, field_name: str) -> C:
        """Apply assign_id to every item."""
        for item in items:
            self.assign_id(item, field_name)
        return items

    def assign_ids_result(
        self, items: Collection[T], generator: KeyGenerator[Any]
    ) -> list[AssignmentResult[T]]:
        """Fill every writable Id field of every item, one key per field.

        A generator or writer failure on one field is recorded in that item's
        result; the other fields and items are still processed.
        """
        results: list[AssignmentResult[T]] = []
        for item in items:
            result: AssignmentResult[T] = AssignmentResult(item)
            metadata = self._index.metadata_for(type(item))
            for column in metadata.primary_keys:
                if not column.writable:
                    continue
                key = None
                try:
                    key = generator.generate_key()
                    setattr(item, column.property_name, key)
                except Exception as e:
                    result.failures.append(FieldFailure(column.property_name, key, e))
                else:
                    result.assigned[column.property_name] = key
            results.append(result)
        return results

    def assign_ids(self, items: C, generator: KeyGenerator[Any]) -> C:
        """Fill every writable Id field of every item; failures are logged, not raised."""
        for result in self.assign_ids_result(items, generator):
            for failure in result.failures:
                logger.warning(
                    "key_assignment_failed",
                    target=type(result.item).__qualname__,
                    field=failure.property_name,
                    error=str(failure.error),
                )
        return items
