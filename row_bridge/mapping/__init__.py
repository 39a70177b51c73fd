"""Mapping layer - column metadata and object/row conversion."""

from __future__ import annotations

from row_bridge.mapping.metadata import (
    Column,
    ColumnMetadata,
    Id,
    MetadataIndex,
    TypeMetadata,
    default_index,
    metadata_for,
)
from row_bridge.mapping.params import ParamsMapper
from row_bridge.mapping.protocol import Mapper
from row_bridge.mapping.results import AssignmentResult, FieldFailure, MappingResult
from row_bridge.mapping.rows import DictRowAccessor, RowAccessor, RowMapper

__all__ = [
    "Column",
    "Id",
    "ColumnMetadata",
    "TypeMetadata",
    "MetadataIndex",
    "default_index",
    "metadata_for",
    "ParamsMapper",
    "RowMapper",
    "RowAccessor",
    "DictRowAccessor",
    "Mapper",
    "FieldFailure",
    "MappingResult",
    "AssignmentResult",
]
