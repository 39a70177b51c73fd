"""RowBridge - metadata-driven mapping between records and SQL rows."""

from __future__ import annotations

from row_bridge.core.config import LoaderConfig
from row_bridge.core.enums import ColumnKind, Dialect
from row_bridge.core.exceptions import (
    ExecutionError,
    KeyAssignmentError,
    KeyGenerationError,
    KeyProviderError,
    MappingError,
    MetadataError,
    MultipleRowsError,
    ParameterBindingError,
    ResourceNotFoundError,
    RowAccessError,
    RowBridgeError,
    StatementError,
)
from row_bridge.core.executor import ConnectionExecutor, ParameterizedExecutor, rows_from_cursor
from row_bridge.core.params import as_batch_values, normalize_params, params
from row_bridge.core.resources import DirectoryResourceReader, ModuleResourceReader
from row_bridge.core.statements import (
    LoaderKey,
    StatementLoader,
    StatementLoaderRegistry,
    default_registry,
    get_loader,
)
from row_bridge.keys import (
    KeyGenerator,
    PrimaryKeyAssigner,
    QueryKeyGenerator,
    SequenceKeyGenerator,
    UuidKeyGenerator,
)
from row_bridge.mapping import (
    Column,
    ColumnMetadata,
    DictRowAccessor,
    Id,
    MetadataIndex,
    ParamsMapper,
    RowAccessor,
    RowMapper,
    TypeMetadata,
    metadata_for,
)
from row_bridge.repository import Dao

__all__ = [
    # Config
    "LoaderConfig",
    # Enums
    "Dialect",
    "ColumnKind",
    # Metadata
    "Column",
    "Id",
    "ColumnMetadata",
    "TypeMetadata",
    "MetadataIndex",
    "metadata_for",
    # Mapping
    "ParamsMapper",
    "RowMapper",
    "RowAccessor",
    "DictRowAccessor",
    # Keys
    "KeyGenerator",
    "QueryKeyGenerator",
    "UuidKeyGenerator",
    "SequenceKeyGenerator",
    "PrimaryKeyAssigner",
    # Statements
    "LoaderKey",
    "StatementLoader",
    "StatementLoaderRegistry",
    "default_registry",
    "get_loader",
    "ModuleResourceReader",
    "DirectoryResourceReader",
    # Execution
    "ParameterizedExecutor",
    "ConnectionExecutor",
    "rows_from_cursor",
    "normalize_params",
    "params",
    "as_batch_values",
    # DAO
    "Dao",
    # Exceptions
    "RowBridgeError",
    "MetadataError",
    "MappingError",
    "RowAccessError",
    "KeyProviderError",
    "KeyGenerationError",
    "KeyAssignmentError",
    "StatementError",
    "ResourceNotFoundError",
    "ExecutionError",
    "ParameterBindingError",
    "MultipleRowsError",
]
