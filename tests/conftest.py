"""Shared test fixtures."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from pathlib import Path

import pytest

from row_bridge.core.executor import ConnectionExecutor
from row_bridge.core.resources import DirectoryResourceReader
from row_bridge.core.statements import StatementLoaderRegistry
from row_bridge.mapping.metadata import MetadataIndex


@pytest.fixture
def tmp_sql_root(tmp_path: Path) -> Path:
    """Temporary directory playing the role of the owner's package directory."""
    return tmp_path


@pytest.fixture
def write_sql(tmp_sql_root: Path):
    """Helper to write SQL files below ``<root>/sql``.

    Usage:
        write_sql("oracle/next_id.sql", "SELECT person_seq.NEXTVAL FROM dual")
    """

    def _write(relative_path: str, content: str) -> Path:
        file_path = tmp_sql_root / "sql" / relative_path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content, encoding="utf-8")
        return file_path

    return _write


@pytest.fixture
def registry(tmp_sql_root: Path) -> StatementLoaderRegistry:
    """Registry reading statements from the temporary directory."""
    return StatementLoaderRegistry(reader=DirectoryResourceReader(tmp_sql_root))


@pytest.fixture
def index() -> MetadataIndex:
    """Fresh metadata index, independent of the process-wide one."""
    return MetadataIndex()


@pytest.fixture
def sqlite_connection() -> Iterator[sqlite3.Connection]:
    """SQLite in-memory connection."""
    conn = sqlite3.connect(":memory:")
    yield conn
    conn.close()


@pytest.fixture
def sqlite_executor(sqlite_connection: sqlite3.Connection) -> ConnectionExecutor:
    return ConnectionExecutor(sqlite_connection)
