"""Unit tests for StatementLoader and StatementLoaderRegistry."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any

import pytest

from row_bridge.core.config import LoaderConfig
from row_bridge.core.enums import Dialect
from row_bridge.core.exceptions import ResourceNotFoundError
from row_bridge.core.resources import (
    DirectoryResourceReader,
    ModuleResourceReader,
    ResourceReader,
)
from row_bridge.core.statements import (
    LoaderKey,
    StatementLoader,
    StatementLoaderRegistry,
    default_registry,
    get_loader,
    qualified_name,
)


class PersonDao:
    """Owner whose statements live in tests/unit/sql."""


class OrderDao:
    pass


class CountingReader:
    """Reader wrapper recording every path it is asked for."""

    def __init__(self, inner: ResourceReader) -> None:
        self.inner = inner
        self.paths: list[str] = []
        self._lock = threading.Lock()

    def read_lines(self, owner: type, path: str, encoding: str = "utf-8") -> list[str] | None:
        with self._lock:
            self.paths.append(path)
        return self.inner.read_lines(owner, path, encoding)


ORACLE_PREFIX = f"/*+ JDBC<{__name__.upper()}.PERSONDAO>*/ "


class TestDialect:
    def test_canonical_names(self) -> None:
        assert [str(d) for d in Dialect] == ["oracle", "hsqldb", "postgres"]

    def test_inline_comments_only_for_oracle(self) -> None:
        assert Dialect.ORACLE.supports_inline_comments is True
        assert Dialect.HSQLDB.supports_inline_comments is False
        assert Dialect.POSTGRES.supports_inline_comments is False

    def test_from_name(self) -> None:
        assert Dialect.from_name(" Postgres ") is Dialect.POSTGRES

    def test_from_name_unknown(self) -> None:
        with pytest.raises(ValueError, match="mysql"):
            Dialect.from_name("mysql")


class TestLoaderKey:
    def test_structural_equality(self) -> None:
        assert LoaderKey(PersonDao, Dialect.ORACLE) == LoaderKey(PersonDao, Dialect.ORACLE)
        assert hash(LoaderKey(PersonDao, Dialect.ORACLE)) == hash(
            LoaderKey(PersonDao, Dialect.ORACLE)
        )

    def test_differs_by_dialect_and_owner(self) -> None:
        key = LoaderKey(PersonDao, Dialect.ORACLE)
        assert key != LoaderKey(PersonDao, Dialect.POSTGRES)
        assert key != LoaderKey(OrderDao, Dialect.ORACLE)


class TestLoaderConfig:
    def test_default_paths(self) -> None:
        config = LoaderConfig()
        assert config.generic_path("load") == "sql/load.sql"
        assert config.dialect_path(Dialect.HSQLDB, "load") == "sql/hsqldb/load.sql"

    def test_custom_root(self) -> None:
        config = LoaderConfig(resource_root="/queries/")
        assert config.generic_path("load") == "queries/load.sql"


class TestStatementLoader:
    def test_generic_statement(self, write_sql, registry: StatementLoaderRegistry) -> None:
        write_sql("load_people.sql", "SELECT * FROM people")
        loader = registry.get_loader(PersonDao, Dialect.POSTGRES)
        assert loader.load("load_people") == "SELECT * FROM people\n"

    def test_dialect_specific_wins(self, write_sql, registry: StatementLoaderRegistry) -> None:
        write_sql("load_people.sql", "SELECT * FROM people")
        write_sql("postgres/load_people.sql", "SELECT * FROM people LIMIT 10")
        loader = registry.get_loader(PersonDao, Dialect.POSTGRES)
        assert loader.load("load_people") == "SELECT * FROM people LIMIT 10\n"

    def test_other_dialect_falls_back(self, write_sql, registry: StatementLoaderRegistry) -> None:
        write_sql("load_people.sql", "SELECT * FROM people")
        write_sql("postgres/load_people.sql", "SELECT * FROM people LIMIT 10")
        loader = registry.get_loader(PersonDao, Dialect.HSQLDB)
        assert loader.load("load_people") == "SELECT * FROM people\n"

    def test_newlines_preserved_per_line(
        self, write_sql, registry: StatementLoaderRegistry
    ) -> None:
        write_sql("update.sql", "UPDATE people\r\n   SET name = :name\n WHERE id = :id\n")
        loader = registry.get_loader(PersonDao, Dialect.HSQLDB)
        assert loader.load("update") == "UPDATE people\n   SET name = :name\n WHERE id = :id\n"

    def test_oracle_instrumentation_prefix(
        self, write_sql, registry: StatementLoaderRegistry
    ) -> None:
        write_sql("load_people.sql", "SELECT * FROM people")
        loader = registry.get_loader(PersonDao, Dialect.ORACLE)
        assert loader.load("load_people") == ORACLE_PREFIX + "SELECT * FROM people\n"

    def test_no_prefix_for_other_dialects(
        self, write_sql, registry: StatementLoaderRegistry
    ) -> None:
        write_sql("load_people.sql", "SELECT 1")
        for dialect in (Dialect.HSQLDB, Dialect.POSTGRES):
            assert registry.get_loader(PersonDao, dialect).load("load_people") == "SELECT 1\n"

    def test_missing_statement(self, registry: StatementLoaderRegistry) -> None:
        loader = registry.get_loader(PersonDao, Dialect.ORACLE)
        with pytest.raises(ResourceNotFoundError) as exc_info:
            loader.load("no_such_statement")
        error = exc_info.value
        assert error.owner == qualified_name(PersonDao)
        assert error.statement_name == "no_such_statement"
        assert "PersonDao" in str(error)
        assert "no_such_statement" in str(error)
        assert isinstance(error, LookupError)

    def test_missing_statement_not_cached(
        self, write_sql, registry: StatementLoaderRegistry
    ) -> None:
        loader = registry.get_loader(PersonDao, Dialect.HSQLDB)
        with pytest.raises(ResourceNotFoundError):
            loader.load("late")
        write_sql("late.sql", "SELECT 2")
        assert loader.load("late") == "SELECT 2\n"

    def test_cached_text_never_changes(self, write_sql, tmp_sql_root: Path) -> None:
        reader = CountingReader(DirectoryResourceReader(tmp_sql_root))
        loader = StatementLoader(PersonDao, Dialect.POSTGRES, reader)
        path = write_sql("load_people.sql", "SELECT 1")

        first = loader.load("load_people")
        path.write_text("SELECT 2", encoding="utf-8")

        assert loader.load("load_people") == first
        assert reader.paths == ["sql/postgres/load_people.sql", "sql/load_people.sql"]
        assert loader.loaded_names == ["load_people"]

    def test_concurrent_load_reads_once(self, write_sql, tmp_sql_root: Path) -> None:
        reader = CountingReader(DirectoryResourceReader(tmp_sql_root))
        loader = StatementLoader(PersonDao, Dialect.ORACLE, reader)
        write_sql("oracle/next_id.sql", "SELECT person_seq.NEXTVAL FROM dual")

        with ThreadPoolExecutor(max_workers=16) as pool:
            texts = list(pool.map(lambda _: loader.load("next_id"), range(64)))

        assert set(texts) == {ORACLE_PREFIX + "SELECT person_seq.NEXTVAL FROM dual\n"}
        assert reader.paths == ["sql/oracle/next_id.sql"]

    def test_custom_config(self, tmp_sql_root: Path) -> None:
        (tmp_sql_root / "queries").mkdir()
        (tmp_sql_root / "queries" / "ping.txt").write_text("SELECT 1", encoding="utf-8")
        config = LoaderConfig(resource_root="queries", suffix=".txt")
        loader = StatementLoader(
            PersonDao, Dialect.HSQLDB, DirectoryResourceReader(tmp_sql_root), config
        )
        assert loader.load("ping") == "SELECT 1\n"


class TestModuleResourceReader:
    """Statements resolved next to this test module (tests/unit/sql)."""

    @pytest.fixture
    def module_registry(self) -> StatementLoaderRegistry:
        return StatementLoaderRegistry(reader=ModuleResourceReader())

    def test_generic_statement_next_to_module(
        self, module_registry: StatementLoaderRegistry
    ) -> None:
        loader = module_registry.get_loader(PersonDao, Dialect.POSTGRES)
        assert loader.load("load_people") == "SELECT id, name\n  FROM people\n ORDER BY name\n"

    def test_dialect_statement_next_to_module(
        self, module_registry: StatementLoaderRegistry
    ) -> None:
        loader = module_registry.get_loader(PersonDao, Dialect.ORACLE)
        assert loader.load("update_people") == (
            ORACLE_PREFIX + "UPDATE people\n   SET name = :name\n WHERE id = :id\n"
        )

    def test_each_dialect_reads_its_own_file(
        self, module_registry: StatementLoaderRegistry
    ) -> None:
        postgres = module_registry.get_loader(PersonDao, Dialect.POSTGRES)
        oracle = module_registry.get_loader(PersonDao, Dialect.ORACLE)
        assert postgres.load("next_person_id") == "SELECT nextval('person_seq')\n"
        assert oracle.load("next_person_id") == (
            ORACLE_PREFIX + "SELECT person_seq.NEXTVAL FROM dual\n"
        )
        with pytest.raises(ResourceNotFoundError):
            module_registry.get_loader(PersonDao, Dialect.HSQLDB).load("next_person_id")

    def test_builtin_owner_has_no_resources(self) -> None:
        assert ModuleResourceReader().read_lines(int, "sql/load_people.sql") is None


class TestStatementLoaderRegistry:
    def test_same_key_same_instance(self, registry: StatementLoaderRegistry) -> None:
        first = registry.get_loader(PersonDao, Dialect.ORACLE)
        assert registry.get_loader(PersonDao, Dialect.ORACLE) is first

    def test_distinct_per_dialect(self, registry: StatementLoaderRegistry) -> None:
        oracle = registry.get_loader(PersonDao, Dialect.ORACLE)
        postgres = registry.get_loader(PersonDao, Dialect.POSTGRES)
        assert oracle is not postgres
        assert oracle.dialect is Dialect.ORACLE
        assert postgres.dialect is Dialect.POSTGRES

    def test_distinct_per_owner(self, registry: StatementLoaderRegistry) -> None:
        assert registry.get_loader(PersonDao, Dialect.ORACLE) is not registry.get_loader(
            OrderDao, Dialect.ORACLE
        )

    def test_contains_len_and_clear(self, registry: StatementLoaderRegistry) -> None:
        registry.get_loader(PersonDao, Dialect.ORACLE)
        registry.get_loader(OrderDao, Dialect.HSQLDB)
        assert LoaderKey(PersonDao, Dialect.ORACLE) in registry
        assert len(registry) == 2
        registry.clear()
        assert len(registry) == 0

    def test_load_shortcut(self, write_sql, registry: StatementLoaderRegistry) -> None:
        write_sql("ping.sql", "SELECT 1")
        assert registry.load(PersonDao, Dialect.HSQLDB, "ping") == "SELECT 1\n"

    def test_concurrent_first_access_constructs_once(self) -> None:
        created: list[tuple[type, Dialect]] = []
        lock = threading.Lock()
        barrier = threading.Barrier(8)

        def factory(owner: type, dialect: Dialect, reader: Any, config: Any) -> StatementLoader:
            with lock:
                created.append((owner, dialect))
            return StatementLoader(owner, dialect, reader, config)

        registry = StatementLoaderRegistry(loader_factory=factory)

        def first_access(_: int) -> StatementLoader:
            barrier.wait()
            return registry.get_loader(PersonDao, Dialect.ORACLE)

        with ThreadPoolExecutor(max_workers=8) as pool:
            loaders = list(pool.map(first_access, range(8)))

        assert created == [(PersonDao, Dialect.ORACLE)]
        assert all(loader is loaders[0] for loader in loaders)

    def test_default_registry(self) -> None:
        loader = get_loader(PersonDao, Dialect.HSQLDB)
        assert loader is default_registry.get_loader(PersonDao, Dialect.HSQLDB)
        assert loader.load("load_people").startswith("SELECT id, name\n")
