"""Statement loaders - load and cache externalized SQL per owner and dialect.

Statements live in a ``sql`` directory next to the module of the owning
class:

    app/dao/sql/load_people.sql           -> common to all dialects
    app/dao/sql/oracle/update_people.sql  -> Oracle only

A dialect-specific file wins over the common one. One StatementLoader exists
per (owner, dialect) pair for the lifetime of its registry.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable

import structlog

from row_bridge.core.config import LoaderConfig
from row_bridge.core.enums import Dialect
from row_bridge.core.exceptions import ResourceNotFoundError
from row_bridge.core.resources import ModuleResourceReader, ResourceReader

logger = structlog.get_logger()


def qualified_name(owner: type) -> str:
    """Fully-qualified dotted name of a type."""
    return f"{owner.__module__}.{owner.__qualname__}"


@dataclass(frozen=True)
class LoaderKey:
    """Registry key for one loader: owning type and dialect."""

    owner: type
    dialect: Dialect


class StatementLoader:
    """Loads and caches the SQL statements of one owner in one dialect.

    Once a name is resolved its text never changes for the lifetime of the
    loader. Resolution of a name happens at most once, under the loader's lock.

    Args:
        owner: The class the statements belong to.
        dialect: SQL dialect used for the dialect-specific lookup.
        reader: Resource reader resolving paths relative to ``owner``.
        config: Resource layout configuration.
    """

    def __init__(
        self,
        owner: type,
        dialect: Dialect,
        reader: ResourceReader | None = None,
        config: LoaderConfig | None = None,
    ) -> None:
        self._owner = owner
        self._dialect = dialect
        self._reader = reader or ModuleResourceReader()
        self._config = config or LoaderConfig()
        self._statements: dict[str, str] = {}
        self._lock = threading.Lock()

    @property
    def owner(self) -> type:
        return self._owner

    @property
    def dialect(self) -> Dialect:
        return self._dialect

    @property
    def supports_inline_comments(self) -> bool:
        return self._dialect.supports_inline_comments

    @property
    def loaded_names(self) -> list[str]:
        """Names resolved so far, sorted alphabetically."""
        return sorted(self._statements)

    def load(self, name: str) -> str:
        """Return the SQL text of the statement ``name``.

        Raises:
            ResourceNotFoundError: If neither ``sql/<dialect>/<name>.sql`` nor
                ``sql/<name>.sql`` exists for the owner.
        """
        statement = self._statements.get(name)
        if statement is not None:
            return statement

        with self._lock:
            statement = self._statements.get(name)
            if statement is None:
                statement = self._read_statement(name)
                self._statements[name] = statement
            return statement

    def _read_statement(self, name: str) -> str:
        config = self._config
        path = config.dialect_path(self._dialect, name)
        lines = self._reader.read_lines(self._owner, path, config.encoding)

        if lines is None:
            path = config.generic_path(name)
            lines = self._reader.read_lines(self._owner, path, config.encoding)

        if lines is None:
            raise ResourceNotFoundError(qualified_name(self._owner), name)

        parts: list[str] = []
        if self.supports_inline_comments:
            # Picked up by SQL monitoring tools to attribute statements
            parts.append(f"/*+ JDBC<{qualified_name(self._owner).upper()}>*/ ")
        parts.extend(line + "\n" for line in lines)

        logger.debug(
            "statement_loaded",
            owner=qualified_name(self._owner),
            dialect=str(self._dialect),
            name=name,
            path=path,
        )
        return "".join(parts)

    def __repr__(self) -> str:
        return f"StatementLoader({qualified_name(self._owner)!r}, {self._dialect})"


LoaderFactory = Callable[[type, Dialect, ResourceReader, LoaderConfig], StatementLoader]


def _default_factory(
    owner: type, dialect: Dialect, reader: ResourceReader, config: LoaderConfig
) -> StatementLoader:
    return StatementLoader(owner, dialect, reader, config)


class StatementLoaderRegistry:
    """Process-scoped cache of StatementLoader instances keyed by LoaderKey.

    Every lookup is serialized by one lock so concurrent first access to a
    key creates exactly one loader.

    Args:
        reader: Resource reader handed to every loader.
        config: Resource layout configuration handed to every loader.
        loader_factory: Callable building a loader for a key.
    """

    def __init__(
        self,
        reader: ResourceReader | None = None,
        config: LoaderConfig | None = None,
        loader_factory: LoaderFactory | None = None,
    ) -> None:
        self._reader = reader or ModuleResourceReader()
        self._config = config or LoaderConfig()
        self._factory = loader_factory or _default_factory
        self._loaders: dict[LoaderKey, StatementLoader] = {}
        self._lock = threading.Lock()

    @property
    def config(self) -> LoaderConfig:
        return self._config

    def get_loader(self, owner: type, dialect: Dialect) -> StatementLoader:
        """Return the shared loader for ``owner`` in ``dialect``."""
        key = LoaderKey(owner, dialect)

        with self._lock:
            loader = self._loaders.get(key)
            if loader is None:
                loader = self._factory(owner, dialect, self._reader, self._config)
                self._loaders[key] = loader
                logger.debug(
                    "loader_created", owner=qualified_name(owner), dialect=str(dialect)
                )
            return loader

    def load(self, owner: type, dialect: Dialect, name: str) -> str:
        """Shortcut for ``get_loader(owner, dialect).load(name)``."""
        return self.get_loader(owner, dialect).load(name)

    def clear(self) -> None:
        """Drop every cached loader."""
        with self._lock:
            self._loaders.clear()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._loaders

    def __len__(self) -> int:
        with self._lock:
            return len(self._loaders)


default_registry = StatementLoaderRegistry()


def get_loader(owner: type, dialect: Dialect) -> StatementLoader:
    """Return the process-wide loader for ``owner`` in ``dialect``."""
    return default_registry.get_loader(owner, dialect)
