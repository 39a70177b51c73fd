"""Dialect and column kind enumerations."""

from __future__ import annotations

from enum import Enum


class Dialect(Enum):
    """Supported SQL dialects.

    The value is the directory name used for dialect-specific statements.
    """

    ORACLE = "oracle"
    HSQLDB = "hsqldb"
    POSTGRES = "postgres"

    def __str__(self) -> str:
        return self.value

    @property
    def supports_inline_comments(self) -> bool:
        """Whether statements get the instrumentation comment prefix."""
        return self is Dialect.ORACLE

    @classmethod
    def from_name(cls, name: str) -> Dialect:
        """Look up a dialect by its canonical name, ignoring case."""
        try:
            return cls(name.strip().lower())
        except ValueError:
            known = [d.value for d in cls]
            raise ValueError(f"Unknown dialect '{name}'. Known dialects: {known}") from None


class ColumnKind(Enum):
    """Coercion applied when a column is read back from a row."""

    INTEGER = "integer"
    TEXT = "text"
    OTHER = "other"
