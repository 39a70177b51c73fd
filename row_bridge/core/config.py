"""Statement loading configuration.

LoaderConfig is a Pydantic model shared by a StatementLoaderRegistry and
every loader it creates. The defaults give the standard layout:

    sql/<statement>.sql            dialect-independent
    sql/<dialect>/<statement>.sql  dialect-specific
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator


class LoaderConfig(BaseModel):
    """Configuration for statement resource resolution."""

    model_config = ConfigDict(frozen=True)

    resource_root: str = "sql"
    suffix: str = ".sql"
    encoding: str = "utf-8"

    @field_validator("resource_root")
    @classmethod
    def _strip_slashes(cls, value: str) -> str:
        return value.strip("/")

    def generic_path(self, name: str) -> str:
        """Path of the dialect-independent statement."""
        return f"{self.resource_root}/{name}{self.suffix}"

    def dialect_path(self, dialect: object, name: str) -> str:
        """Path of the statement specific to ``dialect``."""
        return f"{self.resource_root}/{dialect}/{name}{self.suffix}"
