"""Resource readers for externalized SQL.

A reader resolves a slash-separated path relative to an owner type and
returns the file content as lines, or None when nothing exists there.
"""

from __future__ import annotations

import inspect
from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class ResourceReader(Protocol):
    """Resource reader protocol."""

    def read_lines(self, owner: type, path: str, encoding: str = "utf-8") -> list[str] | None:
        """Return the lines of the resource (without line endings), or None if absent."""
        ...


def _read(file_path: Path, encoding: str) -> list[str] | None:
    if not file_path.is_file():
        return None
    return file_path.read_text(encoding=encoding).splitlines()


class ModuleResourceReader:
    """Resolves resources next to the module that defines the owner.

    For ``app.dao.person.PersonDao`` defined in ``app/dao/person.py`` the path
    ``sql/load_people.sql`` resolves to ``app/dao/sql/load_people.sql``.
    """

    def read_lines(self, owner: type, path: str, encoding: str = "utf-8") -> list[str] | None:
        try:
            base = Path(inspect.getfile(owner)).parent
        except (TypeError, OSError):
            # Built-in or dynamically created type without a source file
            return None
        return _read(base.joinpath(*path.split("/")), encoding)


class DirectoryResourceReader:
    """Resolves resources relative to a fixed directory, ignoring the owner."""

    def __init__(self, root_dir: Path | str) -> None:
        self._root_dir = Path(root_dir)

    @property
    def root_dir(self) -> Path:
        return self._root_dir

    def read_lines(self, owner: type, path: str, encoding: str = "utf-8") -> list[str] | None:
        return _read(self._root_dir.joinpath(*path.split("/")), encoding)
