"""Named parameter helpers.

Converts `:name` parameter syntax to driver-specific format and builds
parameter maps for single and batch execution.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from functools import lru_cache
from typing import Any

# Matches :name but not ::typecast and not inside words
_PARAM_PATTERN = re.compile(r"(?<![:\w]):([a-zA-Z_]\w*)")

# Matches single-quoted string literals (with escaped quotes handled)
_STRING_LITERAL_PATTERN = re.compile(r"'(?:[^'\\]|\\.)*'")


def normalize_params(sql: str, paramstyle: str) -> str:
    """Convert :name parameters to the target param style.

    Args:
        sql: SQL string with :name parameters.
        paramstyle: Target style - 'named' (no conversion) or 'pyformat' (%(name)s).

    Returns:
        SQL with parameters converted to the target style.
    """
    if paramstyle == "named":
        return sql
    if paramstyle != "pyformat":
        raise ValueError(f"Unsupported paramstyle: {paramstyle!r}")
    return _convert_to_pyformat(sql)


@lru_cache(maxsize=256)
def _convert_to_pyformat(sql: str) -> str:
    """Convert :name params to %(name)s, preserving string literals."""
    parts: list[str] = []
    last_end = 0

    for match in _STRING_LITERAL_PATTERN.finditer(sql):
        start, end = match.span()
        if start > last_end:
            parts.append(_PARAM_PATTERN.sub(r"%(\1)s", sql[last_end:start]))
        parts.append(match.group())
        last_end = end

    if last_end < len(sql):
        parts.append(_PARAM_PATTERN.sub(r"%(\1)s", sql[last_end:]))

    return "".join(parts)


class ParamsBuilder:
    """Fluent builder for a named parameter map.

    Usage:
        params("id", 7).param("name", "Alice").build()
    """

    def __init__(self) -> None:
        self._params: dict[str, Any] = {}

    def param(self, name: str, value: Any) -> ParamsBuilder:
        """Set one parameter, replacing any previous value."""
        self._params[name] = value
        return self

    def build(self) -> dict[str, Any]:
        """Return a copy of the collected parameters."""
        return dict(self._params)


def params(name: str, value: Any) -> ParamsBuilder:
    """Start a parameter map with its first entry."""
    return ParamsBuilder().param(name, value)


def as_batch_values(batch: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """Copy each parameter map into an independent dict for batch execution."""
    return [dict(values) for values in batch]
