"""Primary key generation and assignment."""

from __future__ import annotations

from row_bridge.keys.assigner import PrimaryKeyAssigner, writable_attributes
from row_bridge.keys.generators import (
    KeyGenerator,
    QueryKeyGenerator,
    SequenceKeyGenerator,
    UuidKeyGenerator,
)

__all__ = [
    "KeyGenerator",
    "QueryKeyGenerator",
    "UuidKeyGenerator",
    "SequenceKeyGenerator",
    "PrimaryKeyAssigner",
    "writable_attributes",
]
