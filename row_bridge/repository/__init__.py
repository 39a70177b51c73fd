"""DAO base classes."""

from __future__ import annotations

from row_bridge.repository.base import Dao

__all__ = ["Dao"]
