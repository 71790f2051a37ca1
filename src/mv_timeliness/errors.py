"""Exception types raised by the staleness arbiter."""
from __future__ import annotations

from typing import Optional


class ArbiterError(Exception):
    """Base class for arbiter failures."""


class MetadataConsistencyError(ArbiterError):
    """Lineage data does not cover a partition the version tracker reports as changed."""

    def __init__(self, table_name: str, partition_name: Optional[str] = None) -> None:
        self.table_name = table_name
        self.partition_name = partition_name
        if partition_name is None:
            message = f"Can't find base table {table_name} in reference projection"
        else:
            message = (
                f"Can't find partition {partition_name} of base table {table_name} "
                "in reference projection"
            )
        super().__init__(message)


class RefreshContextLockError(ArbiterError):
    """Refresh context was accessed outside the lock that guards it."""


__all__ = [
    "ArbiterError",
    "MetadataConsistencyError",
    "RefreshContextLockError",
]
