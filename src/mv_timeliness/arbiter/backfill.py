"""Adds MV partitions that never received data."""
from __future__ import annotations

from typing import FrozenSet, Iterable

from ..model import BaseTable, MaterializedView


def empty_partitions_to_refresh(
    mv: MaterializedView, ref_tables: Iterable[BaseTable]
) -> FrozenSet[str]:
    # External tables lack the physical-presence signal, so only trust it for native ones.
    if not all(table.is_native for table in ref_tables):
        return frozenset()
    return frozenset(
        name for name, partition in mv.partitions.items() if not partition.has_storage_data
    )


__all__ = ["empty_partitions_to_refresh"]
