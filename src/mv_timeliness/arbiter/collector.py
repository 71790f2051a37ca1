"""Collects changed partitions of reference base tables from the version tracker."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from ..collaborators import VersionTracker
from ..model import BaseTable, BaseTableDelta, MaterializedView, PartitionChangeSet
from ..policy import Purpose
from ..update_info import NestedCellUpdate

logger = logging.getLogger(__name__)


@dataclass
class CollectedChanges:
    """Per-table deltas plus the change set and nested-MV cells derived from them."""

    deltas: Dict[BaseTable, BaseTableDelta] = field(default_factory=dict)
    change_set: PartitionChangeSet = field(default_factory=dict)
    nested_cell_updates: List[NestedCellUpdate] = field(default_factory=list)


def collect_base_table_changes(
    mv: MaterializedView,
    ref_tables: Iterable[BaseTable],
    tracker: VersionTracker,
    purpose: Purpose,
    use_cache: bool = True,
) -> CollectedChanges:
    """Ask the version tracker for the delta of every reference base table.

    A delta is kept for each table even when it is empty so consumers can tell
    "checked and clean" apart from "not checked".
    """
    collected = CollectedChanges()
    for table in ref_tables:
        delta = tracker.get_base_table_delta(mv, table, use_cache, purpose)
        collected.deltas[table] = delta
        collected.change_set[table] = frozenset(delta.changed_partitions)
        if delta.nested_cells:
            collected.nested_cell_updates.append(
                NestedCellUpdate(table=table, cells=dict(delta.nested_cells))
            )
        logger.debug(
            "Base table %s of mv %s changed partitions=%s nested_cells=%s",
            table.name,
            mv.name,
            sorted(delta.changed_partitions),
            len(delta.nested_cells),
        )
    return collected


__all__ = ["CollectedChanges", "collect_base_table_changes"]
