"""Result of one staleness arbitration."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, FrozenSet, Mapping, Optional, Set, Tuple

from .model import BaseTable, BaseTableDelta, Cell, MaterializedView


class RefreshType(str, Enum):
    FULL = "full"
    PARTIAL = "partial"
    NO_REFRESH = "no_refresh"


class FailureReason(str, Enum):
    EXTERNAL_REWRITE_DISABLED = "external_rewrite_disabled"
    TABLE_CHANGED = "table_changed"
    NEVER_REFRESHED = "never_refreshed"


@dataclass(frozen=True)
class ConsistencyFailure:
    """A base table that failed the consistency check and forced a full refresh."""

    table: BaseTable
    reason: FailureReason


@dataclass(frozen=True)
class NestedCellUpdate:
    """Pending partition cells of a base table that is itself a materialized view."""

    table: BaseTable
    cells: Mapping[str, Cell]


@dataclass(frozen=True)
class UpdateInfo:
    """Immutable refresh decision handed to the query rewriter and the refresh scheduler.

    When ``refresh_type`` is FULL the partition set is left empty: the whole
    MV is stale and callers should use :meth:`resolve_partitions` if they
    need the explicit names.
    """

    refresh_type: RefreshType
    mv_partitions_to_refresh: FrozenSet[str] = frozenset()
    base_table_deltas: Mapping[BaseTable, BaseTableDelta] = field(
        default_factory=lambda: MappingProxyType({})
    )
    nested_cell_updates: Tuple[NestedCellUpdate, ...] = ()
    consistency_failures: Tuple[ConsistencyFailure, ...] = ()
    base_to_mv_partitions: Mapping[BaseTable, Mapping[str, FrozenSet[str]]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @property
    def is_full_refresh(self) -> bool:
        return self.refresh_type is RefreshType.FULL

    @property
    def needs_refresh(self) -> bool:
        return self.refresh_type is not RefreshType.NO_REFRESH

    def base_partitions_to_refresh(self, table: BaseTable) -> Optional[FrozenSet[str]]:
        """Changed partitions recorded for a base table, or None if it was not checked."""
        delta = self.base_table_deltas.get(table)
        if delta is None:
            return None
        return delta.changed_partitions

    def mv_partitions_for(self, table: BaseTable) -> FrozenSet[str]:
        """MV partitions that the base table's change set projected onto."""
        mapped = self.base_to_mv_partitions.get(table, {})
        names: Set[str] = set()
        for mv_names in mapped.values():
            names.update(mv_names)
        return frozenset(names)

    def resolve_partitions(self, mv: MaterializedView) -> FrozenSet[str]:
        if self.is_full_refresh:
            return mv.partition_names
        return self.mv_partitions_to_refresh


class UpdateInfoBuilder:
    """Mutable accumulator used by the arbiter for the duration of one invocation."""

    def __init__(self) -> None:
        self.mv_partitions: Set[str] = set()
        self.base_table_deltas: Dict[BaseTable, BaseTableDelta] = {}
        self.nested_cell_updates: list[NestedCellUpdate] = []
        self.consistency_failures: list[ConsistencyFailure] = []
        self.base_to_mv_partitions: Dict[BaseTable, Dict[str, FrozenSet[str]]] = {}
        self.full_refresh = False

    def add_mv_partitions(self, names) -> None:
        self.mv_partitions.update(names)

    def mark_full_refresh(self, failure: ConsistencyFailure) -> None:
        self.full_refresh = True
        self.consistency_failures.append(failure)

    def build(self) -> UpdateInfo:
        if self.full_refresh:
            refresh_type = RefreshType.FULL
            partitions: FrozenSet[str] = frozenset()
        elif self.mv_partitions:
            refresh_type = RefreshType.PARTIAL
            partitions = frozenset(self.mv_partitions)
        else:
            refresh_type = RefreshType.NO_REFRESH
            partitions = frozenset()
        return UpdateInfo(
            refresh_type=refresh_type,
            mv_partitions_to_refresh=partitions,
            base_table_deltas=MappingProxyType(dict(self.base_table_deltas)),
            nested_cell_updates=tuple(self.nested_cell_updates),
            consistency_failures=tuple(self.consistency_failures),
            base_to_mv_partitions=MappingProxyType(
                {
                    table: MappingProxyType(dict(mapping))
                    for table, mapping in self.base_to_mv_partitions.items()
                }
            ),
        )


__all__ = [
    "ConsistencyFailure",
    "FailureReason",
    "NestedCellUpdate",
    "RefreshType",
    "UpdateInfo",
    "UpdateInfoBuilder",
]
