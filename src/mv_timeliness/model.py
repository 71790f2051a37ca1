"""Catalog-facing data model read by the staleness arbiter."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple

from .policy import ExternalRewriteMode, Partitioning

# Opaque per-partition value surfaced by nested MV base tables.
Cell = Any


class TableKind(str, Enum):
    NATIVE = "native"
    EXTERNAL = "external"
    MATERIALIZED_VIEW = "materialized_view"
    VIEW = "view"


@dataclass(frozen=True)
class BaseTable:
    """A table referenced by an MV's defining query."""

    id: int
    name: str
    kind: TableKind = TableKind.NATIVE

    @property
    def is_view(self) -> bool:
        return self.kind is TableKind.VIEW

    @property
    def is_materialized_view(self) -> bool:
        return self.kind is TableKind.MATERIALIZED_VIEW

    @property
    def is_native(self) -> bool:
        """Native storage tables; a materialized view is stored natively too."""
        return self.kind in (TableKind.NATIVE, TableKind.MATERIALIZED_VIEW)


@dataclass(frozen=True)
class MvPartition:
    name: str
    has_storage_data: bool = True


@dataclass(frozen=True)
class MaterializedView:
    """Read-only view of an MV catalog entry."""

    id: int
    name: str
    base_tables: Tuple[BaseTable, ...]
    partitioning: Partitioning = Partitioning.RANGE
    partitions: Mapping[str, MvPartition] = field(default_factory=dict)
    external_rewrite_mode: Optional[ExternalRewriteMode] = None

    @property
    def partition_names(self) -> FrozenSet[str]:
        return frozenset(self.partitions)

    def get_partition(self, name: str) -> MvPartition:
        try:
            return self.partitions[name]
        except KeyError:
            raise KeyError(f"Partition '{name}' not found in materialized view {self.name}") from None


@dataclass(frozen=True)
class BasePartitionVersion:
    """Last-seen version of one base-table partition, as recorded by an MV refresh."""

    partition_id: int
    version: int
    last_refresh_time: Optional[datetime] = None


@dataclass(frozen=True)
class BaseTableDelta:
    """Changes of one reference base table relative to the MV's last refresh.

    ``nested_cells`` is only populated when the base table is itself a
    materialized view; the cells are carried through untouched.
    """

    changed_partitions: FrozenSet[str] = frozenset()
    nested_cells: Mapping[str, Cell] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.changed_partitions and not self.nested_cells


# base table -> base partition name -> MV partition names it feeds
ReferenceProjection = Mapping[BaseTable, Mapping[str, FrozenSet[str]]]
# base table -> changed base partition names
PartitionChangeSet = Dict[BaseTable, FrozenSet[str]]


@dataclass(frozen=True)
class MvLineage:
    """Planner-supplied lineage: which tables are reference tables and how they project."""

    ref_partition_columns: Mapping[BaseTable, Tuple[str, ...]]
    projection: ReferenceProjection = field(default_factory=dict)

    @property
    def ref_tables(self) -> Tuple[BaseTable, ...]:
        return tuple(self.ref_partition_columns)


__all__ = [
    "BasePartitionVersion",
    "BaseTable",
    "BaseTableDelta",
    "Cell",
    "MaterializedView",
    "MvLineage",
    "MvPartition",
    "PartitionChangeSet",
    "ReferenceProjection",
    "TableKind",
]
