"""YAML catalog snapshots and an in-memory version tracker built on them.

A snapshot describes base tables with their current partition versions and
materialized views with their partitions, lineage and recorded refresh
context. It lets the arbiter be evaluated offline against a frozen catalog.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml
from pydantic import BaseModel, Field, ValidationError

from .model import (
    BasePartitionVersion,
    BaseTable,
    BaseTableDelta,
    Cell,
    MaterializedView,
    MvLineage,
    MvPartition,
    TableKind,
)
from .policy import ExternalRewriteMode, Partitioning, Purpose
from .refresh_context import RefreshContext

logger = logging.getLogger(__name__)

VersionMaps = Mapping[int, Mapping[str, BasePartitionVersion]]


class PartitionVersionSpec(BaseModel):
    id: int
    version: int


class TableSpec(BaseModel):
    id: int
    name: str
    kind: TableKind = TableKind.NATIVE
    partitions: Dict[str, PartitionVersionSpec] = Field(default_factory=dict)
    nested_cells: Dict[str, Any] = Field(
        default_factory=dict, description="Pending cells when the table is itself an MV"
    )


class MvPartitionSpec(BaseModel):
    name: str
    has_storage_data: bool = True


class MaterializedViewSpec(BaseModel):
    id: int
    name: str
    partitioning: Partitioning = Partitioning.RANGE
    external_rewrite_mode: Optional[ExternalRewriteMode] = None
    base_tables: List[str]
    partitions: List[MvPartitionSpec] = Field(default_factory=list)
    ref_partition_columns: Dict[str, List[str]] = Field(default_factory=dict)
    projection: Dict[str, Dict[str, List[str]]] = Field(default_factory=dict)
    refresh_context: Dict[str, Dict[str, PartitionVersionSpec]] = Field(default_factory=dict)


class CatalogSnapshotSpec(BaseModel):
    tables: List[TableSpec] = Field(default_factory=list)
    materialized_views: List[MaterializedViewSpec] = Field(default_factory=list)


@dataclass
class SnapshotEntry:
    """One materialized view with everything the arbiter needs to evaluate it."""

    mv: MaterializedView
    lineage: MvLineage
    context: RefreshContext


class CatalogSnapshot:
    """Domain objects materialized from a validated snapshot spec."""

    def __init__(self, spec: CatalogSnapshotSpec) -> None:
        self.spec = spec
        self.tables: Dict[str, BaseTable] = {}
        self.current_versions: Dict[int, Dict[str, BasePartitionVersion]] = {}
        self.nested_cells: Dict[int, Dict[str, Cell]] = {}
        for table_spec in spec.tables:
            if table_spec.name in self.tables:
                raise ValueError(f"Duplicate table '{table_spec.name}' in snapshot")
            table = BaseTable(id=table_spec.id, name=table_spec.name, kind=table_spec.kind)
            self.tables[table.name] = table
            self.current_versions[table.id] = _to_versions(table_spec.partitions)
            if table_spec.nested_cells:
                self.nested_cells[table.id] = dict(table_spec.nested_cells)
        self.entries: Dict[str, SnapshotEntry] = {}
        for mv_spec in spec.materialized_views:
            self.entries[mv_spec.name] = self._build_entry(mv_spec)

    @classmethod
    def load(cls, path: str | Path) -> "CatalogSnapshot":
        snapshot_path = Path(path)
        if not snapshot_path.exists():
            raise FileNotFoundError(f"Snapshot file not found: {snapshot_path}")
        with snapshot_path.open("r", encoding="utf-8") as fp:
            raw = yaml.safe_load(fp) or {}
        try:
            spec = CatalogSnapshotSpec(**raw)
        except ValidationError as exc:
            raise ValueError(f"Invalid snapshot: {exc}") from exc
        snapshot = cls(spec)
        logger.debug(
            "Loaded snapshot %s with %s tables and %s materialized views",
            snapshot_path,
            len(snapshot.tables),
            len(snapshot.entries),
        )
        return snapshot

    def get_entry(self, name: str) -> SnapshotEntry:
        try:
            return self.entries[name]
        except KeyError:
            raise KeyError(f"Materialized view '{name}' not found in snapshot") from None

    def _table(self, name: str, owner: str) -> BaseTable:
        if name not in self.tables:
            raise ValueError(f"Materialized view '{owner}' references unknown table '{name}'")
        return self.tables[name]

    def _build_entry(self, spec: MaterializedViewSpec) -> SnapshotEntry:
        base_tables = tuple(self._table(name, spec.name) for name in spec.base_tables)
        for name in (*spec.ref_partition_columns, *spec.projection, *spec.refresh_context):
            if name not in spec.base_tables:
                raise ValueError(
                    f"Materialized view '{spec.name}' lists '{name}' which is not one of its base tables"
                )
        mv = MaterializedView(
            id=spec.id,
            name=spec.name,
            base_tables=base_tables,
            partitioning=spec.partitioning,
            partitions={
                p.name: MvPartition(name=p.name, has_storage_data=p.has_storage_data)
                for p in spec.partitions
            },
            external_rewrite_mode=spec.external_rewrite_mode,
        )
        lineage = MvLineage(
            ref_partition_columns={
                self.tables[name]: tuple(columns)
                for name, columns in spec.ref_partition_columns.items()
            },
            projection={
                self.tables[name]: {
                    base_partition: frozenset(mv_partitions)
                    for base_partition, mv_partitions in mapping.items()
                }
                for name, mapping in spec.projection.items()
            },
        )
        context = RefreshContext(
            {
                self.tables[name].id: _to_versions(versions)
                for name, versions in spec.refresh_context.items()
            }
        )
        return SnapshotEntry(mv=mv, lineage=lineage, context=context)


class SnapshotVersionTracker:
    """Version tracker comparing current base partition versions with recorded ones.

    A base partition counts as changed when the MV has no record of it, or
    when its recorded id or version differs from the current one.
    """

    def __init__(
        self,
        current_versions: VersionMaps,
        nested_cells: Optional[Mapping[int, Mapping[str, Cell]]] = None,
    ) -> None:
        self._current_versions = current_versions
        self._nested_cells = nested_cells or {}
        self._recorded: Dict[int, VersionMaps] = {}
        self._cache: Dict[Tuple[int, int, Purpose], BaseTableDelta] = {}

    @classmethod
    def from_snapshot(cls, snapshot: CatalogSnapshot) -> "SnapshotVersionTracker":
        return cls(snapshot.current_versions, snapshot.nested_cells)

    def register(self, mv: MaterializedView, recorded_versions: VersionMaps) -> None:
        """Record what the MV last saw; invalidates cached deltas of that MV."""
        self._recorded[mv.id] = {
            table_id: dict(versions) for table_id, versions in recorded_versions.items()
        }
        for key in [key for key in self._cache if key[0] == mv.id]:
            del self._cache[key]

    def _changed_partitions(self, mv: MaterializedView, base_table: BaseTable) -> set[str]:
        current = self._current_versions.get(base_table.id, {})
        recorded = self._recorded.get(mv.id, {}).get(base_table.id, {})
        changed = set()
        for name, version in current.items():
            seen = recorded.get(name)
            if seen is None or (seen.partition_id, seen.version) != (
                version.partition_id,
                version.version,
            ):
                changed.add(name)
        return changed

    def is_table_changed(
        self, mv: MaterializedView, base_table: BaseTable, purpose: Purpose
    ) -> bool:
        """True when a partition changed or a recorded partition was dropped."""
        if self._changed_partitions(mv, base_table):
            return True
        current = self._current_versions.get(base_table.id, {})
        recorded = self._recorded.get(mv.id, {}).get(base_table.id, {})
        # Dropped partitions change the table's contents as well.
        return any(name not in current for name in recorded)

    def get_base_table_delta(
        self,
        mv: MaterializedView,
        base_table: BaseTable,
        use_cache: bool,
        purpose: Purpose,
    ) -> BaseTableDelta:
        key = (mv.id, base_table.id, purpose)
        if use_cache and key in self._cache:
            return self._cache[key]
        nested_cells: Mapping[str, Cell] = {}
        if base_table.is_materialized_view:
            nested_cells = dict(self._nested_cells.get(base_table.id, {}))
        delta = BaseTableDelta(
            changed_partitions=frozenset(self._changed_partitions(mv, base_table)),
            nested_cells=nested_cells,
        )
        if use_cache:
            self._cache[key] = delta
        return delta


def _to_versions(specs: Mapping[str, PartitionVersionSpec]) -> Dict[str, BasePartitionVersion]:
    return {
        name: BasePartitionVersion(partition_id=spec.id, version=spec.version)
        for name, spec in specs.items()
    }


__all__ = [
    "CatalogSnapshot",
    "CatalogSnapshotSpec",
    "SnapshotEntry",
    "SnapshotVersionTracker",
]
