"""Staleness arbiter: decides which MV partitions are out of date with their base tables."""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Tuple

from ..collaborators import VersionTracker
from ..model import BaseTable, MaterializedView, MvLineage
from ..policy import ConsistencyMode, Purpose, is_loose
from ..refresh_context import RefreshContextView
from ..update_info import (
    ConsistencyFailure,
    FailureReason,
    UpdateInfo,
    UpdateInfoBuilder,
)
from .backfill import empty_partitions_to_refresh
from .collector import CollectedChanges, collect_base_table_changes
from .mapper import map_to_mv_partitions
from .non_reference import needs_refresh_on_non_ref_base_tables

logger = logging.getLogger(__name__)


class StalenessArbiter:
    """Computes the refresh decision of one materialized view.

    Base tables come in two kinds. A reference base table feeds the MV's
    partition column, so its changed partitions map onto specific MV
    partitions. Any other base table is non-reference: a change there
    invalidates the whole MV.

    The caller must hold the MV's refresh-context lock for the whole
    invocation; that is why the arbiter takes a ``RefreshContextView``.
    """

    def __init__(
        self,
        mv: MaterializedView,
        lineage: MvLineage,
        context: RefreshContextView,
        tracker: VersionTracker,
        purpose: Purpose = Purpose.QUERY_REWRITE,
        use_cache: bool = True,
    ) -> None:
        self.mv = mv
        self.lineage = lineage
        self.context = context
        self.tracker = tracker
        self.purpose = purpose
        self.use_cache = use_cache

    @property
    def ref_tables(self) -> Tuple[BaseTable, ...]:
        return self.lineage.ref_tables

    def compute_update_info(self, mode: ConsistencyMode | str) -> UpdateInfo:
        loose = is_loose(mode)
        logger.debug(
            "Arbitrating mv %s mode=%s partitioning=%s purpose=%s",
            self.mv.name,
            "loose" if loose else "checked",
            self.mv.partitioning.value,
            self.purpose.value,
        )
        if not self.mv.partitioning.is_partitioned:
            info = self._unpartitioned_loose() if loose else self._unpartitioned_checked()
        elif loose:
            info = self._partitioned_loose()
        else:
            info = self._partitioned_checked()
        logger.info(
            "mv %s refresh_type=%s partitions=%s failures=%s",
            self.mv.name,
            info.refresh_type.value,
            len(info.mv_partitions_to_refresh),
            len(info.consistency_failures),
        )
        return info

    def _partitioned_checked(self) -> UpdateInfo:
        builder = UpdateInfoBuilder()
        failure = needs_refresh_on_non_ref_base_tables(
            self.mv, self.ref_tables, self.tracker, self.purpose
        )
        if failure is not None:
            builder.mark_full_refresh(failure)
            return builder.build()

        collected = self._collect(builder)
        self._map(builder, collected)
        builder.add_mv_partitions(empty_partitions_to_refresh(self.mv, self.ref_tables))
        return builder.build()

    def _partitioned_loose(self) -> UpdateInfo:
        builder = UpdateInfoBuilder()
        collected = self._collect(builder)
        self._relax(builder, collected)
        self._map(builder, collected)
        builder.add_mv_partitions(empty_partitions_to_refresh(self.mv, self.ref_tables))
        return builder.build()

    def _unpartitioned_checked(self) -> UpdateInfo:
        builder = UpdateInfoBuilder()
        failure = needs_refresh_on_non_ref_base_tables(
            self.mv, (), self.tracker, self.purpose
        )
        if failure is not None:
            builder.mark_full_refresh(failure)
        return builder.build()

    def _unpartitioned_loose(self) -> UpdateInfo:
        builder = UpdateInfoBuilder()
        for table in self.mv.base_tables:
            if table.is_view:
                continue
            if not self.context.has_version_map(table.id):
                builder.mark_full_refresh(
                    ConsistencyFailure(table, FailureReason.NEVER_REFRESHED)
                )
                break
        return builder.build()

    def _collect(self, builder: UpdateInfoBuilder) -> CollectedChanges:
        collected = collect_base_table_changes(
            self.mv, self.ref_tables, self.tracker, self.purpose, self.use_cache
        )
        builder.base_table_deltas.update(collected.deltas)
        builder.nested_cell_updates.extend(collected.nested_cell_updates)
        return collected

    def _relax(self, builder: UpdateInfoBuilder, collected: CollectedChanges) -> None:
        """Ignore base partitions that both the base table and the MV already track."""
        for table in self.ref_tables:
            tracked = self.context.ensure_version_map(table.id)
            delta = collected.deltas[table]
            relaxed = delta.changed_partitions.difference(tracked)
            if relaxed == delta.changed_partitions:
                continue
            logger.debug(
                "Loose mode ignores tracked partitions %s of %s",
                sorted(delta.changed_partitions - relaxed),
                table.name,
            )
            relaxed_delta = replace(delta, changed_partitions=relaxed)
            collected.deltas[table] = relaxed_delta
            collected.change_set[table] = relaxed
            builder.base_table_deltas[table] = relaxed_delta

    def _map(self, builder: UpdateInfoBuilder, collected: CollectedChanges) -> None:
        mapped = map_to_mv_partitions(collected.change_set, self.lineage.projection)
        builder.add_mv_partitions(mapped.mv_partitions)
        builder.base_to_mv_partitions.update(mapped.by_table)


def compute_update_info(
    mv: MaterializedView,
    lineage: MvLineage,
    context: RefreshContextView,
    tracker: VersionTracker,
    mode: ConsistencyMode | str,
    purpose: Purpose = Purpose.QUERY_REWRITE,
    use_cache: bool = True,
) -> UpdateInfo:
    arbiter = StalenessArbiter(mv, lineage, context, tracker, purpose, use_cache)
    return arbiter.compute_update_info(mode)


__all__ = ["StalenessArbiter", "compute_update_info"]
