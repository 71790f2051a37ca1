"""Projects changed base-table partitions onto MV partition names."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Set

from ..errors import MetadataConsistencyError
from ..model import BaseTable, PartitionChangeSet, ReferenceProjection


@dataclass
class MappedPartitions:
    mv_partitions: Set[str] = field(default_factory=set)
    by_table: Dict[BaseTable, Dict[str, FrozenSet[str]]] = field(default_factory=dict)


def map_to_mv_partitions(
    changes: PartitionChangeSet, projection: ReferenceProjection
) -> MappedPartitions:
    """Turn base-table changed partitions into the MV partition names they feed.

    Raises MetadataConsistencyError when a table in ``changes`` or one of its
    changed partitions has no lineage entry, including when ``projection`` is
    empty.
    """
    mapped = MappedPartitions()
    for table, partition_names in changes.items():
        if table not in projection:
            raise MetadataConsistencyError(table.name)
        table_projection = projection[table]
        per_table = mapped.by_table.setdefault(table, {})
        for partition_name in partition_names:
            if partition_name not in table_projection:
                raise MetadataConsistencyError(table.name, partition_name)
            mv_names = frozenset(table_projection[partition_name])
            per_table[partition_name] = mv_names
            mapped.mv_partitions.update(mv_names)
    return mapped


__all__ = ["MappedPartitions", "map_to_mv_partitions"]
