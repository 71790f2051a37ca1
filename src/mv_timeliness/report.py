"""Helpers for formatting arbitration results and refresh-context records."""
from __future__ import annotations

import json
from typing import Iterable, List, Sequence, Tuple

from tabulate import tabulate

from .context_store import RefreshContextRecord
from .model import MaterializedView
from .update_info import UpdateInfo


def update_info_payload(mv: MaterializedView, info: UpdateInfo) -> dict:
    return {
        "mv": mv.name,
        "refresh_type": info.refresh_type.value,
        "partitions_to_refresh": sorted(info.resolve_partitions(mv)),
        "base_tables": {
            table.name: {
                "changed_partitions": sorted(delta.changed_partitions),
                "mv_partitions": sorted(info.mv_partitions_for(table)),
            }
            for table, delta in info.base_table_deltas.items()
        },
        "nested_cell_updates": {
            update.table.name: sorted(update.cells) for update in info.nested_cell_updates
        },
        "consistency_failures": [
            {"table": failure.table.name, "reason": failure.reason.value}
            for failure in info.consistency_failures
        ],
    }


def format_update_infos(
    results: Sequence[Tuple[MaterializedView, UpdateInfo]], output_format: str = "table"
) -> str:
    if not results:
        return "No materialized views evaluated."
    if output_format == "json":
        payload: List[dict] = [update_info_payload(mv, info) for mv, info in results]
        return json.dumps(payload, indent=2)

    table_data = []
    for mv, info in results:
        partitions = sorted(info.resolve_partitions(mv))
        table_data.append(
            [
                mv.name,
                info.refresh_type.value,
                ",".join(partitions) or "-",
                ",".join(
                    f"{failure.table.name}:{failure.reason.value}"
                    for failure in info.consistency_failures
                )
                or "-",
            ]
        )
    headers = ["mv", "refresh_type", "partitions_to_refresh", "consistency_failures"]
    return tabulate(table_data, headers=headers, tablefmt="plain")


def format_context_records(
    records: Iterable[RefreshContextRecord], output_format: str = "table"
) -> str:
    rows = list(records)
    if not rows:
        return "No refresh context records found."
    if output_format == "json":
        payload = [
            {
                "mv_id": row.mv_id,
                "base_table_id": row.base_table_id,
                "partition_name": row.partition_name,
                "partition_id": row.partition_id,
                "version": row.version,
                "last_refresh_time": row.last_refresh_time.isoformat()
                if row.last_refresh_time
                else None,
            }
            for row in rows
        ]
        return json.dumps(payload, indent=2)

    table_data = [
        [
            row.mv_id,
            row.base_table_id,
            row.partition_name,
            row.partition_id,
            row.version,
            row.last_refresh_time.isoformat() if row.last_refresh_time else "-",
        ]
        for row in rows
    ]
    headers = [
        "mv_id",
        "base_table_id",
        "partition_name",
        "partition_id",
        "version",
        "last_refresh_time",
    ]
    return tabulate(table_data, headers=headers, tablefmt="plain")


__all__ = ["format_context_records", "format_update_infos", "update_info_payload"]
