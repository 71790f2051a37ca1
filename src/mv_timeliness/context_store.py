"""SQLite-backed persistence for MV refresh-context version records."""
from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from .model import BasePartitionVersion
from .refresh_context import RefreshContext


@dataclass
class RefreshContextRecord:
    mv_id: int
    base_table_id: int
    partition_name: str
    partition_id: int
    version: int
    last_refresh_time: Optional[datetime] = None


class RefreshContextRepository:
    """Lightweight DAO for the refresh_context table."""

    def __init__(self, db_path: str | Path = "data/refresh_context.db") -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS refresh_context (
                    mv_id INTEGER NOT NULL,
                    base_table_id INTEGER NOT NULL,
                    partition_name TEXT NOT NULL,
                    partition_id INTEGER NOT NULL,
                    version BIGINT NOT NULL,
                    last_refresh_time TIMESTAMPTZ,
                    PRIMARY KEY (mv_id, base_table_id, partition_name)
                )
                """
            )

    def list_records(
        self,
        mv_id: Optional[int] = None,
        base_table_id: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> list[RefreshContextRecord]:
        where_clauses = []
        params: list[int] = []
        if mv_id is not None:
            where_clauses.append("mv_id = ?")
            params.append(mv_id)
        if base_table_id is not None:
            where_clauses.append("base_table_id = ?")
            params.append(base_table_id)

        where_sql = ""
        if where_clauses:
            where_sql = "WHERE " + " AND ".join(where_clauses)

        limit_sql = ""
        if limit is not None:
            limit_sql = f" LIMIT {int(limit)}"

        with self._connect() as conn:
            rows = conn.execute(
                f"""
                SELECT *
                  FROM refresh_context
                  {where_sql}
                 ORDER BY mv_id, base_table_id, partition_name
                 {limit_sql}
                """,
                tuple(params),
            ).fetchall()
            return [self._row_to_record(row) for row in rows]

    def upsert_records(self, records: Iterable[RefreshContextRecord]) -> None:
        with self._connect() as conn:
            conn.executemany(
                """
                INSERT INTO refresh_context (
                    mv_id,
                    base_table_id,
                    partition_name,
                    partition_id,
                    version,
                    last_refresh_time
                )
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(mv_id, base_table_id, partition_name) DO UPDATE SET
                    partition_id=excluded.partition_id,
                    version=excluded.version,
                    last_refresh_time=excluded.last_refresh_time
                """,
                [
                    (
                        record.mv_id,
                        record.base_table_id,
                        record.partition_name,
                        record.partition_id,
                        record.version,
                        record.last_refresh_time.isoformat()
                        if record.last_refresh_time
                        else None,
                    )
                    for record in records
                ],
            )

    def load_context(self, mv_id: int) -> RefreshContext:
        """Build the in-memory refresh context of one MV from its stored records."""
        version_maps: dict[int, dict[str, BasePartitionVersion]] = {}
        for record in self.list_records(mv_id=mv_id):
            version_maps.setdefault(record.base_table_id, {})[record.partition_name] = (
                BasePartitionVersion(
                    partition_id=record.partition_id,
                    version=record.version,
                    last_refresh_time=record.last_refresh_time,
                )
            )
        return RefreshContext(version_maps)

    def save_context(self, mv_id: int, context: RefreshContext) -> int:
        """Persist every version record of the context; returns the number written."""
        with context.locked() as view:
            version_maps = view.snapshot()
        records = [
            RefreshContextRecord(
                mv_id=mv_id,
                base_table_id=table_id,
                partition_name=name,
                partition_id=version.partition_id,
                version=version.version,
                last_refresh_time=version.last_refresh_time,
            )
            for table_id, versions in version_maps.items()
            for name, version in versions.items()
        ]
        self.upsert_records(records)
        return len(records)

    def _row_to_record(self, row: sqlite3.Row) -> RefreshContextRecord:
        refreshed = row["last_refresh_time"]
        return RefreshContextRecord(
            mv_id=row["mv_id"],
            base_table_id=row["base_table_id"],
            partition_name=row["partition_name"],
            partition_id=row["partition_id"],
            version=row["version"],
            last_refresh_time=datetime.fromisoformat(refreshed) if refreshed else None,
        )


__all__ = ["RefreshContextRecord", "RefreshContextRepository"]
