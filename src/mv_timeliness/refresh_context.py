"""Lock-guarded refresh-context version map of one materialized view."""
from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Mapping, Optional

from .errors import RefreshContextLockError
from .model import BasePartitionVersion

VersionMap = Dict[str, BasePartitionVersion]


class RefreshContext:
    """Per-MV record of the last-observed version of each tracked base partition.

    The map is shared catalog state. It can only be reached through
    :meth:`locked`, which holds the lock for the lifetime of the yielded view.
    """

    def __init__(
        self,
        version_maps: Optional[Mapping[int, Mapping[str, BasePartitionVersion]]] = None,
    ) -> None:
        self._lock = threading.RLock()
        self._version_maps: Dict[int, VersionMap] = {
            table_id: dict(versions) for table_id, versions in (version_maps or {}).items()
        }

    @contextmanager
    def locked(self) -> Iterator["RefreshContextView"]:
        with self._lock:
            view = RefreshContextView(self._version_maps)
            try:
                yield view
            finally:
                view._release()


class RefreshContextView:
    """Access handle that is only valid while its owning lock is held."""

    def __init__(self, version_maps: Dict[int, VersionMap]) -> None:
        self._version_maps = version_maps
        self._active = True

    def _release(self) -> None:
        self._active = False

    def _check(self) -> None:
        if not self._active:
            raise RefreshContextLockError(
                "Refresh context accessed after its lock was released"
            )

    def table_ids(self) -> list[int]:
        self._check()
        return sorted(self._version_maps)

    def get_version_map(self, table_id: int) -> Mapping[str, BasePartitionVersion]:
        """Return a read-only copy of the versions recorded for a table (empty if unknown)."""
        self._check()
        return dict(self._version_maps.get(table_id, {}))

    def ensure_version_map(self, table_id: int) -> Mapping[str, BasePartitionVersion]:
        """Register an empty version map for the table if none exists and return a copy."""
        self._check()
        versions = self._version_maps.setdefault(table_id, {})
        return dict(versions)

    def has_version_map(self, table_id: int) -> bool:
        self._check()
        return table_id in self._version_maps

    def record(self, table_id: int, partition_name: str, version: BasePartitionVersion) -> None:
        self._check()
        self._version_maps.setdefault(table_id, {})[partition_name] = version

    def snapshot(self) -> Dict[int, Dict[str, BasePartitionVersion]]:
        self._check()
        return {table_id: dict(versions) for table_id, versions in self._version_maps.items()}


__all__ = ["RefreshContext", "RefreshContextView", "VersionMap"]
