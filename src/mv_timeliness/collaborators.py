"""Contracts of the external collaborators the arbiter calls into."""
from __future__ import annotations

from typing import Protocol

from .model import BaseTable, BaseTableDelta, MaterializedView
from .policy import Purpose


class VersionTracker(Protocol):
    """Version-tracking subsystem that knows whether base data moved since the MV's last refresh."""

    def is_table_changed(
        self, mv: MaterializedView, base_table: BaseTable, purpose: Purpose
    ) -> bool:
        """Return True if any data of the base table changed since the MV's last refresh."""

    def get_base_table_delta(
        self,
        mv: MaterializedView,
        base_table: BaseTable,
        use_cache: bool,
        purpose: Purpose,
    ) -> BaseTableDelta:
        """Return the changed partitions (and nested-MV cells) of a reference base table."""


__all__ = ["VersionTracker"]
