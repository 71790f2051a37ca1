"""Detects non-reference base tables that invalidate the whole MV."""
from __future__ import annotations

import logging
from typing import Collection, Optional

from ..collaborators import VersionTracker
from ..model import BaseTable, MaterializedView
from ..policy import ExternalRewriteMode, Purpose
from ..update_info import ConsistencyFailure, FailureReason

logger = logging.getLogger(__name__)


def needs_refresh_on_non_ref_base_tables(
    mv: MaterializedView,
    ref_tables: Collection[BaseTable],
    tracker: VersionTracker,
    purpose: Purpose,
) -> Optional[ConsistencyFailure]:
    """Return the first stale non-reference base table, or None if all are fresh."""
    external_rewrite_disabled = mv.external_rewrite_mode is ExternalRewriteMode.DISABLE
    for table in mv.base_tables:
        if table.is_view or table in ref_tables:
            continue
        # Freshness of external tables cannot be verified when their rewrite is disabled.
        if not table.is_native and external_rewrite_disabled:
            logger.info(
                "Non-ref base table %s of mv %s is external with rewrite disabled",
                table.name,
                mv.name,
            )
            return ConsistencyFailure(table, FailureReason.EXTERNAL_REWRITE_DISABLED)
        if tracker.is_table_changed(mv, table, purpose):
            logger.info("Non-ref base table %s of mv %s changed", table.name, mv.name)
            return ConsistencyFailure(table, FailureReason.TABLE_CHANGED)
    return None


__all__ = ["needs_refresh_on_non_ref_base_tables"]
