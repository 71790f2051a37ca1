"""Staleness arbitration for partitioned materialized views."""
from .arbiter import StalenessArbiter, compute_update_info

__all__ = ["StalenessArbiter", "compute_update_info"]
