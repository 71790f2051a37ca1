"""Staleness arbitration for partitioned materialized views."""
from importlib.metadata import PackageNotFoundError, version

from .arbiter import StalenessArbiter, compute_update_info
from .errors import ArbiterError, MetadataConsistencyError, RefreshContextLockError
from .model import (
    BasePartitionVersion,
    BaseTable,
    BaseTableDelta,
    MaterializedView,
    MvLineage,
    MvPartition,
    TableKind,
)
from .policy import ConsistencyMode, ExternalRewriteMode, Partitioning, Purpose
from .refresh_context import RefreshContext, RefreshContextView
from .update_info import RefreshType, UpdateInfo

try:
    __version__ = version("mv-timeliness")
except PackageNotFoundError:  # pragma: no cover - during local dev without install
    __version__ = "0.0.0"

__all__ = [
    "ArbiterError",
    "BasePartitionVersion",
    "BaseTable",
    "BaseTableDelta",
    "ConsistencyMode",
    "ExternalRewriteMode",
    "MaterializedView",
    "MetadataConsistencyError",
    "MvLineage",
    "MvPartition",
    "Partitioning",
    "Purpose",
    "RefreshContext",
    "RefreshContextLockError",
    "RefreshContextView",
    "RefreshType",
    "StalenessArbiter",
    "TableKind",
    "UpdateInfo",
    "__version__",
    "compute_update_info",
]
