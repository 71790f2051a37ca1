"""Consistency policy and the other tagged variants that steer the arbiter."""
from __future__ import annotations

from enum import Enum


class ConsistencyMode(str, Enum):
    """How strictly base-table freshness is verified."""

    LOOSE = "loose"
    CHECKED = "checked"

    @classmethod
    def parse(cls, value: "ConsistencyMode | str") -> "ConsistencyMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ValueError(f"Unsupported consistency mode: {value}") from exc


class ExternalRewriteMode(str, Enum):
    """MV table property controlling query rewrite over external base tables."""

    DISABLE = "disable"
    LOOSE = "loose"
    CHECKED = "checked"


class Purpose(str, Enum):
    """Why the caller asks: query rewrite eligibility or scheduled refresh."""

    QUERY_REWRITE = "query_rewrite"
    REFRESH = "refresh"

    @property
    def is_query_rewrite(self) -> bool:
        return self is Purpose.QUERY_REWRITE


class Partitioning(str, Enum):
    RANGE = "range"
    LIST = "list"
    UNPARTITIONED = "unpartitioned"

    @property
    def is_partitioned(self) -> bool:
        return self is not Partitioning.UNPARTITIONED


def is_loose(mode: ConsistencyMode | str) -> bool:
    """Return True when the loose algorithm applies; every other mode runs checked."""
    return ConsistencyMode.parse(mode) is ConsistencyMode.LOOSE


__all__ = [
    "ConsistencyMode",
    "ExternalRewriteMode",
    "Partitioning",
    "Purpose",
    "is_loose",
]
