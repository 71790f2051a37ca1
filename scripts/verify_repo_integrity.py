#!/usr/bin/env python
"""Fail-fast import verification for critical modules."""
from __future__ import annotations

import importlib
import sys

MODULES = [
    "mv_timeliness",
    "mv_timeliness.arbiter",
    "mv_timeliness.cli",
    "mv_timeliness.config",
    "mv_timeliness.context_store",
    "mv_timeliness.report",
    "mv_timeliness.snapshot",
]


def main() -> int:
    for module in MODULES:
        try:
            importlib.import_module(module)
        except Exception as exc:  # pragma: no cover - intentional fail fast
            print(f"[verify_repo_integrity] Failed to import {module}: {exc}", file=sys.stderr)
            return 1
    print("[verify_repo_integrity] All modules imported successfully.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
