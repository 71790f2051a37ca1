"""Pytest configuration for loading local environment variables."""
from __future__ import annotations

from pathlib import Path

try:
    from mv_timeliness.env import load_env
except ImportError as exc:
    raise RuntimeError(
        "mv_timeliness is not importable. Activate your virtualenv "
        "and run 'pip install -e .[dev]' before running pytest."
    ) from exc

# .env first, .env.test on top when present
test_env = Path(".env.test")
load_env(test_env if test_env.exists() else None)
