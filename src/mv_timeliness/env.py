"""Environment loading for the mvt CLI and the test suite."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional, Union

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ENV_OVERLAY_VARIABLE = "MVT_ENV_FILE"


def load_env(overlay: Optional[Union[str, Path]] = None) -> List[Path]:
    """Load ``.env`` from the working directory, then an optional overlay file.

    The overlay is taken from ``overlay`` or ``MVT_ENV_FILE`` and overrides
    values already set. Variables exported before the call win over ``.env``.
    Returns the files that were read.
    """
    loaded: List[Path] = []
    base = Path(".env")
    if base.exists():
        load_dotenv(dotenv_path=base)
        loaded.append(base)

    overlay = overlay or os.getenv(ENV_OVERLAY_VARIABLE)
    if overlay:
        path = Path(overlay)
        if not path.exists():
            raise FileNotFoundError(f"Environment overlay not found: {path}")
        load_dotenv(dotenv_path=path, override=True)
        loaded.append(path)

    if loaded:
        logger.debug("Loaded environment from %s", ", ".join(str(p) for p in loaded))
    return loaded


__all__ = ["ENV_OVERLAY_VARIABLE", "load_env"]
