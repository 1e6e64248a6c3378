"""
Runtime settings resolved from the environment.

CLI options take precedence over these values.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from .assets import get_assets_dir

logger = logging.getLogger(__name__)

# Directory holding the reference captures. Defaults to the bundled assets package.
ASSETS_DIR_ENV = "AWR_ASSETS_DIR"


def env_int(name: str, default: int) -> int:
    """Read a positive integer from the environment, falling back to ``default``."""
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default

    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer, using %d", name, raw, default)
        return default

    if value <= 0:
        logger.warning("Ignoring %s=%r: must be positive, using %d", name, raw, default)
        return default
    return value


# Number of images processed at the same time in batch mode.
DEFAULT_WORKERS: int = env_int("AWR_WORKERS", 3)

# Inputs larger than this are skipped (bytes).
MAX_FILE_SIZE: int = env_int("AWR_MAX_FILE_SIZE", 20 * 1024 * 1024)


def resolve_assets_dir(override: Path | None = None) -> Path:
    """Pick the assets directory: explicit override, then environment, then the package."""
    if override is not None:
        return override

    env_dir = os.environ.get(ASSETS_DIR_ENV)
    if env_dir:
        return Path(env_dir).expanduser().resolve()

    return get_assets_dir()
