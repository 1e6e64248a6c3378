# Asset loading utilities
from importlib import resources
from pathlib import Path


def get_assets_dir() -> Path:
    """Get the directory holding the bundled reference captures."""
    return resources.files(__package__)
