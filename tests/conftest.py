"""Common test fixtures."""

from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from ai_watermark_remover.core.engine import WatermarkEngine
from ai_watermark_remover.core.variants import ReferenceAsset

# Capture sizes used for the synthetic reference images
CAPTURE_SIZES = {
    ReferenceAsset.GEMINI_48: (48, 48),
    ReferenceAsset.GEMINI_96: (96, 96),
    ReferenceAsset.DOUBAO_1X1: (282, 123),
    ReferenceAsset.DOUBAO_2X3: (298, 199),
    ReferenceAsset.DOUBAO_3X2: (296, 71),
}


def make_capture(width: int, height: int, peak: int = 128) -> np.ndarray:
    """White radial blob over black, brightest in the middle."""
    yy, xx = np.mgrid[0:height, 0:width].astype(np.float64)
    cy, cx = (height - 1) / 2, (width - 1) / 2
    dist = np.sqrt(((yy - cy) / max(cy, 1)) ** 2 + ((xx - cx) / max(cx, 1)) ** 2)
    value = np.clip(1.0 - dist, 0.0, 1.0) * peak
    gray = np.rint(value).astype(np.uint8)
    return np.stack([gray, gray, gray], axis=2)


def write_assets(directory: Path, peak: int = 128) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    for asset, (width, height) in CAPTURE_SIZES.items():
        Image.fromarray(make_capture(width, height, peak)).save(directory / asset.filename)
    return directory


def make_image(width: int, height: int, channels: int = 3, seed: int = 0) -> np.ndarray:
    """Random but reproducible test image."""
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(height, width, channels), dtype=np.uint8)


@pytest.fixture
def assets_dir(tmp_path):
    """Directory holding a full set of synthetic reference captures."""
    return write_assets(tmp_path / "assets")


@pytest.fixture
def blank_assets_dir(tmp_path):
    """Reference captures that are entirely black (zero alpha everywhere)."""
    return write_assets(tmp_path / "blank_assets", peak=0)


@pytest.fixture
def engine(assets_dir):
    return WatermarkEngine.create(assets_dir)
