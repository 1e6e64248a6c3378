from dataclasses import dataclass
from pathlib import Path

import cv2
import numpy as np
from numpy.typing import NDArray
from PIL import Image

from .variants import ReferenceAsset


@dataclass(frozen=True)
class ReferenceCapture:
    """Decoded reference image of a watermark composited over black."""

    asset: ReferenceAsset
    pixels: NDArray[np.uint8]  # (H, W, 3), read-only

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]


def load_reference_capture(asset: ReferenceAsset, assets_dir: Path) -> ReferenceCapture:
    """
    Load and decode a reference capture PNG.

    Args:
        asset: Which capture to load
        assets_dir: Directory (or package resource) holding the captures

    Returns:
        Read-only RGB capture

    Raises:
        OSError: If the file is missing or cannot be decoded
    """
    with assets_dir.joinpath(asset.filename).open("rb") as f:
        with Image.open(f) as img:
            pixels = np.array(img.convert("RGB"), dtype=np.uint8)

    pixels.setflags(write=False)
    return ReferenceCapture(asset=asset, pixels=pixels)


def resample_capture(
    capture: ReferenceCapture,
    target_width: int,
    target_height: int,
) -> NDArray[np.uint8]:
    """
    Resize capture pixels to the target region size.

    Area averaging when shrinking, bicubic when enlarging, untouched at
    identical size.
    """
    if (capture.width, capture.height) == (target_width, target_height):
        return capture.pixels

    shrinking = target_width * target_height < capture.width * capture.height
    interpolation = cv2.INTER_AREA if shrinking else cv2.INTER_CUBIC

    return cv2.resize(
        capture.pixels.copy(),
        (target_width, target_height),
        interpolation=interpolation,
    )


def derive_alpha_map(
    capture: ReferenceCapture,
    target_width: int,
    target_height: int,
) -> NDArray[np.float32]:
    """
    Calculate an alpha map from a reference capture at the target size.

    The capture shows a white watermark over black, so each pixel's
    brightness is its opacity: alpha = max(R, G, B) / 255.

    Args:
        capture: Reference capture for the watermark variant
        target_width: Alpha map width
        target_height: Alpha map height

    Returns:
        Read-only float32 array (target_height, target_width) in [0, 1]
    """
    if target_width <= 0 or target_height <= 0:
        raise ValueError(f"Alpha map size must be positive, got {target_width}x{target_height}")

    resampled = resample_capture(capture, target_width, target_height)

    alpha_map = np.max(resampled[:, :, :3], axis=2).astype(np.float32) / np.float32(255.0)
    alpha_map = np.clip(alpha_map, 0.0, 1.0).astype(np.float32)

    alpha_map.setflags(write=False)
    return alpha_map
