import numpy as np
from numpy.typing import NDArray

from ..errors import RegionOutOfBoundsError
from . import ALPHA_THRESHOLD, LOGO_VALUE, MAX_ALPHA
from .position import WatermarkRect


def composite_watermark(
    image_array: NDArray,
    alpha_map: NDArray[np.float32],
    rect: WatermarkRect,
    logo_value: int = LOGO_VALUE,
) -> NDArray:
    """
    Forward alpha blend a constant-tint watermark into the image (in-place).

    Formula: watermarked = alpha * logo_value + (1 - alpha) * original

    Results are not rounded, so float buffers keep the exact composite.
    """
    x, y, w, h = rect.x, rect.y, rect.width, rect.height

    region = image_array[y : y + h, x : x + w, :3].astype(np.float64)
    alpha = alpha_map.astype(np.float64)[:, :, np.newaxis]
    blended = alpha * logo_value + (1.0 - alpha) * region

    if np.issubdtype(image_array.dtype, np.integer):
        blended = np.clip(np.rint(blended), 0, 255)

    image_array[y : y + h, x : x + w, :3] = blended.astype(image_array.dtype)
    return image_array


def apply_reverse_blend(
    image_array: NDArray,
    rect: WatermarkRect,
    alpha_map: NDArray[np.float32],
    logo_value: int = LOGO_VALUE,
) -> NDArray:
    """
    Remove watermark from image using reverse alpha blending.

    Formula: original = (watermarked - alpha * logo_value) / (1 - alpha)

    Args:
        image_array: Input image as numpy array (H, W, C) in RGB/RGBA format
        rect: Watermark rectangle, must lie inside the image
        alpha_map: Alpha transparency map (rect.height x rect.width)
        logo_value: Constant foreground tint of the watermark

    Returns:
        The same image array, modified in-place inside ``rect`` only

    Raises:
        ValueError: If the alpha map does not match the rectangle
        RegionOutOfBoundsError: If the rectangle leaves the image
    """
    x, y = rect.x, rect.y
    w, h = rect.width, rect.height
    img_h, img_w = image_array.shape[:2]

    if alpha_map.shape != (h, w):
        raise ValueError(f"Alpha map shape {alpha_map.shape} does not match region {w}x{h}")

    # Validate before touching any pixel
    if not rect.fits(img_w, img_h):
        raise RegionOutOfBoundsError(rect, img_w, img_h)

    # Extract the watermark region (color channels only)
    region = image_array[y : y + h, x : x + w, :3].astype(np.float64)

    # Pixels with negligible alpha are left as observed
    alpha = alpha_map.astype(np.float64)
    mask = alpha >= ALPHA_THRESHOLD

    # Clamp alpha to prevent division by near-zero
    alpha = np.clip(alpha, 0.0, MAX_ALPHA)
    alpha_expanded = alpha[:, :, np.newaxis]

    restored = (region - alpha_expanded * logo_value) / (1.0 - alpha_expanded)
    result = np.where(mask[:, :, np.newaxis], restored, region)

    # Clamp to valid range and convert back to the buffer's dtype
    result = np.clip(np.rint(result), 0, 255)
    image_array[y : y + h, x : x + w, :3] = result.astype(image_array.dtype)

    return image_array
