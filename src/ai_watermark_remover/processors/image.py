from pathlib import Path

import numpy as np
from PIL import Image

from ..config import MAX_FILE_SIZE
from ..core.engine import WatermarkEngine
from ..core.variants import AspectBucket, SizeBucket, WatermarkVariant

SUPPORTED_IMAGE_FORMATS = {".png", ".jpg", ".jpeg", ".webp", ".bmp", ".tiff"}


def is_supported_image(path: Path, max_size: int = MAX_FILE_SIZE) -> bool:
    """Check if file is a supported image format within the size limit."""
    if path.suffix.lower() not in SUPPORTED_IMAGE_FORMATS:
        return False
    return path.stat().st_size <= max_size


def load_image_array(input_path: Path) -> np.ndarray:
    """Decode an image file to an RGB or RGBA uint8 array."""
    with Image.open(input_path) as img:
        # Keep transparency, convert everything else (palette, CMYK, L...) to RGB
        if img.mode not in ("RGB", "RGBA"):
            img = img.convert("RGBA" if "transparency" in img.info or img.mode in ("LA", "PA") else "RGB")

        return np.array(img, dtype=np.uint8)


def process_image(
    input_path: Path,
    engine: WatermarkEngine,
    output_path: Path | None = None,
    suffix: str = "_output",
    variant: WatermarkVariant | str = WatermarkVariant.GEMINI,
    override: SizeBucket | AspectBucket | str | None = None,
) -> Path:
    """
    Process a single image to remove watermark.

    Args:
        input_path: Path to input image
        engine: Loaded watermark engine
        output_path: Optional explicit output path. If None, uses input name with suffix.
        suffix: Suffix to add to filename if output_path not specified
        variant: Watermark family that produced the image
        override: Force a size bucket (Gemini) or aspect bucket (Doubao)

    Returns:
        Path to the output PNG file
    """
    # Determine output path
    if output_path is None:
        output_path = input_path.parent / f"{input_path.stem}{suffix}.png"

    image_array = load_image_array(input_path)

    # Remove watermark
    height, width = image_array.shape[:2]
    result_array = engine.restore(image_array, width, height, variant, override)

    # Save result losslessly
    result_image = Image.fromarray(result_array)
    result_image.save(output_path, format="PNG")

    return output_path
