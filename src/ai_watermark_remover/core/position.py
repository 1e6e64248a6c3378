import math
from dataclasses import dataclass

from . import (
    CALIBRATION_HIGH,
    CALIBRATION_LOW,
    MEDIUM_EDGE_LIMIT,
    MEDIUM_MARGIN,
    MEDIUM_WATERMARK_SIZE,
    SMALL_EDGE_LIMIT,
    SMALL_MARGIN,
    SMALL_WATERMARK_SIZE,
    TALL_RATIO_LIMIT,
    WIDE_RATIO_LIMIT,
)
from .variants import (
    DOUBAO_TEMPLATES,
    AspectBucket,
    ReferenceAsset,
    SizeBucket,
    WatermarkVariant,
)


@dataclass(frozen=True)
class RegionConfig:
    """Watermark footprint and its offset from the bottom-right corner."""

    variant: WatermarkVariant
    width: int
    height: int
    margin_right: int
    margin_bottom: int
    asset: ReferenceAsset
    bucket: SizeBucket | AspectBucket


@dataclass(frozen=True)
class WatermarkRect:
    """Absolute watermark rectangle inside the image."""

    x: int
    y: int
    width: int
    height: int

    def fits(self, image_width: int, image_height: int) -> bool:
        """True if the rectangle is non-empty and lies fully inside the image."""
        return (
            self.width > 0
            and self.height > 0
            and self.x >= 0
            and self.y >= 0
            and self.x + self.width <= image_width
            and self.y + self.height <= image_height
        )


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def classify_aspect(image_width: int, image_height: int) -> AspectBucket:
    """
    Classify an image into a Doubao aspect bucket by width / height.

    The boundary ratios themselves belong to the square bucket.
    """
    ratio = image_width / image_height

    if ratio < TALL_RATIO_LIMIT:
        return AspectBucket.TALL
    if ratio > WIDE_RATIO_LIMIT:
        return AspectBucket.WIDE
    return AspectBucket.SQUARE


def classify_size(image_width: int, image_height: int) -> SizeBucket:
    """Classify an image into a Gemini size bucket by its shorter edge."""
    edge = min(image_width, image_height)

    if edge <= SMALL_EDGE_LIMIT:
        return SizeBucket.SMALL
    if edge <= MEDIUM_EDGE_LIMIT:
        return SizeBucket.MEDIUM
    return SizeBucket.LARGE


def interpolate_size_and_margin(edge: int) -> tuple[int, int]:
    """
    Linearly interpolate Gemini watermark size and margin for a shorter edge.

    Passes exactly through both calibration points and keeps extending the
    same line for larger images.
    """
    edge0, size0, margin0 = CALIBRATION_LOW
    edge1, size1, margin1 = CALIBRATION_HIGH

    size_slope = (size1 - size0) / (edge1 - edge0)
    margin_slope = (margin1 - margin0) / (edge1 - edge0)

    size = _round_half_up(size0 + size_slope * (edge - edge0))
    margin = _round_half_up(margin0 + margin_slope * (edge - edge0))
    return size, margin


def _resolve_gemini(
    image_width: int,
    image_height: int,
    override: SizeBucket | None,
) -> RegionConfig:
    bucket = override if override is not None else classify_size(image_width, image_height)

    if bucket is SizeBucket.SMALL:
        size, margin = SMALL_WATERMARK_SIZE, SMALL_MARGIN
        asset = ReferenceAsset.GEMINI_48
    elif bucket is SizeBucket.MEDIUM:
        size, margin = MEDIUM_WATERMARK_SIZE, MEDIUM_MARGIN
        asset = ReferenceAsset.GEMINI_96
    else:
        size, margin = interpolate_size_and_margin(min(image_width, image_height))
        asset = ReferenceAsset.GEMINI_96

    return RegionConfig(
        variant=WatermarkVariant.GEMINI,
        width=size,
        height=size,
        margin_right=margin,
        margin_bottom=margin,
        asset=asset,
        bucket=bucket,
    )


def _resolve_doubao(
    image_width: int,
    image_height: int,
    override: AspectBucket | None,
) -> RegionConfig:
    bucket = override if override is not None else classify_aspect(image_width, image_height)
    template = DOUBAO_TEMPLATES[bucket]

    # Scale by the shorter-edge ratio so the overlay keeps its own aspect ratio
    scale = min(image_width, image_height) / template.ref_short_edge

    return RegionConfig(
        variant=WatermarkVariant.DOUBAO,
        width=_round_half_up(template.wm_width * scale),
        height=_round_half_up(template.wm_height * scale),
        margin_right=_round_half_up(template.margin_right * scale),
        margin_bottom=_round_half_up(template.margin_bottom * scale),
        asset=template.asset,
        bucket=bucket,
    )


def parse_override(
    variant: WatermarkVariant,
    override: SizeBucket | AspectBucket | str | None,
) -> SizeBucket | AspectBucket | None:
    """Coerce a bucket override to the bucket type used by ``variant``."""
    if override is None:
        return None

    bucket_type = SizeBucket if variant is WatermarkVariant.GEMINI else AspectBucket
    choices = [b for b in bucket_type if b is not SizeBucket.LARGE]

    try:
        bucket = bucket_type(override)
    except ValueError:
        bucket = None

    if bucket not in choices:
        names = ", ".join(b.value for b in choices)
        raise ValueError(f"Invalid override {override!r} for {variant.value} (expected one of: {names})")

    return bucket


def resolve_region(
    image_width: int,
    image_height: int,
    variant: WatermarkVariant | str = WatermarkVariant.GEMINI,
    override: SizeBucket | AspectBucket | str | None = None,
) -> RegionConfig:
    """
    Resolve watermark size and margins from image dimensions alone.

    Gemini uses fixed sizes for images whose shorter edge is at most 2048px
    and interpolates beyond that. Doubao picks an aspect-ratio template and
    scales it by the shorter edge.

    Args:
        image_width: Image width in pixels
        image_height: Image height in pixels
        variant: Watermark family
        override: Force a size bucket (Gemini) or aspect bucket (Doubao)

    Returns:
        Region configuration with non-negative integer geometry
    """
    if image_width <= 0 or image_height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {image_width}x{image_height}")

    variant = WatermarkVariant.parse(variant)
    bucket = parse_override(variant, override)

    if variant is WatermarkVariant.DOUBAO:
        return _resolve_doubao(image_width, image_height, bucket)
    return _resolve_gemini(image_width, image_height, bucket)


def calculate_watermark_position(
    image_width: int,
    image_height: int,
    config: RegionConfig,
) -> WatermarkRect:
    """
    Calculate the watermark rectangle in the bottom-right corner.

    The result is not bounds checked; use ``WatermarkRect.fits``.
    """
    x = image_width - config.margin_right - config.width
    y = image_height - config.margin_bottom - config.height

    return WatermarkRect(x=x, y=y, width=config.width, height=config.height)
