"""Remove AI image generator watermarks by reverse alpha blending."""

from .core.engine import EngineState, WatermarkEngine, WatermarkInfo
from .core.position import RegionConfig, WatermarkRect, resolve_region
from .core.variants import AspectBucket, SizeBucket, WatermarkVariant
from .errors import (
    BufferMismatchError,
    EngineNotReadyError,
    InitializationError,
    RegionOutOfBoundsError,
    UnsupportedVariantError,
    WatermarkRemoverError,
)

__version__ = "0.2.0"

__all__ = [
    "WatermarkEngine",
    "WatermarkInfo",
    "EngineState",
    "WatermarkVariant",
    "SizeBucket",
    "AspectBucket",
    "RegionConfig",
    "WatermarkRect",
    "resolve_region",
    "WatermarkRemoverError",
    "InitializationError",
    "EngineNotReadyError",
    "UnsupportedVariantError",
    "RegionOutOfBoundsError",
    "BufferMismatchError",
]
