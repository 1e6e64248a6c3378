"""Watermark engine: owns reference captures and the alpha map cache."""

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import numpy as np
from numpy.typing import NDArray

from ..config import resolve_assets_dir
from ..errors import (
    BufferMismatchError,
    EngineNotReadyError,
    InitializationError,
    RegionOutOfBoundsError,
    UnsupportedVariantError,
)
from .alpha_map import ReferenceCapture, derive_alpha_map, load_reference_capture
from .blend import apply_reverse_blend
from .position import RegionConfig, WatermarkRect, calculate_watermark_position, resolve_region
from .variants import (
    VARIANT_ASSETS,
    VARIANT_LOGO_VALUES,
    AspectBucket,
    ReferenceAsset,
    SizeBucket,
    WatermarkVariant,
)

logger = logging.getLogger(__name__)

AlphaMapKey = tuple[WatermarkVariant, ReferenceAsset, int, int]


class EngineState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"


@dataclass(frozen=True)
class WatermarkInfo:
    """Resolved watermark geometry for display."""

    variant: WatermarkVariant
    size: int
    size_display: str
    rect: WatermarkRect
    config: RegionConfig


class WatermarkEngine:
    """
    Coordinates region resolution, alpha map derivation and reverse blending.

    Reference captures are loaded once by ``load()``. After that the engine
    only changes its alpha map cache, which is append-only and keyed by
    immutable inputs, so ``restore`` may run concurrently on distinct buffers.
    """

    def __init__(
        self,
        assets_dir: Path | None = None,
        variants: Iterable[WatermarkVariant | str] | None = None,
    ):
        """
        Create an unloaded engine.

        Args:
            assets_dir: Directory holding the reference captures
            variants: Watermark families to serve (default: all)
        """
        self.assets_dir = resolve_assets_dir(assets_dir)
        self.variants: tuple[WatermarkVariant, ...] = tuple(
            WatermarkVariant.parse(v) for v in (variants if variants is not None else WatermarkVariant)
        )
        self.state = EngineState.UNINITIALIZED

        self._captures: dict[ReferenceAsset, ReferenceCapture] = {}
        self._alpha_maps: dict[AlphaMapKey, NDArray[np.float32]] = {}

    @classmethod
    def create(
        cls,
        assets_dir: Path | None = None,
        variants: Iterable[WatermarkVariant | str] | None = None,
    ) -> "WatermarkEngine":
        """Create and load an engine in one step."""
        return cls(assets_dir, variants).load()

    @property
    def is_ready(self) -> bool:
        return self.state is EngineState.READY

    def required_assets(self) -> list[ReferenceAsset]:
        """Reference captures needed by the configured variants."""
        assets: list[ReferenceAsset] = []
        for variant in self.variants:
            for asset in VARIANT_ASSETS[variant]:
                if asset not in assets:
                    assets.append(asset)
        return assets

    def load(self) -> "WatermarkEngine":
        """
        Load every required reference capture concurrently.

        The engine becomes ready only if all captures load. Any failure
        leaves it uninitialized.

        Raises:
            InitializationError: If a capture is missing or cannot be decoded
        """
        if self.is_ready:
            return self

        self.state = EngineState.LOADING
        assets = self.required_assets()
        logger.info("Loading %d reference capture(s) from %s", len(assets), self.assets_dir)

        try:
            with ThreadPoolExecutor(max_workers=len(assets) or 1) as pool:
                captures = list(pool.map(lambda a: load_reference_capture(a, self.assets_dir), assets))
        except OSError as e:
            self.state = EngineState.UNINITIALIZED
            raise InitializationError(f"Failed to load reference captures from {self.assets_dir}: {e}") from e

        self._captures = {capture.asset: capture for capture in captures}
        self.state = EngineState.READY
        logger.info("Watermark engine ready (%s)", ", ".join(v.value for v in self.variants))

        return self

    def _require_ready(self) -> None:
        if not self.is_ready:
            raise EngineNotReadyError(f"Watermark engine is {self.state.value}, call load() first")

    def _require_variant(self, variant: WatermarkVariant | str) -> WatermarkVariant:
        variant = WatermarkVariant.parse(variant)
        if variant not in self.variants:
            raise UnsupportedVariantError(f"No reference captures loaded for {variant.value}")
        return variant

    def get_alpha_map(self, config: RegionConfig) -> NDArray[np.float32]:
        """Get cached alpha map for a region, deriving it on first use."""
        self._require_ready()

        key: AlphaMapKey = (config.variant, config.asset, config.width, config.height)
        alpha_map = self._alpha_maps.get(key)
        if alpha_map is not None:
            return alpha_map

        capture = self._captures.get(config.asset)
        if capture is None:
            raise UnsupportedVariantError(f"Reference capture {config.asset.filename} is not loaded")

        logger.debug(
            "Deriving alpha map %dx%d from %s",
            config.width,
            config.height,
            config.asset.filename,
        )
        alpha_map = derive_alpha_map(capture, config.width, config.height)

        # Concurrent derivations of the same key produce identical maps
        return self._alpha_maps.setdefault(key, alpha_map)

    def get_watermark_info(
        self,
        image_width: int,
        image_height: int,
        variant: WatermarkVariant | str = WatermarkVariant.GEMINI,
        override: SizeBucket | AspectBucket | str | None = None,
    ) -> WatermarkInfo:
        """Describe the watermark region for an image without touching pixels."""
        config = resolve_region(image_width, image_height, variant, override)
        rect = calculate_watermark_position(image_width, image_height, config)

        return WatermarkInfo(
            variant=config.variant,
            size=config.width,
            size_display=f"{config.width}×{config.height}",
            rect=rect,
            config=config,
        )

    def restore(
        self,
        image_array: NDArray[np.uint8],
        image_width: int,
        image_height: int,
        variant: WatermarkVariant | str = WatermarkVariant.GEMINI,
        override: SizeBucket | AspectBucket | str | None = None,
    ) -> NDArray[np.uint8]:
        """
        Remove the watermark from a decoded image in place.

        Args:
            image_array: RGB or RGBA uint8 array (H, W, C), modified in place
            image_width: Declared image width
            image_height: Declared image height
            variant: Watermark family that produced the image
            override: Force a size bucket (Gemini) or aspect bucket (Doubao)

        Returns:
            The same array with the watermark region restored

        Raises:
            EngineNotReadyError: If called before ``load()`` succeeded
            UnsupportedVariantError: If the variant is unknown or not loaded
            BufferMismatchError: If the array does not match the declared size
            RegionOutOfBoundsError: If the image is too small for the watermark
        """
        self._require_ready()
        variant = self._require_variant(variant)
        _check_buffer(image_array, image_width, image_height)

        config = resolve_region(image_width, image_height, variant, override)
        rect = calculate_watermark_position(image_width, image_height, config)
        if not rect.fits(image_width, image_height):
            raise RegionOutOfBoundsError(rect, image_width, image_height)

        alpha_map = self.get_alpha_map(config)

        return apply_reverse_blend(image_array, rect, alpha_map, VARIANT_LOGO_VALUES[variant])


def _check_buffer(image_array: NDArray, image_width: int, image_height: int) -> None:
    if not isinstance(image_array, np.ndarray) or image_array.dtype != np.uint8:
        raise BufferMismatchError("Pixel buffer must be a uint8 numpy array")

    if image_array.ndim != 3 or image_array.shape[2] not in (3, 4):
        raise BufferMismatchError(f"Pixel buffer must be (H, W, 3|4), got shape {image_array.shape}")

    if image_array.shape[:2] != (image_height, image_width):
        height, width = image_array.shape[:2]
        raise BufferMismatchError(
            f"Pixel buffer is {width}x{height} but {image_width}x{image_height} was declared"
        )
