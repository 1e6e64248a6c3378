from dataclasses import dataclass
from enum import Enum

from ..errors import UnsupportedVariantError
from . import LOGO_VALUE


class WatermarkVariant(str, Enum):
    """AI image generator whose overlay is being removed."""

    GEMINI = "gemini"
    DOUBAO = "doubao"

    @classmethod
    def parse(cls, value: "WatermarkVariant | str") -> "WatermarkVariant":
        """Coerce a variant name, rejecting anything outside the known families."""
        try:
            return cls(value)
        except ValueError:
            supported = ", ".join(v.value for v in cls)
            raise UnsupportedVariantError(
                f"Unsupported watermark variant {value!r} (supported: {supported})"
            ) from None


class SizeBucket(str, Enum):
    """Gemini overlay size classes."""

    SMALL = "48px"
    MEDIUM = "96px"
    LARGE = "interpolated"


class AspectBucket(str, Enum):
    """Doubao image aspect-ratio classes."""

    TALL = "tall"
    SQUARE = "square"
    WIDE = "wide"


class ReferenceAsset(str, Enum):
    """Reference capture files bundled in the assets package."""

    GEMINI_48 = "bg_48.png"
    GEMINI_96 = "bg_96.png"
    DOUBAO_1X1 = "doubao_bg_1x1.png"
    DOUBAO_2X3 = "doubao_bg_2x3.png"
    DOUBAO_3X2 = "doubao_bg_3x2.png"

    @property
    def filename(self) -> str:
        return self.value


@dataclass(frozen=True)
class AspectTemplate:
    """Doubao overlay geometry measured on a reference image."""

    ref_width: int
    ref_height: int
    wm_width: int
    wm_height: int
    margin_right: int
    margin_bottom: int
    asset: ReferenceAsset

    @property
    def ref_short_edge(self) -> int:
        return min(self.ref_width, self.ref_height)


# Measurements taken from actual Doubao-generated images
DOUBAO_TEMPLATES: dict[AspectBucket, AspectTemplate] = {
    AspectBucket.SQUARE: AspectTemplate(
        ref_width=2048,
        ref_height=2048,
        wm_width=282,
        wm_height=123,
        margin_right=57,
        margin_bottom=54,
        asset=ReferenceAsset.DOUBAO_1X1,
    ),
    AspectBucket.TALL: AspectTemplate(
        ref_width=1536,
        ref_height=2730,
        wm_width=298,
        wm_height=199,
        margin_right=0,
        margin_bottom=0,
        asset=ReferenceAsset.DOUBAO_2X3,
    ),
    AspectBucket.WIDE: AspectTemplate(
        ref_width=2508,
        ref_height=1672,
        wm_width=296,
        wm_height=71,
        margin_right=53,
        margin_bottom=53,
        asset=ReferenceAsset.DOUBAO_3X2,
    ),
}

# Captures each variant needs loaded before it can be served
VARIANT_ASSETS: dict[WatermarkVariant, tuple[ReferenceAsset, ...]] = {
    WatermarkVariant.GEMINI: (ReferenceAsset.GEMINI_48, ReferenceAsset.GEMINI_96),
    WatermarkVariant.DOUBAO: tuple(t.asset for t in DOUBAO_TEMPLATES.values()),
}

# Foreground tint the overlay was painted with, per variant
VARIANT_LOGO_VALUES: dict[WatermarkVariant, int] = {
    WatermarkVariant.GEMINI: LOGO_VALUE,
    WatermarkVariant.DOUBAO: LOGO_VALUE,
}
