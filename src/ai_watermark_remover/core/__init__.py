# Reverse alpha blending constants
ALPHA_THRESHOLD: float = 0.002  # Skip if alpha below this
MAX_ALPHA: float = 0.999  # Clamp alpha to prevent division by near-zero
LOGO_VALUE: int = 255  # White watermark value

# Gemini size buckets (keyed on the shorter image edge)
SMALL_EDGE_LIMIT: int = 1024
MEDIUM_EDGE_LIMIT: int = 2048

# Gemini watermark sizes
SMALL_WATERMARK_SIZE: int = 48
MEDIUM_WATERMARK_SIZE: int = 96
SMALL_MARGIN: int = 32
MEDIUM_MARGIN: int = 64

# Calibration points for images beyond the largest bucket: (edge, size, margin)
# Size and margin are linearly interpolated between these measurements
CALIBRATION_LOW: tuple[int, int, int] = (2048, 96, 64)
CALIBRATION_HIGH: tuple[int, int, int] = (3058, 173, 104)

# Doubao aspect buckets (width / height)
TALL_RATIO_LIMIT: float = 0.8  # Below this is a portrait template
WIDE_RATIO_LIMIT: float = 1.2  # Above this is a landscape template
