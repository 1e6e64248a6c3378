"""Exceptions raised by the watermark engine and its processors."""


class WatermarkRemoverError(Exception):
    """Base class for all watermark remover errors."""


class InitializationError(WatermarkRemoverError):
    """One or more reference captures could not be loaded or decoded."""


class EngineNotReadyError(WatermarkRemoverError):
    """The engine was used before its reference captures finished loading."""


class UnsupportedVariantError(WatermarkRemoverError):
    """The requested watermark variant has no reference capture."""


class RegionOutOfBoundsError(WatermarkRemoverError):
    """The watermark rectangle does not fit inside the image."""

    def __init__(self, rect, image_width: int, image_height: int):
        self.rect = rect
        self.image_width = image_width
        self.image_height = image_height
        super().__init__(
            f"Watermark region {rect.width}x{rect.height} at ({rect.x},{rect.y}) "
            f"does not fit in a {image_width}x{image_height} image"
        )


class BufferMismatchError(WatermarkRemoverError):
    """The pixel buffer does not match its declared dimensions or layout."""
