from .batch import BatchItem, ItemStatus, process_batch
from .image import SUPPORTED_IMAGE_FORMATS, is_supported_image, load_image_array, process_image

__all__ = [
    "process_image",
    "process_batch",
    "load_image_array",
    "is_supported_image",
    "BatchItem",
    "ItemStatus",
    "SUPPORTED_IMAGE_FORMATS",
]
