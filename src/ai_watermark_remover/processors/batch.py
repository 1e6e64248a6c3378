"""Batch processing with a bounded number of images in flight."""

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ..config import DEFAULT_WORKERS
from ..core.engine import WatermarkEngine
from ..core.variants import AspectBucket, SizeBucket, WatermarkVariant
from .image import process_image

logger = logging.getLogger(__name__)


class ItemStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass
class BatchItem:
    """One file in a batch and its outcome."""

    input_path: Path
    output_path: Path | None = None
    status: ItemStatus = ItemStatus.PENDING
    error: str | None = None


def process_batch(
    files: Sequence[Path],
    engine: WatermarkEngine,
    output_for: Callable[[Path], Path | None] | None = None,
    suffix: str = "_output",
    variant: WatermarkVariant | str = WatermarkVariant.GEMINI,
    override: SizeBucket | AspectBucket | str | None = None,
    workers: int = DEFAULT_WORKERS,
    on_item_done: Callable[[BatchItem], None] | None = None,
) -> list[BatchItem]:
    """
    Remove watermarks from many images, at most ``workers`` at a time.

    A failing image is marked as an error and never aborts the batch.

    Args:
        files: Input image paths
        engine: Loaded watermark engine shared by all workers
        output_for: Maps an input path to its output path (None = default naming)
        suffix: Suffix for default output names
        variant: Watermark family that produced the images
        override: Force a size bucket (Gemini) or aspect bucket (Doubao)
        workers: Maximum number of images processed concurrently
        on_item_done: Called after each item finishes, successfully or not

    Returns:
        One item per input, in input order
    """
    items = [BatchItem(input_path=f) for f in files]

    def run(item: BatchItem) -> BatchItem:
        item.status = ItemStatus.PROCESSING
        try:
            output_path = output_for(item.input_path) if output_for else None
            item.output_path = process_image(
                item.input_path,
                engine,
                output_path,
                suffix,
                variant,
                override,
            )
            item.status = ItemStatus.COMPLETED
        except Exception as e:
            item.status = ItemStatus.ERROR
            item.error = str(e)
            logger.error("Failed to process %s: %s", item.input_path, e)

        if on_item_done:
            on_item_done(item)
        return item

    with ThreadPoolExecutor(max_workers=max(1, workers)) as pool:
        list(pool.map(run, items))

    completed = sum(1 for item in items if item.status is ItemStatus.COMPLETED)
    logger.info("Processed %d/%d image(s)", completed, len(items))

    return items
