import warnings

import numpy as np
import pytest

from ai_watermark_remover.core.blend import apply_reverse_blend, composite_watermark
from ai_watermark_remover.core.position import WatermarkRect
from ai_watermark_remover.errors import RegionOutOfBoundsError

from .conftest import make_image


def _alpha_rows(alphas, width):
    """Alpha map whose row i is filled with alphas[i]."""
    return np.repeat(np.asarray(alphas, dtype=np.float32)[:, np.newaxis], width, axis=1)


def test_round_trip_recovers_original_across_alpha_range():
    alphas = np.linspace(0.0, 0.999, 64)
    truth = np.tile(np.arange(256, dtype=np.float64), (len(alphas), 1))
    buffer = np.stack([truth, 255 - truth, np.full_like(truth, 37)], axis=2)
    original = buffer.copy()

    rect = WatermarkRect(x=0, y=0, width=256, height=len(alphas))
    alpha_map = _alpha_rows(alphas, 256)

    composite_watermark(buffer, alpha_map, rect)
    apply_reverse_blend(buffer, rect, alpha_map)

    assert np.max(np.abs(buffer - original)) <= 1


def test_round_trip_on_uint8_buffer():
    # Quantizing the composite to bytes stays within rounding for moderate alpha
    alphas = np.linspace(0.0, 0.4, 41)
    truth = np.tile(np.arange(256, dtype=np.uint8), (len(alphas), 1))
    buffer = np.stack([truth, truth[:, ::-1], truth], axis=2)
    original = buffer.copy()

    rect = WatermarkRect(x=0, y=0, width=256, height=len(alphas))
    alpha_map = _alpha_rows(alphas, 256)

    composite_watermark(buffer, alpha_map, rect)
    apply_reverse_blend(buffer, rect, alpha_map)

    assert np.max(np.abs(buffer.astype(int) - original.astype(int))) <= 1


def test_white_pixels_survive_any_alpha():
    alphas = np.linspace(0.0, 0.999, 100)
    buffer = np.full((len(alphas), 4, 3), 255, dtype=np.uint8)
    rect = WatermarkRect(x=0, y=0, width=4, height=len(alphas))

    apply_reverse_blend(buffer, rect, _alpha_rows(alphas, 4))

    assert np.all(buffer == 255)


def test_fully_opaque_alpha_is_safe():
    buffer = make_image(16, 16)
    rect = WatermarkRect(x=0, y=0, width=16, height=16)
    alpha_map = np.ones((16, 16), dtype=np.float32)

    with warnings.catch_warnings():
        warnings.simplefilter("error")
        apply_reverse_blend(buffer, rect, alpha_map)

    assert buffer.dtype == np.uint8
    assert np.all(np.isfinite(buffer.astype(np.float64)))


def test_fully_opaque_alpha_on_float_buffer_stays_finite():
    buffer = np.full((4, 4, 3), 200.0)
    rect = WatermarkRect(x=0, y=0, width=4, height=4)

    apply_reverse_blend(buffer, rect, np.ones((4, 4), dtype=np.float32))

    assert np.all(np.isfinite(buffer))
    assert buffer.min() >= 0 and buffer.max() <= 255


def test_zero_alpha_leaves_region_untouched():
    buffer = make_image(32, 32)
    original = buffer.copy()
    rect = WatermarkRect(x=8, y=8, width=16, height=16)

    apply_reverse_blend(buffer, rect, np.zeros((16, 16), dtype=np.float32))

    assert np.array_equal(buffer, original)


def test_only_rect_pixels_change():
    buffer = make_image(64, 48)
    original = buffer.copy()
    rect = WatermarkRect(x=20, y=10, width=30, height=25)
    alpha_map = np.full((25, 30), 0.3, dtype=np.float32)

    apply_reverse_blend(buffer, rect, alpha_map)

    outside = np.ones(buffer.shape[:2], dtype=bool)
    outside[10:35, 20:50] = False
    assert np.array_equal(buffer[outside], original[outside])
    assert not np.array_equal(buffer[10:35, 20:50], original[10:35, 20:50])


def test_alpha_channel_is_preserved():
    buffer = make_image(20, 20, channels=4)
    original_alpha = buffer[:, :, 3].copy()
    rect = WatermarkRect(x=2, y=2, width=10, height=10)

    apply_reverse_blend(buffer, rect, np.full((10, 10), 0.5, dtype=np.float32))

    assert np.array_equal(buffer[:, :, 3], original_alpha)


def test_custom_logo_value():
    buffer = np.full((2, 2, 3), 100, dtype=np.uint8)
    rect = WatermarkRect(x=0, y=0, width=2, height=2)

    # 0.5 * 0 + 0.5 * 200 = 100 for a black logo over 200
    apply_reverse_blend(buffer, rect, np.full((2, 2), 0.5, dtype=np.float32), logo_value=0)

    assert np.all(buffer == 200)


@pytest.mark.parametrize(
    "rect",
    [
        WatermarkRect(x=-1, y=0, width=10, height=10),
        WatermarkRect(x=0, y=-5, width=10, height=10),
        WatermarkRect(x=15, y=0, width=10, height=10),
        WatermarkRect(x=0, y=12, width=10, height=10),
    ],
)
def test_out_of_bounds_rect_leaves_buffer_unchanged(rect):
    buffer = make_image(20, 20)
    original = buffer.copy()

    with pytest.raises(RegionOutOfBoundsError):
        apply_reverse_blend(buffer, rect, np.full((10, 10), 0.5, dtype=np.float32))

    assert np.array_equal(buffer, original)


def test_alpha_map_shape_must_match_rect():
    buffer = make_image(20, 20)
    rect = WatermarkRect(x=0, y=0, width=10, height=8)

    with pytest.raises(ValueError):
        apply_reverse_blend(buffer, rect, np.zeros((10, 10), dtype=np.float32))
