import numpy as np
import pytest
from PIL import Image

from ai_watermark_remover.core.position import calculate_watermark_position, resolve_region
from ai_watermark_remover.processors.batch import ItemStatus, process_batch
from ai_watermark_remover.processors.image import is_supported_image, load_image_array, process_image

from .conftest import make_image


def _save(path, array):
    Image.fromarray(array).save(path)
    return path


@pytest.fixture
def watermarked_png(tmp_path):
    return _save(tmp_path / "photo.png", make_image(640, 480))


def test_process_image_default_output(engine, watermarked_png):
    output = process_image(watermarked_png, engine)

    assert output == watermarked_png.parent / "photo_output.png"
    with Image.open(output) as img:
        assert img.format == "PNG"
        assert img.size == (640, 480)
        result = np.array(img)

    original = load_image_array(watermarked_png)
    rect = calculate_watermark_position(640, 480, resolve_region(640, 480, "gemini"))
    outside = np.ones((480, 640), dtype=bool)
    outside[rect.y : rect.y + rect.height, rect.x : rect.x + rect.width] = False

    assert np.array_equal(result[outside], original[outside])
    assert not np.array_equal(result, original)


def test_process_image_explicit_output_and_variant(engine, tmp_path):
    source = _save(tmp_path / "doubao.png", make_image(1024, 1024))
    target = tmp_path / "out" / "clean.png"
    target.parent.mkdir()

    output = process_image(source, engine, target, variant="doubao", override="square")

    assert output == target
    assert target.exists()


def test_process_image_keeps_transparency(engine, tmp_path):
    source = _save(tmp_path / "rgba.png", make_image(300, 300, channels=4))

    output = process_image(source, engine, suffix="_clean")

    with Image.open(output) as img:
        assert img.mode == "RGBA"
        result = np.array(img)
    assert np.array_equal(result[:, :, 3], load_image_array(source)[:, :, 3])


def test_load_image_array_converts_palette(tmp_path):
    path = tmp_path / "palette.png"
    Image.fromarray(make_image(40, 30)).convert("P").save(path)

    array = load_image_array(path)

    assert array.shape == (30, 40, 3)
    assert array.dtype == np.uint8


def test_is_supported_image(tmp_path, watermarked_png):
    text = tmp_path / "notes.txt"
    text.write_text("hello")

    assert is_supported_image(watermarked_png)
    assert not is_supported_image(text)
    assert not is_supported_image(watermarked_png, max_size=10)


def test_batch_reports_per_item_status(engine, tmp_path):
    good = [_save(tmp_path / f"img_{i}.png", make_image(400, 300, seed=i)) for i in range(4)]
    too_small = _save(tmp_path / "tiny.png", make_image(40, 40))
    corrupt = tmp_path / "broken.png"
    corrupt.write_bytes(b"definitely not an image")
    files = [good[0], too_small, good[1], corrupt, good[2], good[3]]

    finished = []
    items = process_batch(files, engine, workers=3, on_item_done=finished.append)

    assert [item.input_path for item in items] == files
    assert len(finished) == len(files)

    statuses = {item.input_path: item.status for item in items}
    assert statuses[too_small] is ItemStatus.ERROR
    assert statuses[corrupt] is ItemStatus.ERROR
    for path in good:
        assert statuses[path] is ItemStatus.COMPLETED
        assert (tmp_path / f"{path.stem}_output.png").exists()

    errors = [item for item in items if item.status is ItemStatus.ERROR]
    assert all(item.error for item in errors)
    assert all(item.output_path is None for item in errors)


def test_batch_output_mapping(engine, tmp_path):
    source = _save(tmp_path / "a.png", make_image(200, 200))
    out_dir = tmp_path / "results"
    out_dir.mkdir()

    items = process_batch([source], engine, output_for=lambda p: out_dir / f"{p.stem}.png", workers=1)

    assert items[0].status is ItemStatus.COMPLETED
    assert items[0].output_path == out_dir / "a.png"
    assert (out_dir / "a.png").exists()


def test_batch_survives_decoder_limits(engine, tmp_path, monkeypatch):
    oversized = _save(tmp_path / "huge.png", make_image(400, 400))
    small = _save(tmp_path / "small.png", make_image(30, 30))

    # Pillow refuses anything over twice this many pixels
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1500)

    items = process_batch([oversized, small], engine, variant="doubao", workers=1)

    assert [item.status for item in items] == [ItemStatus.ERROR, ItemStatus.COMPLETED]
    assert "exceeds limit" in items[0].error
