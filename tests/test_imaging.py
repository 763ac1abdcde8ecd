from io import BytesIO

import numpy as np
from PIL import Image
import pytest

from u2netp_cutout.errors import EncodingError
from u2netp_cutout.imaging import encode_png, from_pil, load_image_bytes, to_pil
from tests.shared import random_image


def test_png_round_trip() -> None:
    image = random_image(9, 6, seed=2)
    decoded = load_image_bytes(encode_png(image))
    np.testing.assert_array_equal(decoded.pixels, image.pixels)


def test_rgb_input_becomes_opaque_rgba() -> None:
    buf = BytesIO()
    Image.new("RGB", (5, 3), (10, 20, 30)).save(buf, format="PNG")
    image = load_image_bytes(buf.getvalue())
    assert image.size == (5, 3)
    assert np.all(image.rgb == [10, 20, 30])
    assert np.all(image.alpha == 255)


def test_pil_conversion() -> None:
    image = random_image(4, 4)
    pil = to_pil(image)
    assert pil.mode == "RGBA"
    assert pil.size == (4, 4)
    np.testing.assert_array_equal(from_pil(pil).pixels, image.pixels)


def test_invalid_data() -> None:
    with pytest.raises(EncodingError):
        load_image_bytes(b"\x00\x01garbage")


def test_oversized_image_is_encoding_error(monkeypatch) -> None:
    buf = BytesIO()
    Image.new("RGB", (10, 10), (1, 2, 3)).save(buf, format="PNG")
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 10)
    with pytest.raises(EncodingError):
        load_image_bytes(buf.getvalue())
