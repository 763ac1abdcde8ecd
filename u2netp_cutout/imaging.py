"""PIL adapters that turn encoded image files into `RGBAImage` buffers and back."""

from __future__ import annotations

from io import BytesIO

import numpy as np
from PIL import Image

from .buffers import RGBAImage
from .errors import EncodingError


def from_pil(image: Image.Image) -> RGBAImage:
    return RGBAImage(np.array(image.convert("RGBA"), dtype=np.uint8))


def to_pil(image: RGBAImage) -> Image.Image:
    return Image.fromarray(np.ascontiguousarray(image.pixels))


def load_image_bytes(image_bytes: bytes) -> RGBAImage:
    """Decode any PIL-readable image into RGBA pixels."""
    try:
        with Image.open(BytesIO(image_bytes)) as image:
            return from_pil(image)
    except Exception as exc:  # noqa: BLE001
        raise EncodingError("Invalid image data") from exc


def encode_png(image: RGBAImage) -> bytes:
    buf = BytesIO()
    to_pil(image).save(buf, format="PNG")
    return buf.getvalue()
