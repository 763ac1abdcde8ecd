"""
Image -> model input tensor.

The source RGBA image is reduced to RGB, area-resized to the fixed model size,
normalized and re-laid out from interleaved (HWC) to planar (CHW) order.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from .buffers import RGBAImage, Tensor, interleaved_to_planar
from .config import RGB_CHANNELS, TensorLayout, default_layout
from .errors import AllocationFailure, EncodingError
from .resample import ResizePolicy, resize_array

logger = logging.getLogger(__name__)


def normalize(rgb: np.ndarray, layout: TensorLayout) -> np.ndarray:
    """Map raw 8-bit samples into the model's input range."""
    out = rgb.astype(np.float32) / np.float32(layout.pixel_scale)
    mean = np.asarray(layout.mean, dtype=np.float32)
    std = np.asarray(layout.std, dtype=np.float32)
    if np.any(mean != 0.0) or np.any(std != 1.0):
        out = (out - mean) / std
    return out


def encode(image: RGBAImage, layout: Optional[TensorLayout] = None) -> Tensor:
    """
    Encode `image` as a (1, 3, H, W) float32 tensor for the model.

    Alpha is dropped; the model never sees it. Raises `EncodingError` for a
    zero-sized source.
    """
    layout = layout or default_layout()
    if image.width == 0 or image.height == 0:
        raise EncodingError(f"cannot encode a {image.width}x{image.height} image")

    try:
        rgb = image.rgb.astype(np.float32)
        resized = resize_array(rgb, layout.width, layout.height, ResizePolicy.AREA)
        normalized = normalize(resized, layout)
    except MemoryError as exc:
        raise AllocationFailure(f"cannot allocate encoder buffers for a {image.width}x{image.height} image") from exc

    planar = interleaved_to_planar(
        normalized.reshape(-1), layout.width, layout.height, RGB_CHANNELS
    )
    logger.debug(
        "encoded %dx%d image into tensor %s", image.width, image.height, layout.input_shape
    )
    return Tensor(planar, layout.input_shape)
