"""Decode the model's probability map into an alpha channel on the original image."""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from .buffers import RGBAImage, ScalarField, Tensor
from .config import TensorLayout, default_layout
from .errors import AllocationFailure, InvalidDimensions, ShapeMismatch
from .resample import ResizePolicy, resize

logger = logging.getLogger(__name__)


def _mask_field(output: Tensor, layout: TensorLayout) -> ScalarField:
    if output.size != layout.mask_size:
        raise ShapeMismatch(
            f"expected {layout.mask_size} mask values ({layout.output_shape}), "
            f"got {output.size} with shape {output.shape}"
        )
    # Single channel, so NCHW and NHWC exports share the same flat order.
    return ScalarField(output.data, layout.width, layout.height)


def alpha_from_probability(values: np.ndarray) -> np.ndarray:
    """round(clamp(v, 0, 1) * 255) as uint8, rounding halves up."""
    values = np.asarray(values, dtype=np.float32)
    nan = np.isnan(values)
    if nan.any():
        logger.warning("mask contains %d NaN values; treating them as background", int(nan.sum()))
        values = np.where(nan, np.float32(0.0), values)
    clamped = np.clip(values, 0.0, 1.0)
    return np.floor(clamped * np.float32(255.0) + np.float32(0.5)).astype(np.uint8)


def decode_mask(
    output: Tensor, width: int, height: int, layout: Optional[TensorLayout] = None
) -> np.ndarray:
    """Return the (height, width) uint8 alpha mask for an output tensor."""
    layout = layout or default_layout()
    field = _mask_field(output, layout)
    try:
        upsampled = resize(field, field.width, field.height, width, height, ResizePolicy.NEAREST)
        return alpha_from_probability(upsampled.values).reshape(height, width)
    except MemoryError as exc:
        raise AllocationFailure(f"cannot allocate a {width}x{height} mask") from exc


def composite(
    output: Tensor, original: RGBAImage, layout: Optional[TensorLayout] = None
) -> RGBAImage:
    """
    Write the decoded mask into the alpha channel of a copy of `original`.

    RGB samples are copied unchanged; `original` itself is never mutated.

    Raises:
        InvalidDimensions: when `original` has zero width or height.
        ShapeMismatch: when the tensor does not hold exactly one mask.
        AllocationFailure: when the output buffer cannot be built.
    """
    if original.width == 0 or original.height == 0:
        raise InvalidDimensions(f"cannot composite onto a {original.width}x{original.height} image")

    alpha = decode_mask(output, original.width, original.height, layout)
    try:
        pixels = original.pixels.copy()
    except MemoryError as exc:
        raise AllocationFailure(
            f"cannot allocate a {original.width}x{original.height} RGBA buffer"
        ) from exc
    pixels[..., 3] = alpha
    logger.debug(
        "composited mask onto %dx%d image, %.1f%% opaque",
        original.width,
        original.height,
        100.0 * float(np.mean(alpha == 255)) if alpha.size else 0.0,
    )
    return RGBAImage(pixels)
