"""
2D field resizing with two policies.

AREA feeds the encoder (OpenCV area interpolation, uniform fields stay
uniform). NEAREST upsamples the decoded mask with truncating index mapping so
no new alpha values appear at object boundaries.
"""

from __future__ import annotations

from enum import Enum
import logging

import cv2
import numpy as np

from .buffers import ScalarField
from .errors import InvalidDimensions

logger = logging.getLogger(__name__)


class ResizePolicy(str, Enum):
    AREA = "area"
    NEAREST = "nearest"


def _nearest_indices(src: int, dst: int) -> np.ndarray:
    # floor(i * src / dst) with integer arithmetic
    return (np.arange(dst, dtype=np.int64) * src) // dst


def _resize_nearest(array: np.ndarray, dst_w: int, dst_h: int) -> np.ndarray:
    src_h, src_w = array.shape[:2]
    rows = _nearest_indices(src_h, dst_h)
    cols = _nearest_indices(src_w, dst_w)
    return array[rows[:, None], cols[None, :]]


def _resize_area(array: np.ndarray, dst_w: int, dst_h: int) -> np.ndarray:
    # float64 accumulation keeps uniform fields uniform on large downscales
    src = np.ascontiguousarray(array, dtype=np.float64)
    out = cv2.resize(src, (dst_w, dst_h), interpolation=cv2.INTER_AREA).astype(np.float32)
    # cv2 drops a trailing singleton channel axis
    if src.ndim == 3 and out.ndim == 2:
        out = out[..., None]
    return out


def resize_array(array: np.ndarray, dst_w: int, dst_h: int, policy: ResizePolicy) -> np.ndarray:
    """
    Resize an (H, W) scalar field or (H, W, C) vector field.

    Channels of a vector field are resized independently. The input array is
    never modified; AREA always returns float32, NEAREST keeps the dtype.
    """
    if array.ndim not in (2, 3):
        raise InvalidDimensions(f"expected (H, W) or (H, W, C) array, got shape {array.shape}")
    src_h, src_w = array.shape[:2]
    if src_w <= 0 or src_h <= 0:
        raise InvalidDimensions(f"cannot resize from {src_w}x{src_h}")
    if dst_w < 0 or dst_h < 0:
        raise InvalidDimensions(f"cannot resize to {dst_w}x{dst_h}")

    policy = ResizePolicy(policy)
    if dst_w == 0 or dst_h == 0:
        dtype = np.float32 if policy is ResizePolicy.AREA else array.dtype
        return np.empty((dst_h, dst_w) + array.shape[2:], dtype=dtype)
    if (dst_w, dst_h) == (src_w, src_h):
        if policy is ResizePolicy.AREA:
            return np.array(array, dtype=np.float32, copy=True)
        return array.copy()

    logger.debug("resize %s %dx%d -> %dx%d", policy.value, src_w, src_h, dst_w, dst_h)
    if policy is ResizePolicy.NEAREST:
        return _resize_nearest(array, dst_w, dst_h)
    return _resize_area(array, dst_w, dst_h)


def resize(
    field: ScalarField | np.ndarray,
    src_w: int,
    src_h: int,
    dst_w: int,
    dst_h: int,
    policy: ResizePolicy,
) -> ScalarField:
    """Resize a flat scalar field of src_w*src_h values to dst_w*dst_h values."""
    values = field.values if isinstance(field, ScalarField) else np.asarray(field, dtype=np.float32).reshape(-1)
    if src_w <= 0 or src_h <= 0:
        raise InvalidDimensions(f"cannot resize from {src_w}x{src_h}")
    if values.size != src_w * src_h:
        raise InvalidDimensions(f"field of {values.size} values does not match {src_w}x{src_h}")

    grid = values.reshape(src_h, src_w)
    out = resize_array(grid, dst_w, dst_h, policy)
    return ScalarField(np.ascontiguousarray(out, dtype=np.float32).reshape(-1), dst_w, dst_h)
