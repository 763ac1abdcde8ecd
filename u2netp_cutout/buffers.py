"""
Typed buffer wrappers for pixels, tensors and scalar fields.

All pixel and tensor data goes through numpy arrays whose shape is checked on
construction, so stride arithmetic only ever happens inside reshape/transpose.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .errors import InvalidDimensions, ShapeMismatch

RGBA_CHANNELS = 4


@dataclass(frozen=True, eq=False)
class RGBAImage:
    """8-bit interleaved RGBA pixels, shape (height, width, 4), row-major."""

    pixels: np.ndarray

    def __post_init__(self) -> None:
        if not isinstance(self.pixels, np.ndarray) or self.pixels.dtype != np.uint8:
            raise InvalidDimensions("pixels must be a uint8 numpy array")
        if self.pixels.ndim != 3 or self.pixels.shape[2] != RGBA_CHANNELS:
            raise InvalidDimensions(f"pixels must have shape (H, W, 4), got {self.pixels.shape}")

    @classmethod
    def from_rgba(cls, data: bytes | np.ndarray, width: int, height: int) -> "RGBAImage":
        """Wrap a flat interleaved RGBA buffer of width*height*4 bytes."""
        flat = np.frombuffer(data, dtype=np.uint8) if isinstance(data, (bytes, bytearray)) else np.asarray(data).reshape(-1)
        if width < 0 or height < 0 or flat.size != width * height * RGBA_CHANNELS:
            raise InvalidDimensions(
                f"buffer of {flat.size} bytes does not hold {width}x{height} RGBA pixels"
            )
        return cls(flat.astype(np.uint8, copy=True).reshape(height, width, RGBA_CHANNELS))

    @classmethod
    def filled(cls, width: int, height: int, rgba: Tuple[int, int, int, int]) -> "RGBAImage":
        pixels = np.empty((height, width, RGBA_CHANNELS), dtype=np.uint8)
        pixels[...] = rgba
        return cls(pixels)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def rgb(self) -> np.ndarray:
        return self.pixels[..., :3]

    @property
    def alpha(self) -> np.ndarray:
        return self.pixels[..., 3]

    def tobytes(self) -> bytes:
        return self.pixels.tobytes()


@dataclass(frozen=True, eq=False)
class Tensor:
    """Flat float32 buffer carrying an explicit logical shape."""

    data: np.ndarray
    shape: Tuple[int, ...]

    def __post_init__(self) -> None:
        if self.data.ndim != 1:
            raise ShapeMismatch(f"tensor data must be flat, got ndim={self.data.ndim}")
        expected = int(np.prod(self.shape, dtype=np.int64))
        if expected != self.data.size:
            raise ShapeMismatch(f"shape {self.shape} needs {expected} elements, buffer has {self.data.size}")

    @classmethod
    def from_array(cls, array: np.ndarray) -> "Tensor":
        array = np.asarray(array, dtype=np.float32)
        return cls(np.ascontiguousarray(array).reshape(-1), tuple(int(d) for d in array.shape))

    @property
    def size(self) -> int:
        return int(self.data.size)

    def as_array(self) -> np.ndarray:
        return self.data.reshape(self.shape)


@dataclass(frozen=True, eq=False)
class ScalarField:
    """Single-channel 2D grid of floats stored flat, row-major."""

    values: np.ndarray
    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise InvalidDimensions(f"negative field size {self.width}x{self.height}")
        if self.values.ndim != 1 or self.values.size != self.width * self.height:
            raise InvalidDimensions(
                f"field of {self.values.size} values does not match {self.width}x{self.height}"
            )

    @classmethod
    def from_grid(cls, grid: np.ndarray) -> "ScalarField":
        grid = np.asarray(grid, dtype=np.float32)
        if grid.ndim != 2:
            raise InvalidDimensions(f"expected a 2D grid, got shape {grid.shape}")
        height, width = grid.shape
        return cls(np.ascontiguousarray(grid).reshape(-1), width, height)

    def as_grid(self) -> np.ndarray:
        return self.values.reshape(self.height, self.width)


def _check_layout(buf: np.ndarray, width: int, height: int, channels: int) -> None:
    if width <= 0 or height <= 0 or channels <= 0:
        raise InvalidDimensions(f"invalid layout {width}x{height}x{channels}")
    if buf.ndim != 1 or buf.size != width * height * channels:
        raise InvalidDimensions(
            f"buffer of {buf.size} elements does not match {width}x{height}x{channels}"
        )


def interleaved_to_planar(buf: np.ndarray, width: int, height: int, channels: int) -> np.ndarray:
    """
    Reorder a pixel-major buffer into channel-major order.

    Source index ``(row * width + col) * channels + c`` moves to
    ``c * width * height + row * width + col``. The dtype is preserved.
    """
    _check_layout(buf, width, height, channels)
    hwc = buf.reshape(height, width, channels)
    return np.ascontiguousarray(hwc.transpose(2, 0, 1)).reshape(-1)


def planar_to_interleaved(buf: np.ndarray, width: int, height: int, channels: int) -> np.ndarray:
    """Inverse of `interleaved_to_planar`."""
    _check_layout(buf, width, height, channels)
    chw = buf.reshape(channels, height, width)
    return np.ascontiguousarray(chw.transpose(1, 2, 0)).reshape(-1)
