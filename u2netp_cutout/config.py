"""
Configuration for the U^2-Net-P cutout pipeline.

Environment variables are centralized here so the encoder and compositor only
ever see a validated `TensorLayout`. The defaults match the bundled u2netp
model, so nothing has to be set for the core to run.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional, Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

RGB_CHANNELS = 3
MASK_CHANNELS = 1


@dataclass(frozen=True)
class TensorLayout:
    """Fixed model geometry and the per-channel input normalization."""

    # Model input/output spatial size
    width: int = 320
    height: int = 320

    # sample -> (sample / pixel_scale - mean) / std
    pixel_scale: float = 255.0
    mean: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    std: Tuple[float, float, float] = (1.0, 1.0, 1.0)

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError("model width and height must be positive")
        if self.pixel_scale <= 0:
            raise ValueError("pixel_scale must be positive")
        if len(self.mean) != RGB_CHANNELS or len(self.std) != RGB_CHANNELS:
            raise ValueError("mean and std need one value per RGB channel")
        if any(s <= 0 for s in self.std):
            raise ValueError("std values must be positive")

    @property
    def input_shape(self) -> Tuple[int, int, int, int]:
        return (1, RGB_CHANNELS, self.height, self.width)

    @property
    def output_shape(self) -> Tuple[int, int, int, int]:
        return (1, MASK_CHANNELS, self.height, self.width)

    @property
    def mask_size(self) -> int:
        return self.width * self.height


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="U2NETP_", env_file=".env", case_sensitive=False, protected_namespaces=()
    )

    # Model
    model_path: Optional[Path] = None
    serialize_inference: bool = False

    # Tensor layout
    input_width: int = Field(320, gt=0)
    input_height: int = Field(320, gt=0)
    pixel_scale: float = Field(255.0, gt=0)
    pixel_mean: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    pixel_std: Tuple[float, float, float] = (1.0, 1.0, 1.0)

    log_level: str = "INFO"

    @field_validator("pixel_std")
    @classmethod
    def validate_std(cls, v: Tuple[float, float, float]) -> Tuple[float, float, float]:
        if any(s <= 0 for s in v):
            raise ValueError("U2NETP_PIXEL_STD values must be positive")
        return v

    def tensor_layout(self) -> TensorLayout:
        return TensorLayout(
            width=self.input_width,
            height=self.input_height,
            pixel_scale=self.pixel_scale,
            mean=self.pixel_mean,
            std=self.pixel_std,
        )


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings to avoid reparsing env on every call."""
    return Settings()


def default_layout() -> TensorLayout:
    return get_settings().tensor_layout()
