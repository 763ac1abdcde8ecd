"""
Model loading utilities for u2netp.

The loader:
 - loads a TorchScript export from `U2NETP_MODEL_PATH`,
 - keeps a single shared instance on the best available device,
 - exposes `get_engine()` for inference callers.
"""

from __future__ import annotations

import logging
from pathlib import Path
from threading import Lock
from typing import Optional

import torch

from . import config
from .engine import TorchScriptEngine

logger = logging.getLogger(__name__)

_ENGINE: Optional[TorchScriptEngine] = None
# Prefer CUDA -> Apple MPS -> CPU to support both GPU servers and local macOS dev.
if torch.cuda.is_available():
    _DEVICE = torch.device("cuda")
elif torch.backends.mps.is_available():  # type: ignore[attr-defined]
    _DEVICE = torch.device("mps")
else:
    _DEVICE = torch.device("cpu")
_LOCK = Lock()


def get_device() -> torch.device:
    """Return the inference device (prefers CUDA when available)."""
    return _DEVICE


def load_torchscript(model_path: Path, device: Optional[torch.device] = None) -> torch.nn.Module:
    """Load a TorchScript model in eval mode on `device`."""
    device = device or _DEVICE
    if not model_path.exists():
        raise FileNotFoundError(f"u2netp model not found at {model_path}")

    logger.info("Loading TorchScript model from %s", model_path)
    model = torch.jit.load(str(model_path), map_location=device)
    model.eval()
    return model


def load_engine(model_path: Path, device: Optional[torch.device] = None) -> TorchScriptEngine:
    device = device or _DEVICE
    return TorchScriptEngine(load_torchscript(model_path, device), device)


def get_engine() -> TorchScriptEngine:
    """
    Return the shared engine, loading the model on first access.

    The model is kept resident across requests; concurrent first calls load it
    only once.
    """
    global _ENGINE
    if _ENGINE is not None:
        return _ENGINE

    with _LOCK:
        if _ENGINE is None:
            settings = config.get_settings()
            if settings.model_path is None:
                raise ValueError("U2NETP_MODEL_PATH is required to load the model")
            _ENGINE = load_engine(settings.model_path)
            logger.info("u2netp loaded on device: %s", _DEVICE)
    return _ENGINE
