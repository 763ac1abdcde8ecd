"""
Inference engine interface and the TorchScript adapter.

The pipeline only needs `invoke(tensor) -> tensor`; anything that can run the
model (TorchScript, a remote service, a test double) can sit behind it.
"""

from __future__ import annotations

import logging
from typing import Protocol

import numpy as np
import torch

from .buffers import Tensor
from .errors import InferenceError

logger = logging.getLogger(__name__)


class InferenceEngine(Protocol):
    def invoke(self, tensor: Tensor) -> Tensor:  # pragma: no cover - interface only
        ...


class TorchScriptEngine:
    """
    Runs a loaded torch module on planar float tensors.

    U^2-Net style models return the fused map followed by side outputs; only
    the first output is kept. Calls are stateless, so one engine may be shared
    across request threads.
    """

    def __init__(self, module: torch.nn.Module, device: torch.device):
        self.module = module
        self.device = device

    @staticmethod
    def _first_output(result) -> torch.Tensor:
        if isinstance(result, (tuple, list)):
            if not result:
                raise InferenceError("model returned no outputs")
            result = result[0]
        if not isinstance(result, torch.Tensor):
            raise InferenceError(f"model returned {type(result).__name__}, expected a tensor")
        return result

    def invoke(self, tensor: Tensor) -> Tensor:
        try:
            batch = torch.from_numpy(np.ascontiguousarray(tensor.as_array(), dtype=np.float32))
            with torch.no_grad():
                result = self.module(batch.to(self.device))
            output = self._first_output(result)
            array = output.detach().to("cpu", torch.float32).numpy()
        except InferenceError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.debug("TorchScript inference failed: %s", exc)
            raise InferenceError(f"model could not process input of shape {tensor.shape}") from exc

        logger.debug("inference %s -> %s", tensor.shape, tuple(array.shape))
        return Tensor.from_array(array)

