"""
High-level background removal pipeline.

`remove_background` is the main entry point: encode -> external inference ->
composite. Callers get either a fully composited image or a `PipelineError`,
never a partial result. `process_image_bytes` wires it to the shared
TorchScript engine for bytes-in/PNG-out use.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from threading import Lock
import time
from typing import Callable, Optional, Union

import numpy as np

from . import config
from .buffers import RGBAImage, Tensor
from .compositor import composite
from .encoder import encode
from .engine import InferenceEngine
from .errors import CutoutError, InferenceError, PipelineError
from .imaging import encode_png, load_image_bytes
from .model_loader import get_engine

logger = logging.getLogger(__name__)

InferenceCall = Callable[[Tensor], Union[Tensor, np.ndarray]]

# Guards the one shared resource (the model) for engines that are not reentrant.
_INFERENCE_LOCK = Lock()


@dataclass(frozen=True)
class PipelineResult:
    image: Optional[RGBAImage] = None
    error: Optional[PipelineError] = None

    def __post_init__(self) -> None:
        if (self.image is None) == (self.error is None):
            raise ValueError("PipelineResult needs exactly one of image or error")

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> RGBAImage:
        if self.error is not None:
            raise self.error
        return self.image


def _infer(tensor: Tensor, inference_call: InferenceCall, serialize: bool) -> Tensor:
    try:
        if serialize:
            with _INFERENCE_LOCK:
                result = inference_call(tensor)
        else:
            result = inference_call(tensor)
    except CutoutError:
        raise
    except Exception as exc:  # noqa: BLE001
        raise InferenceError(str(exc) or type(exc).__name__) from exc

    if isinstance(result, Tensor):
        return result
    if isinstance(result, np.ndarray):
        try:
            return Tensor.from_array(result)
        except (TypeError, ValueError) as exc:
            raise InferenceError(f"inference returned an unusable {result.dtype} array") from exc
    raise InferenceError(f"inference returned {type(result).__name__}, expected a tensor")


def remove_background(
    image: RGBAImage,
    inference_call: InferenceCall,
    *,
    layout: Optional[config.TensorLayout] = None,
    serialize: bool = False,
) -> PipelineResult:
    """
    Cut the salient object out of `image`.

    `inference_call` is usually `engine.invoke`. With `serialize=True` all
    calls through this module share one critical section, for engines that
    cannot run concurrently. `image` is never mutated.
    """
    layout = layout or config.default_layout()
    stage = "encode"
    started = time.perf_counter()
    try:
        tensor = encode(image, layout)
        stage = "inference"
        output = _infer(tensor, inference_call, serialize)
        stage = "composite"
        result = composite(output, image, layout)
    except CutoutError as exc:
        logger.warning("Background removal failed during %s: %s: %s", stage, exc.kind, exc)
        return PipelineResult(error=PipelineError(stage, exc))

    logger.debug(
        "Background removed from %dx%d image in %.1f ms",
        image.width,
        image.height,
        (time.perf_counter() - started) * 1000.0,
    )
    return PipelineResult(image=result)


def process_image_bytes(image_bytes: bytes, engine: Optional[InferenceEngine] = None) -> bytes:
    """
    Full pipeline from raw image bytes to RGBA PNG bytes.

    Raises:
        PipelineError: when the input is invalid or any stage fails.
    """
    settings = config.get_settings()
    try:
        image = load_image_bytes(image_bytes)
    except CutoutError as exc:
        raise PipelineError("decode", exc) from exc

    engine = engine or get_engine()
    result = remove_background(
        image,
        engine.invoke,
        layout=settings.tensor_layout(),
        serialize=settings.serialize_inference,
    )
    return encode_png(result.unwrap())
