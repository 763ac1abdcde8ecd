"""
Error taxonomy for the cutout pipeline.

Every stage fails fast with one of these instead of returning a best-effort
buffer. None of them are retried internally.
"""

from __future__ import annotations

from typing import Optional


class CutoutError(Exception):
    """Base class for all pipeline failures."""

    kind = "CutoutError"


class InvalidDimensions(CutoutError):
    """A zero-sized or inconsistently sized image/field was supplied."""

    kind = "InvalidDimensions"


class EncodingError(CutoutError):
    """The source image cannot be turned into a model input tensor."""

    kind = "EncodingError"


class ShapeMismatch(CutoutError):
    """A tensor does not carry the expected number of elements."""

    kind = "ShapeMismatch"


class InferenceError(CutoutError):
    """Opaque failure reported by the external inference engine."""

    kind = "InferenceError"


class AllocationFailure(CutoutError):
    """An output buffer could not be constructed."""

    kind = "AllocationFailure"


class PipelineError(CutoutError):
    """Wraps the error of whichever stage failed first."""

    kind = "PipelineError"

    def __init__(self, stage: str, cause: CutoutError, message: Optional[str] = None):
        super().__init__(message or f"{stage} failed: {cause.kind}: {cause}")
        self.stage = stage
        self.cause = cause
        self.__cause__ = cause
        self.kind = cause.kind
