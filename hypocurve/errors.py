"""Error kinds raised by the curve engine."""

from __future__ import annotations


class CurveError(Exception):
    """Base error for a curve pipeline run. Carries the offending segment index, if any."""

    def __init__(self, message: str, segment_index: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.segment_index = segment_index

    def with_segment(self, segment_index: int) -> "CurveError":
        if self.segment_index is None:
            self.segment_index = segment_index
        return self

    def __str__(self) -> str:
        if self.segment_index is None:
            return self.message
        return f"{self.message} (segment {self.segment_index})"


class InvalidConfiguration(CurveError, ValueError):
    """Segment length exceeds trace length, non-positive step/scale/iterations, etc."""


class DegenerateGeometry(CurveError, ArithmeticError):
    """Zero-length chord, non-invertible frame, or undefined normals."""


class OutOfBounds(CurveError, IndexError):
    """Sample coordinate outside the image. Handled by clamping, never surfaced."""
