"""Segmenter — slice a closed trace into overlapping fixed-length windows."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from hypocurve.errors import InvalidConfiguration
from hypocurve.utils.geometry import as_points, midpoint


@dataclass(frozen=True, eq=False)
class Segment:
    """One window of the trace. Coordinates are a read-only view."""

    index: int
    coords: NDArray[np.float64]

    @property
    def start(self) -> NDArray[np.float64]:
        return self.coords[0]

    @property
    def end(self) -> NDArray[np.float64]:
        return self.coords[-1]

    @property
    def end_points(self) -> NDArray[np.float64]:
        """(2, 2) array: start row then end row."""
        return np.vstack([self.coords[0], self.coords[-1]])

    @property
    def midpoint(self) -> NDArray[np.float64]:
        return midpoint(self.coords[0], self.coords[-1])

    def __len__(self) -> int:
        return len(self.coords)


def segment_count(trace_length: int, length: int, step: int) -> int:
    """floor((T - L) / S) + 1, or InvalidConfiguration when the window does not fit."""
    if step < 1:
        raise InvalidConfiguration(f"segment step must be positive, got {step}")
    if length < 2:
        raise InvalidConfiguration(f"segment length must be >= 2, got {length}")
    if length > trace_length:
        raise InvalidConfiguration(
            f"segment length {length} exceeds trace length {trace_length}"
        )
    return (trace_length - length) // step + 1


def split_segments(
    trace: NDArray[np.float64],
    length: int,
    step: int,
) -> NDArray[np.float64]:
    """Stack every window into an (N, length, 2) array.

    Windows start at 0, step, 2*step, ... and stop before running past the
    end of the trace; no wrap-around.
    """
    trace = as_points(trace, "trace")
    n = segment_count(len(trace), length, step)
    starts = np.arange(n) * step
    idx = starts[:, None] + np.arange(length)[None, :]
    return trace[idx].copy()


def segment_trace(trace: NDArray[np.float64], length: int, step: int) -> list[Segment]:
    """Ordered Segment bank for a trace."""
    bank = split_segments(trace, length, step)
    bank.setflags(write=False)
    return [Segment(index=i, coords=bank[i]) for i in range(len(bank))]


def end_points(raw_segments: NDArray[np.float64]) -> NDArray[np.float64]:
    """(N, 2, 2) first and last row of each segment."""
    return np.stack([raw_segments[:, 0, :], raw_segments[:, -1, :]], axis=1).copy()
