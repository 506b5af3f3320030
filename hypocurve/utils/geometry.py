"""Leaf-node geometry helpers. No engine imports."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from hypocurve.errors import DegenerateGeometry


def as_points(points: NDArray | list, name: str = "points") -> NDArray[np.float64]:
    """Coerce to an (n, 2) float64 array."""
    arr = np.asarray(points, dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise ValueError(f"{name} must have shape (n, 2), got {arr.shape}")
    return arr


def signed_area(points: NDArray[np.float64]) -> float:
    """Shoelace formula over a closed sequence. Positive = CCW, Negative = CW."""
    x = points[:, 0]
    y = points[:, 1]
    return float(0.5 * np.sum(x * np.roll(y, -1) - np.roll(x, -1) * y))


def winding_direction(points: NDArray[np.float64]) -> int:
    """Return 1 for CCW, -1 for CW, 0 if degenerate."""
    sa = signed_area(points)
    if sa > 0:
        return 1
    elif sa < 0:
        return -1
    return 0


def arc_lengths(points: NDArray[np.float64]) -> NDArray[np.float64]:
    """Cumulative arc-length along a point sequence."""
    diffs = np.diff(points, axis=0)
    segment_lengths = np.sqrt(np.sum(diffs**2, axis=1))
    return np.concatenate([[0.0], np.cumsum(segment_lengths)])


def midpoint(start: NDArray[np.float64], end: NDArray[np.float64]) -> NDArray[np.float64]:
    """Arithmetic midpoint of two points."""
    return (np.asarray(start, dtype=np.float64) + np.asarray(end, dtype=np.float64)) / 2.0


def chord_frame(
    start: NDArray[np.float64],
    end: NDArray[np.float64],
    eps: float = 1e-12,
) -> NDArray[np.float64]:
    """2x2 rotation whose rows are the unit chord direction and its left perpendicular.

    Applying it to (end - start) yields (|end - start|, 0).
    """
    chord = np.asarray(end, dtype=np.float64) - np.asarray(start, dtype=np.float64)
    length = float(np.hypot(chord[0], chord[1]))
    if not np.isfinite(length) or length <= eps:
        raise DegenerateGeometry("zero-length chord between segment start and end")

    u = chord / length
    return np.array([[u[0], u[1]], [-u[1], u[0]]])


def unit_tangents(
    points: NDArray[np.float64],
    eps: float = 1e-12,
) -> tuple[NDArray[np.float64], int]:
    """Unit tangent at each point from central finite differences.

    Points whose tangent norm falls under eps borrow the nearest defined
    tangent. Returns (tangents, number of borrowed tangents).
    """
    if len(points) < 2:
        raise DegenerateGeometry("need at least two points to estimate tangents")

    dx = np.gradient(points[:, 0])
    dy = np.gradient(points[:, 1])
    norms = np.hypot(dx, dy)
    valid = norms > eps
    if not np.any(valid):
        raise DegenerateGeometry("normal estimation undefined: all points coincide")

    tangents = np.zeros_like(points)
    tangents[valid, 0] = dx[valid] / norms[valid]
    tangents[valid, 1] = dy[valid] / norms[valid]

    n_repaired = int(np.count_nonzero(~valid))
    if n_repaired:
        good = np.flatnonzero(valid)
        for i in np.flatnonzero(~valid):
            nearest = good[np.argmin(np.abs(good - i))]
            tangents[i] = tangents[nearest]

    return tangents, n_repaired


def unit_normals(
    points: NDArray[np.float64],
    orientation: int = 1,
    eps: float = 1e-12,
) -> tuple[NDArray[np.float64], int]:
    """Outward unit normal at each point: the tangent rotated -90°.

    For a CCW contour (orientation=1) the right-hand normal points away from
    the enclosed region; orientation=-1 flips it for CW contours.
    """
    tangents, n_repaired = unit_tangents(points, eps)
    sign = -1.0 if orientation < 0 else 1.0
    normals = sign * np.column_stack([tangents[:, 1], -tangents[:, 0]])
    return normals, n_repaired
