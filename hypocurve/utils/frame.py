"""Midpoint normalization — express a segment in a frame anchored at its chord midpoint.

The frame F is built from the start→end chord: the first row is the unit
chord direction, the second its perpendicular. With Z = -F·M the homogeneous
matrix [F, Z; 0 0 1] sends the midpoint M to the origin and lays the chord
along +x, so start and end land at (-d/2, 0) and (d/2, 0).
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from hypocurve.errors import DegenerateGeometry
from hypocurve.utils.geometry import as_points, chord_frame, midpoint

# |det F| below this is treated as non-invertible
DET_EPS = 1e-12


def frame_matrix(
    start: NDArray[np.float64],
    end: NDArray[np.float64],
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Return (3x3 homogeneous frame matrix, midpoint) for a chord."""
    m = midpoint(start, end)
    f = chord_frame(start, end)
    z = -f @ m

    pmat = np.eye(3)
    pmat[:2, :2] = f
    pmat[:2, 2] = z
    return pmat, m


def normalize(
    coords: NDArray[np.float64],
) -> tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.float64]]:
    """Map raw segment coordinates into the segment's own canonical frame.

    Returns (normalized (n, 2), frame matrix (3, 3), midpoint (2,)).
    Raises DegenerateGeometry when the first and last point coincide.
    """
    x = as_points(coords, "segment")
    pmat, m = frame_matrix(x[0], x[-1])

    homogeneous = np.column_stack([x, np.ones(len(x))])
    p = (pmat @ homogeneous.T).T
    return p[:, :2], pmat, m


def denormalize(
    normalized: NDArray[np.float64],
    pmat: NDArray[np.float64],
    mid: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Inverse of normalize: F⁻¹·P re-translated by the midpoint."""
    p = np.asarray(normalized, dtype=np.float64)
    f = np.asarray(pmat, dtype=np.float64)[:2, :2]
    if abs(float(np.linalg.det(f))) < DET_EPS:
        raise DegenerateGeometry("frame matrix is not invertible")

    shape = p.shape
    flat = p.reshape(-1, 2)
    raw = np.linalg.solve(f, flat.T).T + np.asarray(mid, dtype=np.float64)
    return raw.reshape(shape)
