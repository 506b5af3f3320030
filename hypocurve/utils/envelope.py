"""Envelope synthesis — parallel bound curves and the corridors between them.

Each point of a normalized segment is pushed along its unit normal by a
fixed scale: +normal for the outer bound, -normal for the inner bound. The
corridor interpolates linearly from the segment (index 0) to the bound
(index K), so every curve in the bank keeps the segment's point count.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray
from shapely.geometry import LineString

from hypocurve.errors import InvalidConfiguration
from hypocurve.utils.geometry import as_points, unit_normals


@dataclass
class EnvelopeBounds:
    """Outer/inner bound curves of one segment plus the unit displacements used."""

    outer: NDArray[np.float64]
    inner: NDArray[np.float64]
    outer_dist: NDArray[np.float64]
    inner_dist: NDArray[np.float64]
    # Points whose normal was borrowed from a neighbour (near-zero tangent)
    repaired: int = 0


def bounds(
    segment: NDArray[np.float64],
    scale: float,
    orientation: int = 1,
    eps: float = 1e-12,
) -> EnvelopeBounds:
    """Outer and inner bound at `scale` units along ±normal of every point."""
    if not scale > 0:
        raise InvalidConfiguration(f"envelope scale must be positive, got {scale}")

    seg = as_points(segment, "segment")
    normals, repaired = unit_normals(seg, orientation, eps)
    outer_dist = normals
    inner_dist = -normals

    return EnvelopeBounds(
        outer=seg + scale * outer_dist,
        inner=seg + scale * inner_dist,
        outer_dist=outer_dist,
        inner_dist=inner_dist,
        repaired=repaired,
    )


def corridor(
    segment: NDArray[np.float64],
    dist: NDArray[np.float64],
    iterations: int,
    scale: float = 1.0,
) -> NDArray[np.float64]:
    """(iterations + 1, n, 2) curves: curve[i] = segment + (i / iterations) * scale * dist."""
    if int(iterations) != iterations or iterations < 1:
        raise InvalidConfiguration(f"envelope iterations must be a positive integer, got {iterations}")

    seg = as_points(segment, "segment")
    d = as_points(dist, "dist")
    if d.shape != seg.shape:
        raise InvalidConfiguration(f"dist shape {d.shape} does not match segment shape {seg.shape}")

    fractions = np.arange(iterations + 1, dtype=np.float64) / iterations
    curves = seg[None, :, :] + fractions[:, None, None] * (scale * d)[None, :, :]
    # Pin the last curve to the bound exactly
    curves[-1] = seg + scale * d
    return curves


def band_deviation(
    segment: NDArray[np.float64],
    bound: NDArray[np.float64],
    scale: float,
) -> float:
    """Largest difference between a point's travel distance and `scale`."""
    travel = np.linalg.norm(np.asarray(bound) - np.asarray(segment), axis=1)
    return float(np.max(np.abs(travel - scale))) if len(travel) else 0.0


def is_folded(bound: NDArray[np.float64], segment: NDArray[np.float64]) -> bool:
    """True when the bound runs backwards against the segment or crosses itself.

    An offset wider than the local radius of curvature reverses the bound's
    edges relative to the matching segment edges, often without any crossing.
    """
    b = np.asarray(bound, dtype=np.float64)
    s = np.asarray(segment, dtype=np.float64)
    if len(b) < 2:
        return False
    along = np.sum(np.diff(b, axis=0) * np.diff(s, axis=0), axis=1)
    if np.any(along < 0):
        return True
    return len(b) >= 4 and not LineString(b).is_simple


def envelope_half_width(
    outer_dist: NDArray[np.float64],
    inner_dist: NDArray[np.float64],
    scale: float,
) -> float:
    """Half the distance between the first outer and inner displacement, times scale."""
    return float(np.linalg.norm(outer_dist[0] - inner_dist[0]) / 2.0 * scale)


def to_envelope_coords(
    curve: NDArray[np.float64],
    reference: NDArray[np.float64],
    normals: NDArray[np.float64],
    max_dist: float,
) -> NDArray[np.float64]:
    """Express `curve` as per-point (tangential, normal) offsets from `reference`.

    Offsets are fractions of `max_dist`; a normal offset of 1 lies on the
    outer bound and -1 on the inner bound.
    """
    if not max_dist > 0:
        raise InvalidConfiguration(f"envelope half-width must be positive, got {max_dist}")

    offsets = np.asarray(curve, dtype=np.float64) - np.asarray(reference, dtype=np.float64)
    n = np.asarray(normals, dtype=np.float64)
    t = np.column_stack([-n[:, 1], n[:, 0]])
    along = np.sum(offsets * t, axis=1)
    across = np.sum(offsets * n, axis=1)
    return np.column_stack([along, across]) / max_dist


def from_envelope_coords(
    env: NDArray[np.float64],
    reference: NDArray[np.float64],
    normals: NDArray[np.float64],
    max_dist: float,
) -> NDArray[np.float64]:
    """Inverse of to_envelope_coords."""
    if not max_dist > 0:
        raise InvalidConfiguration(f"envelope half-width must be positive, got {max_dist}")

    e = np.asarray(env, dtype=np.float64) * max_dist
    n = np.asarray(normals, dtype=np.float64)
    t = np.column_stack([-n[:, 1], n[:, 0]])
    return np.asarray(reference, dtype=np.float64) + e[:, :1] * t + e[:, 1:] * n
