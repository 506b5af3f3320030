"""Rasterization helpers — contour masks and per-channel segment vectors."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from skimage.draw import line

from hypocurve.utils.geometry import as_points


def coords_to_mask(
    shape: tuple[int, int],
    coords: NDArray[np.float64],
    closed: bool = True,
) -> NDArray[np.bool_]:
    """Boolean mask with the pixels under a traced outline set to True.

    Coordinates are (x, y); anything outside the mask is clipped. A closed
    outline also draws the edge from the last point back to the first.
    """
    pts = as_points(coords, "coords")
    mask = np.zeros(shape, dtype=bool)
    if len(pts) == 0:
        return mask

    rows = np.rint(pts[:, 1]).astype(int)
    cols = np.rint(pts[:, 0]).astype(int)
    if closed and len(pts) > 2:
        rows = np.append(rows, rows[0])
        cols = np.append(cols, cols[0])

    h, w = shape
    for (r0, c0), (r1, c1) in zip(zip(rows[:-1], cols[:-1]), zip(rows[1:], cols[1:])):
        rr, cc = line(r0, c0, r1, c1)
        keep = (rr >= 0) & (rr < h) & (cc >= 0) & (cc < w)
        mask[rr[keep], cc[keep]] = True
    if len(pts) == 1 and 0 <= rows[0] < h and 0 <= cols[0] < w:
        mask[rows[0], cols[0]] = True
    return mask


def rasterize_channels(
    segments: NDArray[np.float64],
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Split an (N, L, 2) bank into (N, L) x and y matrices, one row per segment."""
    bank = np.asarray(segments, dtype=np.float64)
    return bank[:, :, 0].copy(), bank[:, :, 1].copy()


def vectorize_patches(patches: NDArray[np.float64]) -> NDArray[np.float64]:
    """Flatten (N, L, B) patches to an (N, L * B) design matrix, row-major per patch."""
    bank = np.asarray(patches, dtype=np.float64)
    return bank.reshape(len(bank), -1)
