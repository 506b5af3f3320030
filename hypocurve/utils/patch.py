"""Image patch mapping — sample the source image along every envelope curve.

Curves are denormalized back to pixel space, where (x, y) = (column, row),
sampled with bilinear interpolation, laid out one column per curve and
blurred. Sample coordinates outside the image are clamped to the nearest
valid pixel so every patch of a Curve has the same shape.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from scipy.ndimage import gaussian_filter, map_coordinates
from skimage.color import rgb2gray
from skimage.util import img_as_float

from hypocurve.errors import OutOfBounds
from hypocurve.utils.frame import denormalize


def as_gray_image(image: NDArray) -> NDArray[np.float64]:
    """Single-channel float image. RGB(A) is reduced to luminance."""
    img = np.asarray(image)
    if img.ndim == 3 and img.shape[-1] in (3, 4):
        img = rgb2gray(img[..., :3])
    if img.ndim != 2:
        raise ValueError(f"image must be 2-D grayscale, got shape {img.shape}")
    if img.size == 0:
        raise ValueError("image is empty")
    return img_as_float(img).astype(np.float64, copy=False)


def clamp_coords(
    coords: NDArray[np.float64],
    shape: tuple[int, int],
) -> tuple[NDArray[np.float64], int]:
    """Clamp (x, y) points into [0, W-1] x [0, H-1]. Returns (clamped, count moved)."""
    h, w = shape
    x = np.clip(coords[..., 0], 0.0, w - 1)
    y = np.clip(coords[..., 1], 0.0, h - 1)
    moved = int(np.count_nonzero((x != coords[..., 0]) | (y != coords[..., 1])))
    return np.stack([x, y], axis=-1), moved


def sample_curve(
    image: NDArray[np.float64],
    coords: NDArray[np.float64],
    clamp: bool = True,
) -> tuple[NDArray[np.float64], int]:
    """Bilinear intensity at each (x, y) point. Returns (values, clamped count).

    With clamp=False an out-of-image point raises OutOfBounds instead.
    """
    pts = np.asarray(coords, dtype=np.float64)
    clamped, moved = clamp_coords(pts, image.shape)
    if moved and not clamp:
        raise OutOfBounds(f"{moved} sample points fall outside image of shape {image.shape}")

    flat = clamped.reshape(-1, 2)
    values = map_coordinates(image, [flat[:, 1], flat[:, 0]], order=1, mode="nearest")
    return values.reshape(pts.shape[:-1]), moved


def curve_bundle(
    outer_corridor: NDArray[np.float64],
    segment: NDArray[np.float64],
    inner_corridor: NDArray[np.float64],
) -> NDArray[np.float64]:
    """(2K + 1, L, 2) stack: outer far→near, the segment, inner near→far.

    Corridors are (K + 1, L, 2) with curve 0 equal to the segment; that
    shared curve is dropped from both sides.
    """
    outer = np.asarray(outer_corridor)[1:][::-1]
    inner = np.asarray(inner_corridor)[1:]
    return np.concatenate([outer, np.asarray(segment)[None], inner], axis=0)


def sample_bundle(
    bundle: NDArray[np.float64],
    image: NDArray[np.float64],
    pmat: NDArray[np.float64],
    mid: NDArray[np.float64],
) -> tuple[NDArray[np.float64], int]:
    """Unblurred (L, n_curves) intensity matrix and the number of clamped samples."""
    raw = denormalize(bundle, pmat, mid)
    profiles, moved = sample_curve(image, raw)
    return profiles.T, moved


def map_patch(
    bundle: NDArray[np.float64],
    image: NDArray,
    pmat: NDArray[np.float64],
    mid: NDArray[np.float64],
    sigma: float = 3.0,
) -> NDArray[np.float64]:
    """Gaussian-blurred (L, n_curves) patch for one segment's curve bundle."""
    profiles, _ = sample_bundle(bundle, as_gray_image(image), pmat, mid)
    return blur(profiles, sigma)


def blur(profiles: NDArray[np.float64], sigma: float) -> NDArray[np.float64]:
    if sigma <= 0:
        return profiles
    return gaussian_filter(profiles, sigma=sigma, mode="nearest")
