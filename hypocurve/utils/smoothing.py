"""Smoother — local regression applied to each coordinate channel over the point index.

lowess/loess fit a weighted line/quadratic around every index using
tricube distance weights over a window of ceil(span * n) points. The r*
variants add bisquare robustness passes that down-weight outliers.
"""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import NDArray
from scipy.ndimage import uniform_filter1d
from scipy.signal import savgol_filter

from hypocurve.errors import InvalidConfiguration
from hypocurve.utils.geometry import as_points

ROBUST_ITERATIONS = 5

# method -> (polynomial degree, robust)
_REGRESSION = {
    "lowess": (1, False),
    "loess": (2, False),
    "rlowess": (1, True),
    "rloess": (2, True),
}


def window_points(span: float, n: int) -> int:
    """Points per local window. span <= 1 is a fraction of n, above 1 an absolute count."""
    if not span > 0:
        raise InvalidConfiguration(f"smoothing span must be positive, got {span}")
    k = math.ceil(span * n) if span <= 1 else int(round(span))
    return max(1, min(k, n))


def _tricube(d: NDArray[np.float64]) -> NDArray[np.float64]:
    d = np.clip(np.abs(d), 0.0, 1.0)
    return (1.0 - d**3) ** 3


def _bisquare(r: NDArray[np.float64]) -> NDArray[np.float64]:
    r = np.clip(np.abs(r), 0.0, 1.0)
    return (1.0 - r**2) ** 2


def local_regression(
    y: NDArray[np.float64],
    k: int,
    degree: int = 1,
    robust: bool = False,
) -> NDArray[np.float64]:
    """Tricube-weighted local polynomial fit of y over its index."""
    n = len(y)
    k = min(max(k, degree + 2), n)
    if n <= degree + 1:
        return y.astype(np.float64).copy()

    x = np.arange(n, dtype=np.float64)
    robustness = np.ones(n)
    fitted = np.empty(n)

    for _ in range(ROBUST_ITERATIONS + 1 if robust else 1):
        for i in range(n):
            start = min(max(i - k // 2, 0), n - k)
            idx = np.arange(start, start + k)
            d = x[idx] - i
            h = float(np.max(np.abs(d))) + 1.0
            w = _tricube(d / h) * robustness[idx]
            if w.sum() < 1e-12:
                w = _tricube(d / h)

            design = np.vander(d, degree + 1, increasing=True)
            sw = np.sqrt(w)
            beta, *_ = np.linalg.lstsq(design * sw[:, None], y[idx] * sw, rcond=None)
            fitted[i] = beta[0]

        if not robust:
            break
        residuals = y - fitted
        mad = float(np.median(np.abs(residuals)))
        if mad < 1e-12:
            break
        robustness = _bisquare(residuals / (6.0 * mad))

    return fitted


def smooth(
    segment: NDArray[np.float64],
    span: float = 0.25,
    method: str = "lowess",
) -> NDArray[np.float64]:
    """Smooth x and y independently; output has the segment's shape."""
    seg = as_points(segment, "segment")
    n = len(seg)
    k = window_points(span, n)

    if method in _REGRESSION:
        degree, robust = _REGRESSION[method]
        channels = [local_regression(seg[:, c], k, degree, robust) for c in range(2)]
        return np.column_stack(channels)

    if method == "sgolay":
        window = k if k % 2 == 1 else k + 1
        if window > n:
            window = n if n % 2 == 1 else n - 1
        if window < 3:
            return seg.copy()
        return savgol_filter(seg, window_length=window, polyorder=2, axis=0, mode="interp")

    if method == "moving":
        return uniform_filter1d(seg, size=k, axis=0, mode="nearest")

    raise InvalidConfiguration(f"unknown smoothing method {method!r}")
