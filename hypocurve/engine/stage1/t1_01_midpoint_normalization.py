"""T1.01 — Midpoint Normalization.

Express every raw segment in its own canonical frame: origin at the
midpoint of start and end, chord along +x. Frames and midpoints are kept
so any curve derived in that frame can be mapped back to pixels.
"""

from __future__ import annotations

import numpy as np

from hypocurve.engine.context import Curve
from hypocurve.engine.parallel import map_segments
from hypocurve.engine.registry import Stage, transform
from hypocurve.utils.frame import normalize


@transform(
    id="T1.01",
    stage=Stage.NORMALIZATION,
    dependencies=["T0.01"],
    description="Midpoint-normalize segments into their canonical frames",
)
def midpoint_normalization(curve: Curve) -> None:
    raw = curve.raw_segments
    results = map_segments(lambda i: normalize(raw[i]), len(raw), curve.config.max_workers)

    curve.normal_segments = np.stack([r[0] for r in results])
    curve.frames = np.stack([r[1] for r in results])
    curve.midpoints = np.stack([r[2] for r in results])
