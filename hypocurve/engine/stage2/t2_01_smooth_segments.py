"""T2.01 — Smooth Segments.

Local-regression smoothing of each normalized segment. The smoothed curve
is mapped back to pixels through the unsmoothed segment's frame; smoothing
never changes the frame itself. Any envelope built from earlier smoothed
data is dropped here and regenerated by the envelope stage.
"""

from __future__ import annotations

import numpy as np

from hypocurve.engine.context import Curve
from hypocurve.engine.parallel import map_segments
from hypocurve.engine.registry import Stage, transform
from hypocurve.utils.frame import denormalize
from hypocurve.utils.smoothing import smooth


@transform(
    id="T2.01",
    stage=Stage.SMOOTHING,
    dependencies=["T1.01"],
    tags={"smooth"},
    description="Smooth normalized segments and map them back to raw space",
)
def smooth_segments(curve: Curve) -> None:
    cfg = curve.config
    normal = curve.normal_segments
    frames = curve.frames
    mids = curve.midpoints

    curve.invalidate(Stage.SMOOTHING)

    def _smooth(i: int) -> tuple[np.ndarray, np.ndarray]:
        smoothed = smooth(normal[i], cfg.smooth_span, cfg.smooth_method)
        return smoothed, denormalize(smoothed, frames[i], mids[i])

    results = map_segments(_smooth, len(normal), cfg.max_workers)
    curve.normal_smooth = np.stack([r[0] for r in results])
    curve.raw_smooth = np.stack([r[1] for r in results])
