"""T0.01 — Segment Trace.

Slice the closed trace into windows of segment_size points, segment_steps
apart. Windows stop before running past the last point; there is no
wrap-around, so N = floor((T - L) / S) + 1.
"""

from __future__ import annotations

import logging

import numpy as np

from hypocurve.engine.context import Curve
from hypocurve.engine.registry import Stage, transform
from hypocurve.utils.geometry import arc_lengths
from hypocurve.utils.segments import end_points, split_segments

logger = logging.getLogger(__name__)

# Spacing coefficient of variation above this is worth a log line
SPACING_CV_WARN = 0.5


@transform(
    id="T0.01",
    stage=Stage.SEGMENTATION,
    description="Split trace into overlapping fixed-length segments",
)
def segment_trace(curve: Curve) -> None:
    cfg = curve.config
    raw = split_segments(curve.trace, cfg.segment_size, cfg.segment_steps)

    curve.raw_segments = raw
    curve.end_points = end_points(raw)

    spacing = np.diff(arc_lengths(curve.trace))
    mean = float(np.mean(spacing)) if len(spacing) else 0.0
    if mean > 0:
        cv = float(np.std(spacing) / mean)
        if cv > SPACING_CV_WARN:
            logger.debug("Trace spacing is uneven (CV %.2f); segments will differ in arc length", cv)

    logger.debug(
        "Segmented %d-point trace into %d segments (size %d, step %d)",
        len(curve.trace),
        len(raw),
        cfg.segment_size,
        cfg.segment_steps,
    )
