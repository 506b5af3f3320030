"""T3.03 — Envelope Coordinates.

Express each variant's normalized segments inside the main segment's
envelope: per-point (tangential, normal) offsets as fractions of the
envelope half-width. Main segments map to zeros; smoothed segments record
how far smoothing moved each point toward either bound.
"""

from __future__ import annotations

import numpy as np

from hypocurve.engine.context import Curve
from hypocurve.engine.registry import Stage, transform
from hypocurve.utils.envelope import to_envelope_coords


@transform(
    id="T3.03",
    stage=Stage.ENVELOPE,
    dependencies=["T3.01"],
    description="Convert normalized segments to envelope coordinates",
)
def envelope_coordinates(curve: Curve) -> None:
    main = curve.envelope("main")
    reference = curve.normal_segments
    max_dist = main.half_width()

    for variant in curve.envelopes:
        segs = curve.segments_for(variant)
        curve.envelope_segments[variant] = np.stack([
            to_envelope_coords(segs[i], reference[i], main.outer_dists[i], max_dist)
            for i in range(len(segs))
        ])
