"""T3.02 — Envelope Corridor.

Interpolate envelope_iterations curves between each segment and both of its
bounds. Curve 0 of a corridor is the segment, curve K the bound.
"""

from __future__ import annotations

import numpy as np

from hypocurve.engine.context import Curve
from hypocurve.engine.parallel import map_segments
from hypocurve.engine.registry import Stage, transform
from hypocurve.utils.envelope import corridor


@transform(
    id="T3.02",
    stage=Stage.ENVELOPE,
    dependencies=["T3.01"],
    description="Interpolate intermediate curves between segments and envelope bounds",
)
def envelope_corridor(curve: Curve) -> None:
    cfg = curve.config
    k = cfg.envelope_iterations

    for variant, bank in curve.envelopes.items():
        segs = curve.segments_for(variant)
        n = len(segs)
        bank.outer_corridor = np.stack(
            map_segments(lambda i: corridor(segs[i], bank.outer_dists[i], k, bank.scale), n, cfg.max_workers)
        )
        bank.inner_corridor = np.stack(
            map_segments(lambda i: corridor(segs[i], bank.inner_dists[i], k, bank.scale), n, cfg.max_workers)
        )
