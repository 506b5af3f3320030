"""T3.01 — Envelope Bounds.

Push every normalized segment ENV_SCALE units along its outward and inward
unit normal. Bounds are built for the main segments and, when smoothing
ran, for the smoothed segments too.

Every point should travel exactly `envelope_scale`. Deviations beyond
`uniformity_tolerance` are logged and counted, never averaged away or
raised; so are bound curves that fold back on themselves (offset wider
than the local radius of curvature).
"""

from __future__ import annotations

import logging

import numpy as np

from hypocurve.engine.context import Curve, EnvelopeBank
from hypocurve.engine.parallel import map_segments
from hypocurve.engine.registry import Stage, transform
from hypocurve.utils.envelope import band_deviation, bounds, is_folded

logger = logging.getLogger(__name__)


def envelope_variants(curve: Curve) -> list[str]:
    """Variants with normalized segments available."""
    return ["main"] if curve.normal_smooth is None else ["main", "smooth"]


@transform(
    id="T3.01",
    stage=Stage.ENVELOPE,
    dependencies=["T1.01", "T2.01"],
    description="Generate outer and inner envelope bounds per segment",
)
def envelope_bounds(curve: Curve) -> None:
    cfg = curve.config
    scale = cfg.envelope_scale
    orientation = curve.orientation
    diag = curve.diagnostics
    # Rebuilt for every variant below, so count from scratch
    diag.reset(*diag.ENVELOPE_FIELDS)

    for variant in envelope_variants(curve):
        segs = curve.segments_for(variant)
        results = map_segments(
            lambda i: bounds(segs[i], scale, orientation, cfg.normal_eps),
            len(segs),
            cfg.max_workers,
        )

        bank = EnvelopeBank(
            outer=np.stack([r.outer for r in results]),
            inner=np.stack([r.inner for r in results]),
            outer_dists=np.stack([r.outer_dist for r in results]),
            inner_dists=np.stack([r.inner_dist for r in results]),
            scale=scale,
        )
        curve.envelopes[variant] = bank

        diag.near_zero_tangents += sum(r.repaired for r in results)
        for i in range(len(segs)):
            deviation = max(
                band_deviation(segs[i], bank.outer[i], scale),
                band_deviation(segs[i], bank.inner[i], scale),
            )
            diag.max_band_deviation = max(diag.max_band_deviation, deviation)
            if deviation > cfg.uniformity_tolerance:
                diag.nonuniform_bands += 1
                logger.warning(
                    "Segment %d (%s): envelope band deviates %.3g from scale %.3g",
                    i,
                    variant,
                    deviation,
                    scale,
                )
            if is_folded(bank.outer[i], segs[i]) or is_folded(bank.inner[i], segs[i]):
                diag.folded_bands += 1

        logger.debug("Built %s envelope bounds for %d segments", variant, len(segs))

    if diag.folded_bands:
        logger.debug("%d envelope bounds fold back on themselves at scale %.3g", diag.folded_bands, scale)
