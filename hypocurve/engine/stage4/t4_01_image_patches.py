"""T4.01 — Image Patches.

For each segment, stack the outer corridor (far to near), the segment and
the inner corridor (near to far), map every curve back to pixel space,
sample the image bilinearly along it and blur the resulting
(L, 2K + 1) matrix. Points outside the image are clamped, so patch shape
depends only on the configuration.
"""

from __future__ import annotations

import logging

import numpy as np

from hypocurve.engine.context import Curve
from hypocurve.engine.parallel import map_segments
from hypocurve.engine.registry import Stage, transform
from hypocurve.utils.patch import blur, curve_bundle, sample_bundle

logger = logging.getLogger(__name__)


@transform(
    id="T4.01",
    stage=Stage.PATCH,
    dependencies=["T3.02"],
    description="Sample the source image along every envelope curve",
)
def image_patches(curve: Curve) -> None:
    cfg = curve.config
    image = curve.image
    segs = curve.segments_for(cfg.variant)
    bank = curve.envelope(cfg.variant)
    frames = curve.frames
    mids = curve.midpoints

    def _patch(i: int) -> tuple[np.ndarray, int]:
        bundle = curve_bundle(bank.outer_corridor[i], segs[i], bank.inner_corridor[i])
        profiles, moved = sample_bundle(bundle, image, frames[i], mids[i])
        return blur(profiles, cfg.gaussian_sigma), moved

    results = map_segments(_patch, len(segs), cfg.max_workers)
    curve.image_patches = np.stack([r[0] for r in results])

    clamped = sum(r[1] for r in results)
    curve.diagnostics.clamped_samples = clamped
    if clamped:
        logger.debug("Clamped %d envelope samples to the image border", clamped)
