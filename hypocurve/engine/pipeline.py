"""Pipeline orchestrator — runs transforms in dependency order with adaptive gating."""

from __future__ import annotations

import logging
import time

from numpy.typing import NDArray

from hypocurve.engine.config import CurveConfig
from hypocurve.engine.context import Curve
from hypocurve.engine.registry import (
    Stage,
    TransformRegistry,
    TransformSpec,
    get_registry,
    register_transforms,
)
from hypocurve.errors import CurveError

logger = logging.getLogger(__name__)


class Pipeline:
    """Orchestrates the transform pipeline for one Curve at a time."""

    def __init__(self, registry: TransformRegistry | None = None) -> None:
        self.registry = registry or get_registry()

    def run(self, curve: Curve, start: Stage = Stage.SEGMENTATION) -> Curve:
        """Recompute `start` and every later stage.

        Any failure aborts the run: the error is recorded on the curve, all
        derived data is discarded and the exception propagates.
        """
        t_start = time.perf_counter()
        curve.invalidate(start)
        curve.errors.clear()

        skip_ids = self._adaptive_gate(curve)
        ordered = [s for s in self.registry.resolve_order(skip_ids) if s.stage >= start]

        logger.info(
            "Pipeline: %d transforms queued (%d skipped) for %d-point trace",
            len(ordered),
            len(skip_ids),
            len(curve.trace),
        )

        for spec in ordered:
            self._run_transform(spec, curve)

        total = (time.perf_counter() - t_start) * 1000
        logger.info(
            "Pipeline complete: %d segments, %d transforms in %.0fms",
            curve.number_of_segments,
            len(ordered),
            total,
        )
        return curve

    def run_stage(self, curve: Curve, stage: Stage) -> Curve:
        """Re-run one stage and everything downstream of it."""
        return self.run(curve, start=stage)

    def _run_transform(self, spec: TransformSpec, curve: Curve) -> None:
        t0 = time.perf_counter()
        try:
            spec.fn(curve)
        except CurveError as e:
            curve.errors[spec.id] = str(e)
            logger.error("  %s aborted: %s", spec.id, e)
            curve.invalidate(Stage.SEGMENTATION)
            raise
        except Exception as e:
            curve.errors[spec.id] = f"{type(e).__name__}: {e}"
            logger.exception("  %s FAILED", spec.id)
            curve.invalidate(Stage.SEGMENTATION)
            raise

        elapsed = (time.perf_counter() - t0) * 1000
        curve.completed_transforms.add(spec.id)
        curve.timings_ms[spec.id] = round(elapsed, 2)
        logger.debug("  %s completed in %.1fms", spec.id, elapsed)

    def _adaptive_gate(self, curve: Curve) -> set[str]:
        """Determine which transforms to skip for this curve.

        - The "main" variant never needs the smoothing transforms
        - Without a source image there is nothing to sample patches from
        """
        skip: set[str] = set()

        if curve.config.variant == "main":
            skip.update(s.id for s in self.registry.all() if "smooth" in s.tags)

        if curve.image is None:
            skip.update(s.id for s in self.registry.get_stage(Stage.PATCH))
            logger.info("No source image: skipping image patch stage")

        return skip


def create_pipeline() -> Pipeline:
    """Factory function for a pipeline over all registered stage transforms."""
    return Pipeline(registry=register_transforms())


def run_curve(
    trace: NDArray,
    image: NDArray | None = None,
    config: CurveConfig | None = None,
) -> Curve:
    """Segment, normalize, smooth, envelope and patch one trace end to end."""
    curve = Curve(trace=trace, config=config or CurveConfig(), image=image)
    return create_pipeline().run(curve)
