"""Curve — the single mutable state object flowing through all transforms.

A Curve owns one trace and every array derived from it. Per-segment data is
stored in flat arrays indexed by segment position (axis 0), never as
per-segment objects with back-references:

    raw_segments     (N, L, 2)    windows of the trace
    end_points       (N, 2, 2)    first/last row of each window
    normal_segments  (N, L, 2)    windows in their own canonical frame
    frames           (N, 3, 3)    homogeneous frame matrices
    midpoints        (N, 2)       chord midpoints
    normal_smooth    (N, L, 2)    smoothed normalized windows
    raw_smooth       (N, L, 2)    smoothed windows mapped back to pixels
    envelopes[v]                  EnvelopeBank per variant ("main"/"smooth")
    envelope_segments[v] (N, L, 2) variant curves in main-envelope coordinates
    image_patches    (N, L, 2K+1) blurred intensity patches

Changing the trace or configuration invalidates all of it together.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

import numpy as np
from numpy.typing import NDArray

from hypocurve.engine.config import CurveConfig
from hypocurve.engine.registry import Stage
from hypocurve.models.report import CurveReport, Diagnostics
from hypocurve.utils.envelope import envelope_half_width, from_envelope_coords
from hypocurve.utils.frame import denormalize
from hypocurve.utils.geometry import as_points, winding_direction
from hypocurve.utils.patch import as_gray_image
from hypocurve.utils.raster import rasterize_channels, vectorize_patches

logger = logging.getLogger(__name__)

SEGMENT_KINDS = ("raw", "normal", "raw_smooth", "normal_smooth")


@dataclass
class EnvelopeBank:
    """Envelope data for every segment of one variant."""

    outer: NDArray[np.float64]  # (N, L, 2) outer bound curves
    inner: NDArray[np.float64]  # (N, L, 2) inner bound curves
    outer_dists: NDArray[np.float64]  # (N, L, 2) unit displacements to the outer bound
    inner_dists: NDArray[np.float64]  # (N, L, 2) unit displacements to the inner bound
    scale: float
    # (N, K+1, L, 2); curve 0 is the segment, curve K the bound
    outer_corridor: NDArray[np.float64] | None = None
    inner_corridor: NDArray[np.float64] | None = None

    @property
    def iterations(self) -> int | None:
        if self.outer_corridor is None:
            return None
        return self.outer_corridor.shape[1] - 1

    def half_width(self) -> float:
        return envelope_half_width(self.outer_dists[0], self.inner_dists[0], self.scale)


@dataclass
class Curve:
    """Shared state for one trace."""

    trace: NDArray[np.float64]
    config: CurveConfig = field(default_factory=CurveConfig)
    # Grayscale source image; only the patch stage needs it
    image: NDArray[np.float64] | None = None

    # --- Derived per-segment arrays ---
    raw_segments: NDArray[np.float64] | None = None
    end_points: NDArray[np.float64] | None = None
    normal_segments: NDArray[np.float64] | None = None
    frames: NDArray[np.float64] | None = None
    midpoints: NDArray[np.float64] | None = None
    normal_smooth: NDArray[np.float64] | None = None
    raw_smooth: NDArray[np.float64] | None = None
    envelopes: dict[str, EnvelopeBank] = field(default_factory=dict)
    envelope_segments: dict[str, NDArray[np.float64]] = field(default_factory=dict)
    image_patches: NDArray[np.float64] | None = None

    # --- Pipeline metadata ---
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
    completed_transforms: set[str] = field(default_factory=set)
    timings_ms: dict[str, float] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.trace = as_points(self.trace, "trace")
        if self.image is not None:
            self.image = as_gray_image(self.image)

    @property
    def number_of_segments(self) -> int:
        return 0 if self.raw_segments is None else len(self.raw_segments)

    @property
    def orientation(self) -> int:
        """Winding of the trace: 1 = CCW, -1 = CW. Degenerate traces count as CCW."""
        return winding_direction(self.trace) or 1

    # --- Invalidation ---

    def set_trace(self, trace: NDArray[np.float64]) -> None:
        self.trace = as_points(trace, "trace")
        self.invalidate(Stage.SEGMENTATION)

    def set_image(self, image: NDArray) -> None:
        self.image = as_gray_image(image)
        self.invalidate(Stage.PATCH)

    def reconfigure(self, **changes: Any) -> None:
        """Replace config fields (validated) and drop everything derived."""
        self.config = dataclasses.replace(self.config, **changes)
        self.invalidate(Stage.SEGMENTATION)

    def invalidate(self, stage: Stage) -> None:
        """Drop data produced at `stage` and everything that depends on it.

        Smoothing only feeds the "smooth" variant, so invalidating it leaves
        the main envelope (and main-variant patches) in place.
        """
        if stage == Stage.SMOOTHING:
            self.normal_smooth = None
            self.raw_smooth = None
            self.envelopes.pop("smooth", None)
            self.envelope_segments.pop("smooth", None)
            dropped = {int(Stage.SMOOTHING)}
            if self.config.variant == "smooth":
                self.image_patches = None
                self.diagnostics.reset(*Diagnostics.ENVELOPE_FIELDS, *Diagnostics.PATCH_FIELDS)
                dropped |= {int(Stage.ENVELOPE), int(Stage.PATCH)}
            self._forget(lambda s: s in dropped)
            logger.debug("Invalidated smoothed segments")
            return

        if stage <= Stage.SEGMENTATION:
            self.raw_segments = None
            self.end_points = None
            self.diagnostics.reset()
        if stage <= Stage.NORMALIZATION:
            self.normal_segments = None
            self.frames = None
            self.midpoints = None
            self.normal_smooth = None
            self.raw_smooth = None
        if stage <= Stage.ENVELOPE:
            self.envelopes.clear()
            self.envelope_segments.clear()
            self.diagnostics.reset(*Diagnostics.ENVELOPE_FIELDS)
        self.image_patches = None
        self.diagnostics.reset(*Diagnostics.PATCH_FIELDS)
        self._forget(lambda s: s >= stage)
        logger.debug("Invalidated %s and downstream data", stage.name)

    def _forget(self, dropped: Callable[[int], bool]) -> None:
        self.completed_transforms = {
            tid for tid in self.completed_transforms if not dropped(_stage_of(tid))
        }

    # --- Accessors ---

    def segments_for(self, variant: str) -> NDArray[np.float64]:
        """Normalized segment bank feeding the envelope/patch stages."""
        if variant == "smooth":
            return self._require("normal_smooth")
        return self._require("normal_segments")

    def segment(self, idx: int, kind: str = "raw") -> NDArray[np.float64]:
        if kind not in SEGMENT_KINDS:
            raise ValueError(f"kind must be one of {SEGMENT_KINDS}, got {kind!r}")
        return self._require(f"{kind}_segments" if kind in ("raw", "normal") else kind)[idx]

    def midpoint(self, idx: int) -> NDArray[np.float64]:
        return self._require("midpoints")[idx]

    def end_point(self, idx: int, which: str = "start") -> NDArray[np.float64]:
        if which not in ("start", "end"):
            raise ValueError(f"which must be 'start' or 'end', got {which!r}")
        return self._require("end_points")[idx, 0 if which == "start" else 1]

    def frame(self, idx: int) -> NDArray[np.float64]:
        return self._require("frames")[idx]

    def envelope(self, variant: str | None = None) -> EnvelopeBank:
        variant = variant or self.config.variant
        if variant not in self.envelopes:
            raise RuntimeError(f"envelope for variant {variant!r} has not been generated")
        return self.envelopes[variant]

    # --- Conversions for downstream consumers ---

    def envelope_to_normal(self, variant: str | None = None) -> NDArray[np.float64]:
        """Map envelope_segments[variant] back to normalized coordinates."""
        variant = variant or self.config.variant
        if variant not in self.envelope_segments:
            raise RuntimeError(f"envelope coordinates for variant {variant!r} have not been generated")

        env = self.envelope_segments[variant]
        main = self.envelope("main")
        reference = self._require("normal_segments")
        max_dist = main.half_width()
        return np.stack([
            from_envelope_coords(env[i], reference[i], main.outer_dists[i], max_dist)
            for i in range(len(env))
        ])

    def envelope_to_raw(self, variant: str | None = None) -> NDArray[np.float64]:
        """Map envelope_segments[variant] all the way back to pixel coordinates."""
        normal = self.envelope_to_normal(variant)
        frames = self._require("frames")
        mids = self._require("midpoints")
        return np.stack([denormalize(normal[i], frames[i], mids[i]) for i in range(len(normal))])

    def rasterize_segments(self, kind: str = "normal") -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """(N, L) x and y matrices for a segment bank, one row per segment."""
        if kind not in SEGMENT_KINDS:
            raise ValueError(f"kind must be one of {SEGMENT_KINDS}, got {kind!r}")
        return rasterize_channels(self._require(f"{kind}_segments" if kind in ("raw", "normal") else kind))

    def vectorize_patches(self) -> NDArray[np.float64]:
        """(N, L * (2K+1)) matrix with one flattened patch per row."""
        return vectorize_patches(self._require("image_patches"))

    def report(self) -> CurveReport:
        patch_shape = None
        if self.image_patches is not None:
            patch_shape = tuple(int(s) for s in self.image_patches.shape[1:])
        return CurveReport(
            number_of_segments=self.number_of_segments,
            segment_size=self.config.segment_size,
            variant=self.config.variant,
            patch_shape=patch_shape,
            completed_transforms=sorted(self.completed_transforms),
            timings_ms=dict(self.timings_ms),
            diagnostics=self.diagnostics.model_copy(),
            errors=dict(self.errors),
        )

    def _require(self, name: str) -> Any:
        value = getattr(self, name)
        if value is None:
            raise RuntimeError(f"{name} has not been computed; run the pipeline first")
        return value


def _stage_of(transform_id: str) -> int:
    """Stage number encoded in a transform ID: 'T3.02' -> 3."""
    return int(transform_id[1:].split(".")[0])
