"""Curve configuration — segment windowing, envelope and patch parameters."""

from __future__ import annotations

from dataclasses import dataclass, field

from hypocurve.errors import InvalidConfiguration

SMOOTH_METHODS = ("lowess", "loess", "rlowess", "rloess", "sgolay", "moving")
VARIANTS = ("main", "smooth")


def _default_workers() -> int:
    from hypocurve.config import settings

    return settings.max_workers


@dataclass(frozen=True)
class CurveConfig:
    """Parameters shared by every stage of a Curve run. Validated at construction."""

    # Segmenter
    segment_size: int = 300  # points per segment
    segment_steps: int = 30  # stride between segment start indices

    # Envelope
    envelope_scale: float = 4.0  # distance from segment to each bound
    envelope_iterations: int = 25  # curves between segment and bound

    # Smoother
    smooth_span: float = 0.25  # fraction of points per local window
    smooth_method: str = "lowess"

    # Image patch
    gaussian_sigma: float = 3.0

    # Which curves feed the envelope and patch stages: "main" or "smooth"
    variant: str = "main"

    # Thread pool size for per-segment stages (<= 1 runs serially)
    max_workers: int = field(default_factory=_default_workers)

    # Max deviation of per-point band width from envelope_scale before warning
    uniformity_tolerance: float = 1e-6
    # Tangent norms below this are treated as undefined
    normal_eps: float = 1e-12

    def __post_init__(self) -> None:
        if int(self.segment_size) != self.segment_size or self.segment_size < 2:
            raise InvalidConfiguration(f"segment_size must be an integer >= 2, got {self.segment_size}")
        if int(self.segment_steps) != self.segment_steps or self.segment_steps < 1:
            raise InvalidConfiguration(f"segment_steps must be a positive integer, got {self.segment_steps}")
        if not self.envelope_scale > 0:
            raise InvalidConfiguration(f"envelope_scale must be positive, got {self.envelope_scale}")
        if int(self.envelope_iterations) != self.envelope_iterations or self.envelope_iterations < 1:
            raise InvalidConfiguration(
                f"envelope_iterations must be a positive integer, got {self.envelope_iterations}"
            )
        if not self.smooth_span > 0:
            raise InvalidConfiguration(f"smooth_span must be positive, got {self.smooth_span}")
        if self.smooth_method not in SMOOTH_METHODS:
            raise InvalidConfiguration(
                f"smooth_method must be one of {', '.join(SMOOTH_METHODS)}, got {self.smooth_method!r}"
            )
        if self.gaussian_sigma < 0:
            raise InvalidConfiguration(f"gaussian_sigma must be >= 0, got {self.gaussian_sigma}")
        if self.variant not in VARIANTS:
            raise InvalidConfiguration(f"variant must be 'main' or 'smooth', got {self.variant!r}")
        if self.uniformity_tolerance < 0 or self.normal_eps < 0:
            raise InvalidConfiguration("tolerances must be non-negative")

    @property
    def bands_per_patch(self) -> int:
        """Curves sampled per patch: outer corridor, segment, inner corridor."""
        return 2 * self.envelope_iterations + 1

    @property
    def patch_shape(self) -> tuple[int, int]:
        return (self.segment_size, self.bands_per_patch)
