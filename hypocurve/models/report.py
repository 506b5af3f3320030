"""Run report models handed to downstream collaborators."""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, Field


class Diagnostics(BaseModel):
    """Tolerated numeric issues, counted rather than raised."""

    # Counters owned by the envelope stage and by the patch stage
    ENVELOPE_FIELDS: ClassVar[tuple[str, ...]] = (
        "near_zero_tangents",
        "nonuniform_bands",
        "folded_bands",
        "max_band_deviation",
    )
    PATCH_FIELDS: ClassVar[tuple[str, ...]] = ("clamped_samples",)

    near_zero_tangents: int = 0
    nonuniform_bands: int = 0
    folded_bands: int = 0
    clamped_samples: int = 0
    max_band_deviation: float = 0.0

    def reset(self, *names: str) -> None:
        """Restore the named counters (all of them when none are given) to their defaults."""
        fields = type(self).model_fields
        for name in names or tuple(fields):
            setattr(self, name, fields[name].default)


class CurveReport(BaseModel):
    number_of_segments: int = 0
    segment_size: int = 0
    variant: str = "main"
    patch_shape: tuple[int, int] | None = None
    completed_transforms: list[str] = Field(default_factory=list)
    timings_ms: dict[str, float] = Field(default_factory=dict)
    diagnostics: Diagnostics = Field(default_factory=Diagnostics)
    errors: dict[str, str] = Field(default_factory=dict)
