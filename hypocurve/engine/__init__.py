"""Hypocotyl curve engine: segments, canonical frames, envelopes and image patches."""

from hypocurve.engine.config import CurveConfig
from hypocurve.engine.context import Curve, EnvelopeBank
from hypocurve.engine.pipeline import Pipeline, create_pipeline, run_curve
from hypocurve.engine.registry import Stage, get_registry, register_transforms, transform

__all__ = [
    "transform",
    "Stage",
    "get_registry",
    "register_transforms",
    "CurveConfig",
    "Curve",
    "EnvelopeBank",
    "Pipeline",
    "create_pipeline",
    "run_curve",
]
