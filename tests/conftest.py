"""Shared test fixtures."""

from __future__ import annotations

import numpy as np
import pytest

from hypocurve.engine.config import CurveConfig


def make_circle(
    n: int = 360,
    radius: float = 1.0,
    center: tuple[float, float] = (0.0, 0.0),
    clockwise: bool = False,
) -> np.ndarray:
    """Closed circle sampled at n evenly spaced angles, starting at angle 0."""
    theta = np.arange(n) * 2 * np.pi / n
    if clockwise:
        theta = -theta
    return np.column_stack([center[0] + radius * np.cos(theta), center[1] + radius * np.sin(theta)])


def make_ring_image(
    shape: tuple[int, int] = (120, 120),
    radius: float = 30.0,
    center: tuple[float, float] = (60.0, 60.0),
    width: float = 2.0,
) -> np.ndarray:
    """Dark background with a bright ring of the given radius, values in [0, 1]."""
    rows, cols = np.mgrid[0 : shape[0], 0 : shape[1]]
    r = np.hypot(cols - center[0], rows - center[1])
    return np.exp(-((r - radius) ** 2) / (2 * width**2))


# Unit circle from the end-to-end scenario: 360 points, 30-point segments, 30-point steps
UNIT_CIRCLE = make_circle(360, 1.0)
SCENARIO_CONFIG = CurveConfig(segment_size=30, segment_steps=30, envelope_scale=4.0)

# Hypocotyl-like ring image and a trace lying on the ring
RING_TRACE = make_circle(360, 30.0, center=(60.0, 60.0))
RING_CONFIG = CurveConfig(
    segment_size=30,
    segment_steps=30,
    envelope_scale=8.0,
    envelope_iterations=5,
    gaussian_sigma=0.0,
)


@pytest.fixture
def unit_circle() -> np.ndarray:
    return UNIT_CIRCLE.copy()


@pytest.fixture
def scenario_config() -> CurveConfig:
    return SCENARIO_CONFIG


@pytest.fixture
def ring_image() -> np.ndarray:
    return make_ring_image()


@pytest.fixture
def ring_trace() -> np.ndarray:
    return RING_TRACE.copy()


@pytest.fixture
def ring_config() -> CurveConfig:
    return RING_CONFIG


@pytest.fixture
def arc_segment() -> np.ndarray:
    """Quarter of a radius-10 circle, 50 points, off the origin."""
    theta = np.linspace(0.2, 0.2 + np.pi / 2, 50)
    return np.column_stack([25 + 10 * np.cos(theta), 40 + 10 * np.sin(theta)])
