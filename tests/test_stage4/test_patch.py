"""Tests for image patch sampling along envelope curves."""

import numpy as np
import pytest

from hypocurve.engine.context import Curve
from hypocurve.engine.pipeline import create_pipeline
from hypocurve.errors import OutOfBounds
from hypocurve.utils.frame import normalize
from hypocurve.utils.patch import (
    as_gray_image,
    blur,
    clamp_coords,
    curve_bundle,
    map_patch,
    sample_curve,
)
from tests.conftest import make_ring_image


def _radial_ramp(shape=(120, 120), center=(60.0, 60.0)) -> np.ndarray:
    rows, cols = np.mgrid[0 : shape[0], 0 : shape[1]]
    return np.hypot(cols - center[0], rows - center[1]) / 100.0


def test_patch_shape_follows_config(ring_trace, ring_image, ring_config):
    curve = create_pipeline().run(Curve(trace=ring_trace, config=ring_config, image=ring_image))

    assert curve.image_patches.shape == (12, 30, 11)
    assert ring_config.patch_shape == (30, 11)
    assert curve.report().patch_shape == (30, 11)


def test_patch_shape_ignores_image_content(ring_trace, ring_config):
    blank = create_pipeline().run(Curve(trace=ring_trace, config=ring_config, image=np.zeros((120, 120))))
    assert blank.image_patches.shape == (12, 30, 11)
    np.testing.assert_array_equal(blank.image_patches, 0.0)


def test_bundle_runs_outer_far_to_inner_far():
    seg = np.zeros((4, 2))
    outer = np.arange(4)[:, None, None] * np.ones((4, 4, 2))
    inner = -np.arange(4)[:, None, None] * np.ones((4, 4, 2))

    bundle = curve_bundle(outer, seg, inner)

    assert bundle.shape == (7, 4, 2)
    np.testing.assert_array_equal(bundle[:, 0, 0], [3, 2, 1, 0, -1, -2, -3])


def test_bilinear_sampling_on_ramp():
    cols = np.tile(np.arange(10, dtype=float), (8, 1))
    values, moved = sample_curve(cols, np.array([[2.5, 1.0], [7.25, 6.5]]))
    np.testing.assert_allclose(values, [2.5, 7.25])
    assert moved == 0

    rows = cols.T.copy()
    values, _ = sample_curve(rows, np.array([[0.0, 3.25]]))
    np.testing.assert_allclose(values, [3.25])


def test_out_of_image_points_are_clamped():
    image = np.tile(np.arange(10, dtype=float), (10, 1))
    pts = np.array([[-5.0, 2.0], [3.0, 200.0], [4.0, 4.0]])

    clamped, moved = clamp_coords(pts, image.shape)
    np.testing.assert_array_equal(clamped, [[0.0, 2.0], [3.0, 9.0], [4.0, 4.0]])
    assert moved == 2

    values, moved = sample_curve(image, pts)
    np.testing.assert_allclose(values, [0.0, 3.0, 4.0])
    assert moved == 2


def test_unclamped_sampling_raises():
    with pytest.raises(OutOfBounds):
        sample_curve(np.zeros((10, 10)), np.array([[12.0, 1.0]]), clamp=False)


def test_constant_image_gives_constant_patch(arc_segment):
    p, pmat, mid = normalize(arc_segment)
    bundle = np.stack([p + np.array([0.0, dy]) for dy in (2.0, 1.0, 0.0, -1.0, -2.0)])

    patch = map_patch(bundle, np.full((80, 80), 0.4), pmat, mid, sigma=2.0)

    assert patch.shape == (50, 5)
    np.testing.assert_allclose(patch, 0.4)


def test_zero_sigma_skips_blur():
    profiles = np.random.default_rng(0).random((6, 3))
    np.testing.assert_array_equal(blur(profiles, 0.0), profiles)
    assert not np.allclose(blur(profiles, 1.0), profiles)


def test_ring_is_brightest_on_segment_column(ring_trace, ring_image, ring_config):
    curve = create_pipeline().run(Curve(trace=ring_trace, config=ring_config, image=ring_image))
    patches = curve.image_patches
    k = ring_config.envelope_iterations

    assert np.all(patches[:, :, k] > 0.9)
    assert np.all(patches[:, :, 0] < 0.05)
    assert np.all(patches[:, :, -1] < 0.05)


def test_columns_step_from_outer_to_inner(ring_trace, ring_config):
    curve = create_pipeline().run(Curve(trace=ring_trace, config=ring_config, image=_radial_ramp()))
    # Radial distance falls from the outer bound (column 0) to the inner bound (last column)
    assert np.all(np.diff(curve.image_patches, axis=2) < 0)
    np.testing.assert_allclose(curve.image_patches[:, :, 0], 0.38, atol=0.01)
    np.testing.assert_allclose(curve.image_patches[:, :, -1], 0.22, atol=0.01)


def test_envelope_past_border_is_clamped(ring_trace, ring_config):
    curve = create_pipeline().run(Curve(trace=ring_trace, config=ring_config, image=make_ring_image((80, 80))))

    assert curve.image_patches.shape == (12, 30, 11)
    assert curve.diagnostics.clamped_samples > 0
    assert curve.errors == {}


def test_missing_image_skips_patches(unit_circle, scenario_config):
    curve = create_pipeline().run(Curve(trace=unit_circle, config=scenario_config))

    assert "T4.01" not in curve.completed_transforms
    assert curve.image_patches is None
    with pytest.raises(RuntimeError):
        curve.vectorize_patches()


def test_vectorized_patches_are_row_per_segment(ring_trace, ring_image, ring_config):
    curve = create_pipeline().run(Curve(trace=ring_trace, config=ring_config, image=ring_image))
    design = curve.vectorize_patches()

    assert design.shape == (12, 30 * 11)
    np.testing.assert_array_equal(design[3], curve.image_patches[3].ravel())


def test_rgb_and_integer_images_become_float_gray():
    rgb = np.zeros((20, 30, 3), dtype=np.uint8)
    rgb[..., :] = 255
    gray = as_gray_image(rgb)
    assert gray.shape == (20, 30)
    assert gray.dtype == np.float64
    np.testing.assert_allclose(gray, 1.0, atol=1e-6)

    u8 = np.full((5, 5), 255, dtype=np.uint8)
    np.testing.assert_allclose(as_gray_image(u8), 1.0)


@pytest.mark.parametrize("shape", [(5, 5, 2), (4,), (0, 0)])
def test_bad_images_rejected(shape):
    with pytest.raises(ValueError):
        as_gray_image(np.zeros(shape))


def test_new_image_only_drops_patches(ring_trace, ring_image, ring_config):
    pipeline = create_pipeline()
    curve = pipeline.run(Curve(trace=ring_trace, config=ring_config, image=ring_image))
    envelope = curve.envelope("main")

    curve.set_image(np.zeros((120, 120)))

    assert curve.image_patches is None
    assert curve.envelope("main") is envelope
    assert "T4.01" not in curve.completed_transforms
    assert "T3.02" in curve.completed_transforms
