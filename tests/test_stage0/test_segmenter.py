"""Tests for the segmenter — windowing a trace into fixed-length segments."""

import numpy as np
import pytest

import hypocurve.engine.stage0.t0_01_segment_trace as t0_01
from hypocurve.engine.config import CurveConfig
from hypocurve.engine.context import Curve
from hypocurve.errors import InvalidConfiguration
from hypocurve.utils.segments import end_points, segment_count, segment_trace, split_segments
from tests.conftest import make_circle


@pytest.mark.parametrize(
    "trace_len, length, step",
    [(360, 30, 30), (360, 300, 30), (100, 100, 7), (101, 10, 3), (50, 2, 1)],
)
def test_segment_count_formula(trace_len, length, step):
    trace = make_circle(trace_len)
    segments = segment_trace(trace, length, step)
    assert len(segments) == (trace_len - length) // step + 1
    assert segment_count(trace_len, length, step) == len(segments)


def test_segment_longer_than_trace_fails():
    with pytest.raises(InvalidConfiguration):
        segment_trace(make_circle(20), 21, 1)


def test_non_positive_step_fails():
    with pytest.raises(InvalidConfiguration):
        split_segments(make_circle(20), 5, 0)


def test_windows_follow_trace_without_wraparound():
    trace = make_circle(100)
    bank = split_segments(trace, 25, 10)

    assert bank.shape == (8, 25, 2)
    for i, seg in enumerate(bank):
        np.testing.assert_array_equal(seg, trace[i * 10 : i * 10 + 25])
    # Last window stops before the end of the trace
    assert 7 * 10 + 25 <= len(trace)


def test_segment_records_end_points_and_midpoint():
    trace = make_circle(40, radius=5.0)
    segments = segment_trace(trace, 11, 5)

    seg = segments[2]
    assert seg.index == 2
    assert len(seg) == 11
    np.testing.assert_array_equal(seg.end_points, np.vstack([trace[10], trace[20]]))
    np.testing.assert_allclose(seg.midpoint, (trace[10] + trace[20]) / 2)


def test_segment_coords_are_read_only():
    segments = segment_trace(make_circle(40), 10, 10)
    with pytest.raises(ValueError):
        segments[0].coords[0, 0] = 99.0


def test_end_points_stack():
    bank = split_segments(make_circle(60), 20, 20)
    ends = end_points(bank)
    assert ends.shape == (3, 2, 2)
    np.testing.assert_array_equal(ends[:, 0], bank[:, 0])
    np.testing.assert_array_equal(ends[:, 1], bank[:, -1])


def test_segment_transform_fills_curve(unit_circle, scenario_config):
    curve = Curve(trace=unit_circle, config=scenario_config)
    t0_01.segment_trace(curve)

    assert curve.number_of_segments == 12
    assert curve.raw_segments.shape == (12, 30, 2)
    np.testing.assert_array_equal(curve.end_point(3, "start"), unit_circle[90])
    np.testing.assert_array_equal(curve.end_point(3, "end"), unit_circle[119])


def test_segment_transform_rejects_short_trace():
    curve = Curve(trace=make_circle(100), config=CurveConfig())
    with pytest.raises(InvalidConfiguration):
        t0_01.segment_trace(curve)
