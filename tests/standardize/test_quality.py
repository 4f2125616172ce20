"""Tests for the Blois quality index."""

from dataclasses import replace

import numpy as np
import pytest

pytestmark = pytest.mark.unit

from epdkit.contracts import MissingUncertaintyError
from epdkit.standardize import blois_quality, interpolate_counts, intervals_counts
from epdkit.standardize.quality import quality_components
from tests.helpers.fake_records import make_record


def test_coincident_sample_with_zero_uncertainty_scores_one():
    rec = make_record(uncertainties=[0.0, 0.0, 0.0])
    out = blois_quality(interpolate_counts(rec, [1000]))

    assert out.quality[0] == 1.0


def test_quality_values_in_unit_interval(record):
    out = blois_quality(interpolate_counts(record, np.arange(0, 2001, 50)))

    finite = out.quality[np.isfinite(out.quality)]
    assert len(finite) > 0
    assert np.all((finite >= 0.0) & (finite <= 1.0))


def test_components_multiply(record):
    out = blois_quality(interpolate_counts(record, [500, 750]))

    np.testing.assert_allclose(out.quality[0], np.exp(-0.05))
    np.testing.assert_allclose(out.quality[1], np.exp(-0.05) * np.exp(-0.25))


def test_farther_targets_score_lower(record):
    out = blois_quality(interpolate_counts(record, [500, 600, 750]))
    assert out.quality[0] > out.quality[1] > out.quality[2]


def test_nan_counts_have_nan_quality(record):
    out = blois_quality(interpolate_counts(record, [2000, 1000]))

    assert np.isnan(out.quality[0])
    assert np.isfinite(out.quality[1])


def test_scales_change_scores(record):
    resampled = interpolate_counts(record, [750])
    loose = blois_quality(resampled, uncertainty_scale=1e6, distance_scale=1e6)
    strict = blois_quality(resampled, uncertainty_scale=10, distance_scale=10)

    assert loose.quality[0] > strict.quality[0]


def test_intervals_scored_at_midpoints(record):
    out = blois_quality(intervals_counts(record, [0], [1000]))
    np.testing.assert_allclose(out.quality[0], np.exp(-0.05))


def test_unresampled_record_scores_dating_only(record):
    out = blois_quality(record)
    np.testing.assert_allclose(out.quality, np.exp(-0.05))


def test_missing_uncertainty_raises():
    rec = make_record(entity_id=4, uncertainties=None)
    with pytest.raises(MissingUncertaintyError) as exc:
        blois_quality(interpolate_counts(rec, [750]))
    assert exc.value.entity_id == 4
    assert exc.value.chron_id == 1


def test_depth_axis_record_raises():
    with pytest.raises(MissingUncertaintyError):
        blois_quality(make_record(ages=None))


def test_non_positive_scale_raises(record):
    with pytest.raises(ValueError):
        blois_quality(record, uncertainty_scale=0)


def test_quality_survives_replace(record):
    out = blois_quality(interpolate_counts(record, [750]))
    again = replace(out, entity_id=9)
    np.testing.assert_array_equal(again.quality, out.quality)


def test_quality_components_outside_range():
    dating, distance = quality_components(
        np.array([-10.0, 5.0, 30.0]),
        np.array([0.0, 10.0, 20.0]),
        np.array([1.0, 3.0, 2.0]),
        1.0, 1.0,
    )
    assert np.isnan(dating[0]) and np.isnan(distance[0])
    assert np.isnan(dating[2])
    np.testing.assert_allclose(dating[1], np.exp(-3.0))
    np.testing.assert_allclose(distance[1], np.exp(-5.0))
