"""
Tests for sov.stats module.

Tests median absolute deviation and outlier capping.
"""

import pytest

from sov_watcher.sov.stats import (
    cap_outliers,
    median_absolute_deviation,
    outlier_threshold,
)


class TestMedianAbsoluteDeviation:
    """Tests for median_absolute_deviation()."""

    def test_known_value(self):
        # median 2, deviations [1, 0, 0, 2, 4] -> median 1
        assert median_absolute_deviation([1, 2, 2, 4, 6]) == 1

    def test_constant_values(self):
        assert median_absolute_deviation([3.0, 3.0, 3.0]) == 0.0

    def test_empty(self):
        assert median_absolute_deviation([]) == 0.0


class TestOutlierThreshold:
    """Tests for outlier_threshold()."""

    def test_threshold(self):
        assert outlier_threshold([1, 2, 2, 4, 6]) == pytest.approx(2 + 3 * 1)

    def test_custom_multiplier(self):
        assert outlier_threshold([1, 2, 2, 4, 6], multiplier=1.0) == pytest.approx(3)

    def test_empty_raises(self):
        with pytest.raises(ValueError):
            outlier_threshold([])


class TestCapOutliers:
    """Tests for cap_outliers()."""

    def test_zero_mad_clamps_to_median(self):
        """Test that a lone outlier over a constant set is clamped to the median."""
        assert cap_outliers([1.0, 1.0, 1.0, 1.0, 100.0]) == [1.0, 1.0, 1.0, 1.0, 1.0]

    def test_values_below_threshold_unchanged(self):
        values = [1.0, 2.0, 2.0, 4.0, 5.0]
        assert cap_outliers(values) == values

    def test_preserves_order_and_length(self):
        values = [50.0, 1.0, 2.0, 1.5, 1.0]
        capped = cap_outliers(values)
        assert len(capped) == len(values)
        assert capped[1:] == values[1:]
        assert capped[0] < 50.0

    def test_threshold_computed_once(self):
        """Test that every value is compared against the same threshold."""
        values = [1.0, 1.0, 1.0, 10.0, 20.0]
        threshold = outlier_threshold(values)
        assert cap_outliers(values) == [min(v, threshold) for v in values]

    def test_never_increases_a_value(self):
        values = [0.3, 7.1, 2.2, 2.4, 0.0, 15.0]
        for before, after in zip(values, cap_outliers(values), strict=True):
            assert after <= before

    def test_empty(self):
        assert cap_outliers([]) == []
