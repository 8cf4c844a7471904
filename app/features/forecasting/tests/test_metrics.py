"""Tests for fit and correlation metrics."""

import numpy as np
import pytest

from app.features.forecasting.metrics import (
    autocorrelation,
    mean_absolute_error,
    mean_absolute_percentage_error,
    r2_score,
    seasonality_strength,
    standard_deviation,
    variance_explained,
)


class TestR2:
    """Tests for R2 / variance explained."""

    def test_perfect_fit(self, linear_series):
        """Test identical fitted values give R2 = 1."""
        assert r2_score(linear_series, linear_series) == pytest.approx(1.0)

    def test_mean_prediction_scores_zero(self):
        """Test predicting the mean gives R2 = 0."""
        actuals = np.array([1.0, 2.0, 3.0, 4.0])
        predictions = np.full(4, 2.5)

        assert r2_score(actuals, predictions) == pytest.approx(0.0)

    def test_worse_than_mean_is_negative(self):
        """Test a fit worse than the mean gives negative R2."""
        actuals = np.array([1.0, 2.0, 3.0, 4.0])
        predictions = np.array([4.0, 3.0, 2.0, 1.0])

        assert r2_score(actuals, predictions) < 0

    def test_flat_actuals_score_zero(self, constant_series):
        """Test zero-variance actuals give 0 instead of NaN."""
        assert r2_score(constant_series, constant_series + 1.0) == 0.0

    def test_uses_overlapping_length(self):
        """Test R2 compares only the common prefix of both sequences."""
        actuals = np.array([1.0, 2.0, 3.0, 4.0])
        predictions = np.array([1.0, 2.0, 3.0])

        # actuals truncated to [1, 2, 3], perfect fit
        assert r2_score(actuals, predictions) == pytest.approx(1.0)

    def test_variance_explained_rejects_length_mismatch(self):
        """Test the strict variant refuses misaligned inputs."""
        with pytest.raises(ValueError, match="Length mismatch"):
            variance_explained(np.array([1.0, 2.0]), np.array([1.0]))

    def test_variance_explained_empty(self):
        """Test empty input yields 0."""
        assert variance_explained(np.array([]), np.array([])) == 0.0


class TestMAE:
    """Tests for Mean Absolute Error."""

    def test_known_value(self):
        """Test MAE against a hand-computed value."""
        actuals = np.array([10.0, 20.0, 30.0])
        predictions = np.array([12.0, 18.0, 33.0])

        # (2 + 2 + 3) / 3
        assert mean_absolute_error(actuals, predictions) == pytest.approx(7 / 3)

    def test_perfect_fit_is_zero(self, linear_series):
        """Test MAE of a perfect fit is 0."""
        assert mean_absolute_error(linear_series, linear_series) == 0.0

    def test_empty_is_zero(self):
        """Test MAE of empty input is 0."""
        assert mean_absolute_error(np.array([]), np.array([])) == 0.0


class TestMAPE:
    """Tests for Mean Absolute Percentage Error."""

    def test_known_value(self):
        """Test MAPE as a percentage."""
        actuals = np.array([100.0, 200.0])
        predictions = np.array([110.0, 180.0])

        assert mean_absolute_percentage_error(actuals, predictions) == pytest.approx(10.0)

    def test_near_zero_actuals_are_skipped(self):
        """Test near-zero actuals are left out of both sum and count."""
        actuals = np.array([0.0, 100.0, 200.0, 1e-6])
        predictions = np.array([5.0, 110.0, 180.0, 3.0])

        assert mean_absolute_percentage_error(actuals, predictions) == pytest.approx(10.0)

    def test_all_zero_actuals_give_zero(self):
        """Test a series of zeros yields 0 rather than dividing by zero."""
        actuals = np.zeros(5)
        predictions = np.ones(5)

        assert mean_absolute_percentage_error(actuals, predictions) == 0.0

    def test_negative_actuals_use_magnitude(self):
        """Test percentage error divides by |actual|."""
        actuals = np.array([-50.0])
        predictions = np.array([-55.0])

        assert mean_absolute_percentage_error(actuals, predictions) == pytest.approx(10.0)


class TestAutocorrelation:
    """Tests for sample autocorrelation."""

    def test_known_value(self):
        """Test lag-1 autocorrelation of 1, 2, 3, 4."""
        # centered [-1.5, -0.5, 0.5, 1.5]: numerator 1.25, denominator 5
        assert autocorrelation(np.array([1.0, 2.0, 3.0, 4.0]), 1) == pytest.approx(0.25)

    def test_lag_zero_is_one(self, noisy_series):
        """Test autocorrelation at lag 0 is 1."""
        assert autocorrelation(noisy_series, 0) == pytest.approx(1.0)

    def test_alternating_series_is_negative(self):
        """Test an alternating series is negatively correlated at lag 1."""
        values = np.tile(np.array([1.0, -1.0]), 10)

        assert autocorrelation(values, 1) == pytest.approx(-0.95)

    def test_flat_series_is_zero(self, constant_series):
        """Test zero variance yields 0."""
        assert autocorrelation(constant_series, 1) == 0.0

    def test_lag_beyond_length_is_zero(self):
        """Test a lag past the series end yields 0."""
        assert autocorrelation(np.array([1.0, 2.0]), 5) == 0.0
        assert autocorrelation(np.array([]), 1) == 0.0


class TestSeasonalityStrength:
    """Tests for autocorrelation-based seasonality strength."""

    def test_periodic_series_is_strong(self):
        """Test a clean periodic signal scores close to 1."""
        values = np.tile(np.array([0.0, 5.0, 0.0, -5.0]), 6)

        strength = seasonality_strength(values, 4)

        assert 0.8 < strength <= 1.0

    def test_short_series_is_zero(self, noisy_series):
        """Test fewer than two cycles yields 0."""
        assert seasonality_strength(noisy_series, 12) == 0.0

    def test_flat_series_is_zero(self, constant_series):
        """Test a flat series has no seasonality."""
        assert seasonality_strength(constant_series, 4) == 0.0

    def test_bounded_by_one(self, monthly_series):
        """Test the strength never exceeds 1."""
        assert 0.0 <= seasonality_strength(monthly_series, 12) <= 1.0


class TestStandardDeviation:
    """Tests for population standard deviation."""

    def test_population_formula(self):
        """Test the divisor is n, not n - 1."""
        assert standard_deviation(np.array([2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0])) == 2.0

    def test_empty_is_zero(self):
        """Test an empty series yields 0."""
        assert standard_deviation(np.array([])) == 0.0
