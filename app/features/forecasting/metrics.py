"""Goodness-of-fit and correlation metrics.

Supported Metrics:
- R2: variance explained by fitted values
- MAE: Mean Absolute Error
- MAPE: Mean Absolute Percentage Error (near-zero actuals skipped)
- Autocorrelation at lag k
- Seasonality strength: max |autocorrelation| over the first cycle of lags

CRITICAL: Degenerate inputs (zero variance, no usable terms) return 0 rather
than NaN, because a flat series is a legitimate input.
"""

from __future__ import annotations

from typing import Any

import numpy as np

FloatArray = np.ndarray[Any, np.dtype[np.floating[Any]]]

# Actuals with |value| below this are left out of MAPE
MAPE_EPSILON = 1e-4


def _overlap(
    actuals: FloatArray,
    predictions: FloatArray,
) -> tuple[FloatArray, FloatArray]:
    n = min(len(actuals), len(predictions))
    return (
        np.asarray(actuals, dtype=np.float64)[:n],
        np.asarray(predictions, dtype=np.float64)[:n],
    )


def variance_explained(
    actuals: FloatArray,
    predictions: FloatArray,
) -> float:
    """Fraction of the variance of actuals explained by predictions.

    Formula: 1 - sum((a - p)^2) / sum((a - mean(a))^2)

    Args:
        actuals: Observed values.
        predictions: Fitted values of the same length.

    Returns:
        Variance explained (<= 1; negative for fits worse than the mean);
        0 when actuals have zero variance or are empty.
    """
    a = np.asarray(actuals, dtype=np.float64)
    p = np.asarray(predictions, dtype=np.float64)
    if len(a) == 0:
        return 0.0
    if len(a) != len(p):
        raise ValueError(f"Length mismatch: actuals={len(a)}, predictions={len(p)}")
    total = float(np.sum((a - a.mean()) ** 2))
    if total == 0:
        return 0.0
    residual = float(np.sum((a - p) ** 2))
    return 1.0 - residual / total


def r2_score(
    actuals: FloatArray,
    predictions: FloatArray,
) -> float:
    """R2 of fitted values over the overlapping length of both sequences."""
    a, p = _overlap(actuals, predictions)
    return variance_explained(a, p)


def mean_absolute_error(
    actuals: FloatArray,
    predictions: FloatArray,
) -> float:
    """Mean of |actual - predicted| over the overlapping length; 0 if empty."""
    a, p = _overlap(actuals, predictions)
    if len(a) == 0:
        return 0.0
    return float(np.mean(np.abs(a - p)))


def mean_absolute_percentage_error(
    actuals: FloatArray,
    predictions: FloatArray,
) -> float:
    """Mean Absolute Percentage Error on a 0-100+ scale.

    Formula: 100 * mean(|a - p| / |a|) over terms with |a| >= MAPE_EPSILON.

    Terms whose actual is near zero are skipped entirely, so the mean is
    taken over fewer points than the series holds. A series whose actuals
    are all near zero yields 0.

    Args:
        actuals: Observed values.
        predictions: Fitted values.

    Returns:
        MAPE as a percentage.
    """
    a, p = _overlap(actuals, predictions)
    usable = np.abs(a) >= MAPE_EPSILON
    if not usable.any():
        return 0.0
    return float(np.mean(np.abs((a[usable] - p[usable]) / a[usable])) * 100.0)


def autocorrelation(values: FloatArray, lag: int) -> float:
    """Sample autocorrelation at the given lag.

    Formula: sum_{t<n-k}(x_t - m)(x_{t+k} - m) / sum_t(x_t - m)^2

    Args:
        values: Input series.
        lag: Lag k >= 0.

    Returns:
        Autocorrelation in [-1, 1]; 0 for a zero-variance or empty series.
    """
    x = np.asarray(values, dtype=np.float64)
    n = len(x)
    if n == 0 or lag >= n:
        return 0.0
    centered = x - x.mean()
    denominator = float(np.sum(centered**2))
    if denominator == 0:
        return 0.0
    numerator = float(np.sum(centered[: n - lag] * centered[lag:]))
    return numerator / denominator


def standard_deviation(values: FloatArray) -> float:
    """Population standard deviation; 0 for an empty series."""
    x = np.asarray(values, dtype=np.float64)
    if len(x) == 0:
        return 0.0
    return float(np.std(x))


def seasonality_strength(
    values: FloatArray,
    seasonal_periods: int,
) -> float:
    """Maximum |autocorrelation| over lags 1..min(m, n // 2).

    Series shorter than two full cycles carry no usable seasonal signal and
    score 0.
    """
    x = np.asarray(values, dtype=np.float64)
    if len(x) < 2 * seasonal_periods:
        return 0.0
    max_lag = min(seasonal_periods, len(x) // 2)
    strongest = max((abs(autocorrelation(x, lag)) for lag in range(1, max_lag + 1)), default=0.0)
    return min(1.0, strongest)
