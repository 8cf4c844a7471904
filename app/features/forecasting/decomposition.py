"""Additive decomposition into trend, seasonal and residual components.

- Trend: centered moving average with window ``min(n // 4, 12)`` (at least 1),
  clipped at the series edges (partial windows average only available points).
- Seasonal: mean of the detrended values per position in the cycle, centered
  so the basis has mean 0.
- Residual: ``series[i] - trend[i] - seasonal[i % m]``.

Strength of each component is the variance it explains (0 for a flat target).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np

from app.features.forecasting.metrics import variance_explained

MAX_TREND_WINDOW = 12


@dataclass
class Decomposition:
    """Trend/seasonal/residual split of a series.

    Attributes:
        trend: Smoothed level, same length as the series.
        seasonal: Repeating basis of length seasonal_periods, mean 0.
        residual: Remainder, same length as the series.
        trend_strength: Variance of the series explained by the trend.
        seasonal_strength: Variance of the detrended series explained by
            the cyclic seasonal basis.
        seasonal_periods: Cycle length used.
    """

    trend: np.ndarray[Any, np.dtype[np.floating[Any]]]
    seasonal: np.ndarray[Any, np.dtype[np.floating[Any]]]
    residual: np.ndarray[Any, np.dtype[np.floating[Any]]]
    trend_strength: float
    seasonal_strength: float
    seasonal_periods: int

    def seasonal_at(self, index: int) -> float:
        """Seasonal basis value for an ordinal position (cyclic)."""
        return float(self.seasonal[index % self.seasonal_periods])

    def seasonal_cycle(self, n: int) -> np.ndarray[Any, np.dtype[np.floating[Any]]]:
        """Seasonal basis tiled to length n."""
        return np.resize(self.seasonal, n)


def trend_window(n: int) -> int:
    """Moving-average window for a series of length n."""
    return max(1, min(n // 4, MAX_TREND_WINDOW))


def moving_average_trend(
    values: np.ndarray[Any, np.dtype[np.floating[Any]]],
) -> np.ndarray[Any, np.dtype[np.floating[Any]]]:
    """Centered moving average clipped at the series boundaries.

    The window for point i starts at ``max(0, i - window // 2)`` and ends
    ``window`` points later or at the series end, whichever comes first.

    Args:
        values: Input series.

    Returns:
        Trend array of the same length.
    """
    arr = np.asarray(values, dtype=np.float64)
    n = len(arr)
    window = trend_window(n)
    half = window // 2
    # Prefix sums make each window mean O(1)
    cumsum = np.concatenate(([0.0], np.cumsum(arr)))
    starts = np.maximum(0, np.arange(n) - half)
    ends = np.minimum(n, starts + window)
    return (cumsum[ends] - cumsum[starts]) / (ends - starts)


def seasonal_basis(
    detrended: np.ndarray[Any, np.dtype[np.floating[Any]]],
    seasonal_periods: int,
) -> np.ndarray[Any, np.dtype[np.floating[Any]]]:
    """Average detrended values per cycle position and center the result.

    Positions that never occur (series shorter than one cycle) contribute 0
    before centering.

    Args:
        detrended: Series minus its trend.
        seasonal_periods: Cycle length m.

    Returns:
        Basis of length m whose mean is 0.
    """
    arr = np.asarray(detrended, dtype=np.float64)
    positions = np.arange(len(arr)) % seasonal_periods
    sums = np.bincount(positions, weights=arr, minlength=seasonal_periods)
    counts = np.bincount(positions, minlength=seasonal_periods)
    basis = np.divide(sums, counts, out=np.zeros(seasonal_periods), where=counts > 0)
    return basis - basis.mean()


def decompose(
    values: np.ndarray[Any, np.dtype[np.floating[Any]]],
    seasonal_periods: int = 12,
) -> Decomposition:
    """Split a series into trend, seasonal and residual components.

    Args:
        values: Cleaned series (not modified).
        seasonal_periods: Cycle length m (>= 1).

    Returns:
        Decomposition satisfying
        ``values[i] == trend[i] + seasonal[i % m] + residual[i]``.

    Raises:
        ValueError: If the series is empty or seasonal_periods < 1.
    """
    arr = np.asarray(values, dtype=np.float64)
    if len(arr) == 0:
        raise ValueError("Cannot decompose empty array")
    if seasonal_periods < 1:
        raise ValueError("seasonal_periods must be >= 1")

    trend = moving_average_trend(arr)
    detrended = arr - trend
    seasonal = seasonal_basis(detrended, seasonal_periods)
    cycle = np.resize(seasonal, len(arr))
    residual = arr - trend - cycle

    return Decomposition(
        trend=trend,
        seasonal=seasonal,
        residual=residual,
        trend_strength=variance_explained(arr, trend),
        seasonal_strength=variance_explained(detrended, cycle),
        seasonal_periods=seasonal_periods,
    )
