"""Confidence interval multipliers from a small Student-t table.

The table approximates the t distribution at degrees of freedom
{1, 2, 5, 10, 20} and significance levels {0.10, 0.05, 0.01}; 30 or more
degrees of freedom use normal quantiles. Values are fixed so that outputs
stay numerically comparable across releases.
"""

from __future__ import annotations

from typing import Any

import numpy as np

FloatArray = np.ndarray[Any, np.dtype[np.floating[Any]]]

NORMAL_APPROXIMATION_DF = 30
DEFAULT_MULTIPLIER = 1.96

# Two-sided normal quantiles keyed by significance level
NORMAL_QUANTILES: dict[float, float] = {0.01: 2.576, 0.05: 1.96, 0.10: 1.645}

T_TABLE: dict[int, dict[float, float]] = {
    1: {0.10: 6.314, 0.05: 12.706, 0.01: 63.657},
    2: {0.10: 2.920, 0.05: 4.303, 0.01: 9.925},
    5: {0.10: 2.015, 0.05: 2.571, 0.01: 4.032},
    10: {0.10: 1.812, 0.05: 2.228, 0.01: 3.169},
    20: {0.10: 1.725, 0.05: 2.086, 0.01: 2.845},
}

# Absorbs float noise such as 1 - 0.95 == 0.050000000000000044
_ALPHA_TOLERANCE = 1e-9


def _significance_key(alpha: float) -> float | None:
    for level in (0.01, 0.05, 0.10):
        if alpha <= level + _ALPHA_TOLERANCE:
            return level
    return None


def _nearest_tabulated_df(degrees_of_freedom: float) -> int:
    df = min(20, max(1, int(np.floor(degrees_of_freedom))))
    # Ties resolve toward the smaller tabulated value
    return min(T_TABLE, key=lambda tabulated: (abs(tabulated - df), tabulated))


def t_value(confidence_level: float, degrees_of_freedom: float) -> float:
    """Interval multiplier for a confidence level and sample size.

    Significance ``alpha = 1 - confidence_level`` is mapped to the tightest
    tabulated level it does not exceed (0.01, 0.05 or 0.10). Levels looser
    than 90% fall back to 1.96.

    Args:
        confidence_level: Coverage in (0, 1).
        degrees_of_freedom: Residual degrees of freedom; values outside
            [1, 20] are clamped before the nearest table row is chosen.

    Returns:
        Multiplier >= 1.
    """
    alpha = 1.0 - confidence_level
    key = _significance_key(alpha)
    if key is None:
        return DEFAULT_MULTIPLIER

    if degrees_of_freedom >= NORMAL_APPROXIMATION_DF:
        return NORMAL_QUANTILES[key]

    return T_TABLE[_nearest_tabulated_df(degrees_of_freedom)][key]


def symmetric_interval(
    predictions: FloatArray,
    half_width: float | FloatArray,
) -> tuple[FloatArray, FloatArray]:
    """Lower and upper bounds ``predictions -/+ half_width``.

    Args:
        predictions: Point forecasts.
        half_width: Scalar or per-step non-negative half-width.

    Returns:
        Tuple of (lower, upper).
    """
    preds = np.asarray(predictions, dtype=np.float64)
    width = np.abs(np.broadcast_to(np.asarray(half_width, dtype=np.float64), preds.shape))
    return preds - width, preds + width
