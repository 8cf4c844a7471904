"""Outlier detection and neutralization for raw series.

Outliers are detected with Tukey's fences on the interquartile range and
replaced (never removed) by the midpoint of Q1 and Q3, so the cleaned series
keeps the input's length and index alignment.

CRITICAL: The input is never mutated; cleaning always returns a new array.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np

from app.core.logging import get_logger

logger = get_logger(__name__)

IQR_MULTIPLIER = 1.5


@dataclass(frozen=True)
class OutlierBounds:
    """Quartiles and Tukey fences of a series.

    Attributes:
        q1: 25th percentile.
        q3: 75th percentile.
        lower: Values strictly below this are outliers.
        upper: Values strictly above this are outliers.
    """

    q1: float
    q3: float
    lower: float
    upper: float

    @property
    def iqr(self) -> float:
        """Interquartile range."""
        return self.q3 - self.q1

    @property
    def replacement(self) -> float:
        """Value substituted for every outlier."""
        return self.q1 + (self.q3 - self.q1) * 0.5


@dataclass
class CleanedSeries:
    """Result of preprocessing a raw series.

    Attributes:
        values: Cleaned copy of the input, same length.
        outlier_indices: Positions whose values were replaced.
        bounds: Fences used for detection (None for an empty series).
    """

    values: np.ndarray[Any, np.dtype[np.floating[Any]]]
    outlier_indices: list[int] = field(default_factory=list)
    bounds: OutlierBounds | None = None


def percentile(values: np.ndarray[Any, np.dtype[np.floating[Any]]], p: float) -> float:
    """Percentile with linear interpolation between order statistics.

    Formula: idx = p/100 * (n-1); result interpolates sorted[floor(idx)]
    and sorted[ceil(idx)].

    Args:
        values: Input values (not modified).
        p: Percentile in [0, 100].

    Returns:
        Interpolated percentile.

    Raises:
        ValueError: If values is empty.
    """
    if len(values) == 0:
        raise ValueError("Cannot compute percentile of empty array")
    ordered = np.sort(np.asarray(values, dtype=np.float64))
    index = (p / 100.0) * (len(ordered) - 1)
    lower = int(np.floor(index))
    upper = int(np.ceil(index))
    if lower == upper:
        return float(ordered[lower])
    weight = index - lower
    return float(ordered[lower] * (1.0 - weight) + ordered[upper] * weight)


def outlier_bounds(values: np.ndarray[Any, np.dtype[np.floating[Any]]]) -> OutlierBounds:
    """Compute Q1, Q3 and the fences ``Q1 - 1.5*IQR`` / ``Q3 + 1.5*IQR``."""
    q1 = percentile(values, 25)
    q3 = percentile(values, 75)
    iqr = q3 - q1
    return OutlierBounds(
        q1=q1,
        q3=q3,
        lower=q1 - IQR_MULTIPLIER * iqr,
        upper=q3 + IQR_MULTIPLIER * iqr,
    )


def _outlier_mask(
    values: np.ndarray[Any, np.dtype[np.floating[Any]]], bounds: OutlierBounds
) -> np.ndarray[Any, np.dtype[np.bool_]]:
    # Zero IQR means no spread to judge against: nothing is an outlier
    if bounds.iqr == 0:
        return np.zeros(len(values), dtype=bool)
    return (values < bounds.lower) | (values > bounds.upper)


def outlier_indices(values: np.ndarray[Any, np.dtype[np.floating[Any]]]) -> list[int]:
    """Positions that cleaning replaces, over every fence-and-replace pass."""
    return preprocess(values).outlier_indices


def clean_series(
    values: np.ndarray[Any, np.dtype[np.floating[Any]]],
) -> np.ndarray[Any, np.dtype[np.floating[Any]]]:
    """Return a copy with outliers replaced by the Q1/Q3 midpoint."""
    return preprocess(values).values


def preprocess(values: np.ndarray[Any, np.dtype[np.floating[Any]]]) -> CleanedSeries:
    """Replace outliers until no value lies outside the fences.

    Each replacement narrows the IQR, so fences are recomputed and the
    fence-and-replace step repeats until a pass finds nothing. The result is
    a fixed point: cleaning it again changes nothing.

    Args:
        values: Raw series (not modified).

    Returns:
        CleanedSeries with the cleaned values, every replaced position and
        the fences of the final pass.
    """
    arr = np.array(values, dtype=np.float64, copy=True)
    if len(arr) == 0:
        return CleanedSeries(values=arr)

    replaced = np.zeros(len(arr), dtype=bool)
    bounds = outlier_bounds(arr)
    passes = 0
    # Every productive pass replaces at least one value
    while passes < len(arr):
        mask = _outlier_mask(arr, bounds)
        if not mask.any():
            break
        arr[mask] = bounds.replacement
        replaced |= mask
        passes += 1
        bounds = outlier_bounds(arr)

    indices = [int(i) for i in np.flatnonzero(replaced)]
    if indices:
        logger.debug(
            "forecasting.outliers_replaced",
            n_outliers=len(indices),
            passes=passes,
            lower_fence=bounds.lower,
            upper_fence=bounds.upper,
        )

    return CleanedSeries(values=arr, outlier_indices=indices, bounds=bounds)
