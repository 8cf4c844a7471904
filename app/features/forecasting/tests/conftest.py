"""Test fixtures for the forecasting engine."""

import numpy as np
import pytest

from app.features.forecasting.schemas import ForecastConfig
from app.features.forecasting.service import ForecastingService


@pytest.fixture
def linear_series() -> np.ndarray:
    """Perfectly linear increasing series 1, 2, ..., 20."""
    return np.arange(1, 21, dtype=np.float64)


@pytest.fixture
def constant_series() -> np.ndarray:
    """Twenty repetitions of 5."""
    return np.full(20, 5.0, dtype=np.float64)


@pytest.fixture
def seasonal_series() -> np.ndarray:
    """Four cycles of a length-4 pattern on a gentle upward trend.

    Pattern [0, 6, 0, -6] plus 10 + 0.5 * t for t in 0..15.
    """
    pattern = np.tile(np.array([0.0, 6.0, 0.0, -6.0]), 4)
    return 10.0 + 0.5 * np.arange(16, dtype=np.float64) + pattern


@pytest.fixture
def noisy_series() -> np.ndarray:
    """Deterministic series of values near 10."""
    return np.array(
        [10.0, 10.4, 9.8, 10.2, 10.1, 9.9, 10.3, 10.0, 9.7, 10.2, 10.1, 9.9],
        dtype=np.float64,
    )


@pytest.fixture
def monthly_series() -> np.ndarray:
    """Three years of monthly values with yearly seasonality and growth."""
    months = np.arange(36, dtype=np.float64)
    return 100.0 + 2.0 * months + 15.0 * np.sin(2 * np.pi * months / 12)


@pytest.fixture
def service() -> ForecastingService:
    """Forecasting service with default settings."""
    return ForecastingService()


@pytest.fixture
def make_config():
    """Factory for forecast configs with test defaults."""

    def _make(**overrides) -> ForecastConfig:
        values = {
            "periods": 5,
            "seasonal_periods": 4,
            "confidence_level": 0.95,
            "method": "linear",
        }
        values.update(overrides)
        return ForecastConfig(**values)

    return _make
