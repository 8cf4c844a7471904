"""Forecast model fitters with a shared functional interface.

Every fitter has the signature:
- fit(y, config) -> ModelFit

and is selected through the FITTERS dispatch table keyed by method tag.
Fitters are pure functions of their inputs: no instance state survives a call.

Models:
- linear: OLS regression of value on ordinal index
- exponential: Holt double exponential smoothing with fixed alpha/beta
- seasonal: linear trend forecast of the decomposed trend plus seasonal basis
- autoregressive-simple: ARIMA(1,1,1)-like recursion whose coefficients are
  lag-1 autocorrelations (an approximation, not maximum likelihood)
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from app.core.exceptions import InsufficientDataError, InvalidConfigError
from app.features.forecasting.decomposition import decompose
from app.features.forecasting.intervals import symmetric_interval, t_value
from app.features.forecasting.metrics import autocorrelation, standard_deviation
from app.features.forecasting.schemas import FORECAST_METHODS, ForecastConfig

# Holt smoothing weights (fixed defaults, not fit from data)
SMOOTHING_ALPHA = 0.3
SMOOTHING_BETA = 0.1

MIN_POINTS_LINEAR = 2
MIN_POINTS_EXPONENTIAL = 2
MIN_POINTS_AUTOREGRESSIVE = 3

FloatArray = np.ndarray[Any, np.dtype[np.floating[Any]]]


@dataclass
class ModelFit:
    """Output of a fitter.

    Attributes:
        predictions: Point forecasts, length config.periods.
        lower: Lower interval bound per forecast step.
        upper: Upper interval bound per forecast step.
        fitted: In-sample fitted values, same length as the training series.
        parameters: Model-specific parameters for result metadata.
    """

    predictions: FloatArray
    lower: FloatArray
    upper: FloatArray
    fitted: FloatArray
    parameters: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class Regression:
    """Least-squares line ``value = slope * index + intercept``."""

    slope: float
    intercept: float

    def at(self, index: FloatArray | float) -> FloatArray | float:
        """Evaluate the line at ordinal position(s)."""
        return self.slope * index + self.intercept


def linear_regression(y: FloatArray) -> Regression:
    """Ordinary least squares of y on 0..n-1.

    A single point yields a flat line through that point.

    Args:
        y: Series with at least one value.

    Returns:
        Fitted Regression.
    """
    values = np.asarray(y, dtype=np.float64)
    n = len(values)
    x = np.arange(n, dtype=np.float64)
    denominator = n * float(np.dot(x, x)) - float(x.sum()) ** 2
    if denominator == 0:
        return Regression(slope=0.0, intercept=float(values.mean()) if n else 0.0)
    slope = (n * float(np.dot(x, values)) - float(x.sum()) * float(values.sum())) / denominator
    intercept = (float(values.sum()) - slope * float(x.sum())) / n
    return Regression(slope=slope, intercept=intercept)


def minimum_length(method: str, seasonal_periods: int = 12) -> int:
    """Smallest series length the method can fit.

    Raises:
        InvalidConfigError: If method is unknown.
    """
    if method not in FORECAST_METHODS:
        raise InvalidConfigError(
            message=f"Unknown forecast method: {method}", field="method", value=method
        )
    if method == "seasonal":
        return max(MIN_POINTS_LINEAR, 2 * seasonal_periods)
    if method == "autoregressive-simple":
        return MIN_POINTS_AUTOREGRESSIVE
    if method == "exponential":
        return MIN_POINTS_EXPONENTIAL
    return MIN_POINTS_LINEAR


def _require_length(y: FloatArray, config: ForecastConfig) -> None:
    required = minimum_length(config.method, config.seasonal_periods)
    if len(y) < required:
        raise InsufficientDataError(
            method=config.method, required_length=required, actual_length=len(y)
        )


# =============================================================================
# Fitters
# =============================================================================


def fit_linear(y: FloatArray, config: ForecastConfig) -> ModelFit:
    """Linear trend: extrapolate the OLS line.

    Formula: y_hat[n+i] = slope * (n + i) + intercept
    Half-width: t(confidence, n-2) * RMS residual

    Args:
        y: Cleaned series.
        config: Forecast configuration.

    Returns:
        ModelFit with slope, intercept, mse, std_error parameters.
    """
    _require_length(y, config)
    values = np.asarray(y, dtype=np.float64)
    n = len(values)
    regression = linear_regression(values)

    fitted = np.asarray(regression.at(np.arange(n, dtype=np.float64)))
    predictions = np.asarray(regression.at(np.arange(n, n + config.periods, dtype=np.float64)))

    mse = float(np.mean((values - fitted) ** 2))
    std_error = float(np.sqrt(mse))
    half_width = t_value(config.confidence_level, n - 2) * std_error
    lower, upper = symmetric_interval(predictions, half_width)

    return ModelFit(
        predictions=predictions,
        lower=lower,
        upper=upper,
        fitted=fitted,
        parameters={
            "slope": regression.slope,
            "intercept": regression.intercept,
            "mse": mse,
            "std_error": std_error,
        },
    )


def fit_exponential(y: FloatArray, config: ForecastConfig) -> ModelFit:
    """Holt double exponential smoothing.

    Recurrence:
        level_t = alpha * x_t + (1 - alpha) * (level_{t-1} + trend_{t-1})
        trend_t = beta * (level_t - level_{t-1}) + (1 - beta) * trend_{t-1}
    Initialization: level_0 = x_0, trend_0 = x_1 - x_0.
    Forecast: y_hat[n+i] = level_final + trend_final * (i + 1)
    Half-width: t(confidence, n-1) * mean |x_t - level_t| over t >= 1

    Args:
        y: Cleaned series.
        config: Forecast configuration.

    Returns:
        ModelFit whose fitted values are the smoothed levels.
    """
    _require_length(y, config)
    values = np.asarray(y, dtype=np.float64)
    n = len(values)

    level = float(values[0])
    trend = float(values[1] - values[0])
    smoothed = np.empty(n, dtype=np.float64)
    smoothed[0] = level
    for t in range(1, n):
        previous_level = level
        level = SMOOTHING_ALPHA * values[t] + (1 - SMOOTHING_ALPHA) * (level + trend)
        trend = SMOOTHING_BETA * (level - previous_level) + (1 - SMOOTHING_BETA) * trend
        smoothed[t] = level

    steps = np.arange(1, config.periods + 1, dtype=np.float64)
    predictions = level + trend * steps

    avg_error = float(np.mean(np.abs(values[1:] - smoothed[1:])))
    half_width = t_value(config.confidence_level, n - 1) * avg_error
    lower, upper = symmetric_interval(predictions, half_width)

    return ModelFit(
        predictions=predictions,
        lower=lower,
        upper=upper,
        fitted=smoothed,
        parameters={
            "alpha": SMOOTHING_ALPHA,
            "beta": SMOOTHING_BETA,
            "final_level": level,
            "final_trend": trend,
            "avg_error": avg_error,
        },
    )


def fit_seasonal(y: FloatArray, config: ForecastConfig) -> ModelFit:
    """Seasonal model: linear forecast of the trend plus the seasonal basis.

    Formula: y_hat[n+i] = trend_forecast[i] + seasonal[i % m]
    Half-width: t(confidence, n-1) * sqrt(sd(seasonal)^2 + sd(residual)^2)

    The seasonal and residual spreads are combined so seasonal uncertainty is
    not understated by the trend-only error.

    Args:
        y: Cleaned series with at least 2 * seasonal_periods points.
        config: Forecast configuration.

    Returns:
        ModelFit with decomposition strengths and variations as parameters.
    """
    _require_length(y, config)
    values = np.asarray(y, dtype=np.float64)
    n = len(values)
    m = config.seasonal_periods

    decomposition = decompose(values, m)
    trend_fit = fit_linear(decomposition.trend, config.model_copy(update={"method": "linear"}))

    predictions = trend_fit.predictions + np.resize(decomposition.seasonal, config.periods)
    fitted = trend_fit.fitted + decomposition.seasonal_cycle(n)

    seasonal_variation = standard_deviation(decomposition.seasonal)
    residual_variation = standard_deviation(decomposition.residual)
    total_variation = float(np.hypot(seasonal_variation, residual_variation))
    half_width = t_value(config.confidence_level, n - 1) * total_variation
    lower, upper = symmetric_interval(predictions, half_width)

    return ModelFit(
        predictions=predictions,
        lower=lower,
        upper=upper,
        fitted=fitted,
        parameters={
            "seasonal_periods": float(m),
            "trend_slope": trend_fit.parameters["slope"],
            "trend_intercept": trend_fit.parameters["intercept"],
            "seasonal_variation": seasonal_variation,
            "residual_variation": residual_variation,
        },
    )


def fit_autoregressive(y: FloatArray, config: ForecastConfig) -> ModelFit:
    """Simplified ARIMA(1,1,1) on first differences.

    Coefficients:
        ar1 = autocorrelation(diff, 1)
        residual_t = diff_{t+1} - ar1 * diff_t
        ma1 = autocorrelation(residual, 1)
    Recursion:
        diff_{t+1} = ar1 * diff_t + ma1 * residual_t
        value_{t+1} = value_t + diff_{t+1}
    The last observed residual feeds only the first step; later steps use 0.
    Half-width at step i (0-based): t(confidence, n-1) * mean|residual| * sqrt(i + 1)

    CRITICAL: This is the lag-1 autocorrelation approximation, not a maximum
    likelihood ARIMA fit; keep it so outputs stay comparable.

    Args:
        y: Cleaned series with at least 3 points.
        config: Forecast configuration.

    Returns:
        ModelFit whose fitted values are one-step-ahead reconstructions.
    """
    _require_length(y, config)
    values = np.asarray(y, dtype=np.float64)
    n = len(values)

    diff = np.diff(values)
    ar1 = autocorrelation(diff, 1)
    residuals = diff[1:] - ar1 * diff[:-1]
    ma1 = autocorrelation(residuals, 1)

    predictions = np.empty(config.periods, dtype=np.float64)
    last_value = float(values[-1])
    last_diff = float(diff[-1])
    last_residual = float(residuals[-1]) if len(residuals) else 0.0
    for i in range(config.periods):
        forecast_diff = ar1 * last_diff + ma1 * last_residual
        last_value += forecast_diff
        predictions[i] = last_value
        last_diff = forecast_diff
        last_residual = 0.0

    # One-step-ahead fit: x_hat[t] = x[t-1] + ar1*diff[t-2] + ma1*residual[t-3]
    fitted = values.copy()
    for t in range(1, n):
        prior_diff = diff[t - 2] if t >= 2 else 0.0
        prior_residual = residuals[t - 3] if t >= 3 else 0.0
        fitted[t] = values[t - 1] + ar1 * prior_diff + ma1 * prior_residual

    avg_error = float(np.mean(np.abs(residuals))) if len(residuals) else 0.0
    base_width = t_value(config.confidence_level, n - 1) * avg_error
    widths = base_width * np.sqrt(np.arange(1, config.periods + 1, dtype=np.float64))
    lower, upper = symmetric_interval(predictions, widths)

    return ModelFit(
        predictions=predictions,
        lower=lower,
        upper=upper,
        fitted=fitted,
        parameters={
            "ar1_coeff": ar1,
            "ma1_coeff": ma1,
            "avg_error": avg_error,
            "differencing": 1.0,
        },
    )


Fitter = Callable[[FloatArray, ForecastConfig], ModelFit]

FITTERS: dict[str, Fitter] = {
    "linear": fit_linear,
    "exponential": fit_exponential,
    "seasonal": fit_seasonal,
    "autoregressive-simple": fit_autoregressive,
}


def get_fitter(method: str) -> Fitter:
    """Look up the fitter for a method tag.

    Raises:
        InvalidConfigError: If the method is unknown.
    """
    try:
        return FITTERS[method]
    except KeyError:
        raise InvalidConfigError(
            message=f"Unknown forecast method: {method}", field="method", value=method
        ) from None
