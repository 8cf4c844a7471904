"""Forecasting service: the public entry point of the engine.

Orchestrates, per call:
- Config and series validation (before any O(n log n) work)
- Outlier replacement via the preprocessor
- Dispatch to the selected fitter
- Trend direction, seasonality strength, R2/MAE/MAPE on in-sample fits
- A decomposition pass for trend/seasonal strength metadata

CRITICAL: Calls are stateless and never mutate the caller's series, so
independent forecasts may run concurrently without coordination.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from typing import Any

import numpy as np
import structlog

from app.core.config import get_settings
from app.core.exceptions import InsufficientDataError, InvalidConfigError, InvalidSeriesError
from app.features.forecasting.decomposition import decompose
from app.features.forecasting.metrics import (
    mean_absolute_error,
    mean_absolute_percentage_error,
    r2_score,
    seasonality_strength,
)
from app.features.forecasting.models import get_fitter, linear_regression, minimum_length
from app.features.forecasting.preprocessing import preprocess
from app.features.forecasting.schemas import (
    FORECAST_METHODS,
    AutoForecastResponse,
    ConfidenceBand,
    DecompositionResponse,
    DecompositionStrength,
    ForecastConfig,
    ForecastMetadata,
    ForecastResult,
    MethodScore,
    TrendDirection,
)

logger = structlog.get_logger()

# Share of the end-to-end change per point below which the slope counts as flat
TREND_THRESHOLD_RATIO = 0.05

# Squares and sums of squares of values up to this size stay finite for any
# allowed series length
MAX_ABS_VALUE = 1e150

FloatArray = np.ndarray[Any, np.dtype[np.floating[Any]]]


def determine_trend(values: FloatArray) -> TrendDirection:
    """Classify the OLS slope against a data-scaled threshold.

    Formula: threshold = |x[n-1] - x[0]| * 0.05 / n

    Args:
        values: Cleaned series.

    Returns:
        "increasing", "decreasing" or "stable".
    """
    arr = np.asarray(values, dtype=np.float64)
    n = len(arr)
    if n < 2:
        return "stable"
    slope = linear_regression(arr).slope
    threshold = abs(float(arr[-1] - arr[0])) * TREND_THRESHOLD_RATIO / n
    if slope > threshold:
        return "increasing"
    if slope < -threshold:
        return "decreasing"
    return "stable"


def heuristic_seasonal_periods(n: int) -> int:
    """Cycle length guess for series of unknown periodicity: min(12, n // 4)."""
    return max(1, min(12, n // 4))


class ForecastingService:
    """Service for decomposing and forecasting numeric series.

    Provides:
    - forecast(): one method, full ForecastResult
    - decompose(): trend/seasonal/residual split of the cleaned series
    - auto_forecast(): best method by R2 among candidates

    CRITICAL: Holds only read-only settings; safe to share across threads.
    """

    def __init__(self) -> None:
        """Initialize the forecasting service."""
        self.settings = get_settings()

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def _as_series(self, series: Sequence[float] | FloatArray) -> FloatArray:
        arr = np.array(series, dtype=np.float64, copy=True)
        if arr.ndim != 1:
            raise InvalidSeriesError("Series must be one-dimensional", details={"ndim": arr.ndim})
        if len(arr) > self.settings.forecast_max_series_length:
            raise InvalidSeriesError(
                f"Series exceeds {self.settings.forecast_max_series_length} points",
                details={
                    "length": len(arr),
                    "max_length": self.settings.forecast_max_series_length,
                },
            )
        non_finite = np.flatnonzero(~np.isfinite(arr))
        if len(non_finite):
            raise InvalidSeriesError(
                details={"non_finite_indices": [int(i) for i in non_finite[:20]]}
            )
        too_large = np.flatnonzero(np.abs(arr) > MAX_ABS_VALUE)
        if len(too_large):
            raise InvalidSeriesError(
                f"Series values must not exceed {MAX_ABS_VALUE:g} in magnitude",
                details={"too_large_indices": [int(i) for i in too_large[:20]]},
            )
        return arr

    def _validate_config(self, config: ForecastConfig) -> None:
        # Re-check config built with model_construct() or mutated copies
        if config.method not in FORECAST_METHODS:
            raise InvalidConfigError(
                message=f"Unknown forecast method: {config.method}",
                field="method",
                value=config.method,
            )
        if config.periods < 1:
            raise InvalidConfigError(
                message="periods must be >= 1", field="periods", value=config.periods
            )
        if config.periods > self.settings.forecast_max_periods:
            raise InvalidConfigError(
                message=f"periods must be <= {self.settings.forecast_max_periods}",
                field="periods",
                value=config.periods,
            )
        if not 0.0 < config.confidence_level < 1.0:
            raise InvalidConfigError(
                message="confidence_level must be strictly between 0 and 1",
                field="confidence_level",
                value=config.confidence_level,
            )
        if config.seasonal_periods < 1:
            raise InvalidConfigError(
                message="seasonal_periods must be >= 1",
                field="seasonal_periods",
                value=config.seasonal_periods,
            )

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def forecast(
        self, series: Sequence[float] | FloatArray, config: ForecastConfig
    ) -> ForecastResult:
        """Forecast future values of a series with the configured method.

        Args:
            series: Equally spaced finite values (not modified).
            config: Forecast configuration.

        Returns:
            ForecastResult with predictions, intervals and fit metrics.

        Raises:
            InvalidConfigError: If the configuration is invalid.
            InvalidSeriesError: If the series holds non-finite or oversized values.
            InsufficientDataError: If the series is too short for the method.
        """
        start_time = time.perf_counter()
        self._validate_config(config)
        values = self._as_series(series)

        required = minimum_length(config.method, config.seasonal_periods)
        if len(values) < required:
            raise InsufficientDataError(
                method=config.method, required_length=required, actual_length=len(values)
            )

        logger.info(
            "forecasting.forecast_started",
            method=config.method,
            periods=config.periods,
            n_observations=len(values),
            config_hash=config.config_hash(),
        )

        cleaned = preprocess(values)
        y = cleaned.values

        fit = get_fitter(config.method)(y, config)

        trend = determine_trend(y)
        seasonality = seasonality_strength(y, config.seasonal_periods)
        r2 = r2_score(y, fit.fitted)
        mae = mean_absolute_error(y, fit.fitted)
        mape = mean_absolute_percentage_error(y, fit.fitted)

        decomposition = decompose(y, config.seasonal_periods)

        result = ForecastResult(
            predictions=fit.predictions.tolist(),
            confidence_intervals=ConfidenceBand(
                lower=fit.lower.tolist(),
                upper=fit.upper.tolist(),
            ),
            trend=trend,
            seasonality=seasonality,
            r2_score=r2,
            mae=mae,
            mape=mape,
            metadata=ForecastMetadata(
                method=config.method,
                data_points=len(y),
                outlier_indices=cleaned.outlier_indices,
                trend_strength=decomposition.trend_strength,
                seasonal_strength=decomposition.seasonal_strength,
                config_hash=config.config_hash(),
                parameters=fit.parameters,
            ),
        )

        logger.info(
            "forecasting.forecast_completed",
            method=config.method,
            n_predictions=len(result.predictions),
            n_outliers=len(cleaned.outlier_indices),
            trend=trend,
            seasonality=seasonality,
            r2_score=r2,
            mae=mae,
            mape=mape,
            duration_ms=(time.perf_counter() - start_time) * 1000,
        )

        return result

    def decompose(
        self, series: Sequence[float] | FloatArray, seasonal_periods: int | None = None
    ) -> DecompositionResponse:
        """Clean a series and split it into trend, seasonal and residual.

        Args:
            series: Equally spaced finite values (not modified).
            seasonal_periods: Cycle length m (defaults from settings).

        Returns:
            DecompositionResponse with components and strengths.

        Raises:
            InvalidConfigError: If seasonal_periods < 1.
            InvalidSeriesError: If the series holds non-finite or oversized values.
            InsufficientDataError: If the series has fewer than 2 points.
        """
        if seasonal_periods is None:
            seasonal_periods = self.settings.forecast_default_seasonal_periods
        if seasonal_periods < 1:
            raise InvalidConfigError(
                message="seasonal_periods must be >= 1",
                field="seasonal_periods",
                value=seasonal_periods,
            )
        values = self._as_series(series)
        if len(values) < 2:
            raise InsufficientDataError(
                method="decomposition", required_length=2, actual_length=len(values)
            )

        cleaned = preprocess(values)
        decomposition = decompose(cleaned.values, seasonal_periods)

        logger.info(
            "forecasting.decomposition_completed",
            n_observations=len(values),
            seasonal_periods=seasonal_periods,
            trend_strength=decomposition.trend_strength,
            seasonal_strength=decomposition.seasonal_strength,
        )

        return DecompositionResponse(
            trend=decomposition.trend.tolist(),
            seasonal=decomposition.seasonal.tolist(),
            residual=decomposition.residual.tolist(),
            strength=DecompositionStrength(
                trend=decomposition.trend_strength,
                seasonal=decomposition.seasonal_strength,
            ),
            seasonal_periods=seasonal_periods,
            outlier_indices=cleaned.outlier_indices,
        )

    def auto_forecast(
        self,
        series: Sequence[float] | FloatArray,
        periods: int,
        confidence_level: float | None = None,
        seasonal_periods: int | None = None,
        methods: Sequence[str] | None = None,
    ) -> AutoForecastResponse:
        """Run each candidate method and keep the one with the highest R2.

        Candidates that cannot run on a series this short are recorded as
        skipped. Ties keep the earlier candidate.

        Args:
            series: Equally spaced finite values (not modified).
            periods: Number of periods to forecast.
            confidence_level: Interval coverage (defaults from settings).
            seasonal_periods: Cycle length; derived as min(12, n // 4) if None.
            methods: Candidate methods (defaults from settings).

        Returns:
            AutoForecastResponse with the winning result and all scores.

        Raises:
            InvalidConfigError: If any parameter or candidate is invalid.
            InsufficientDataError: If no candidate can run; reports the
                least demanding candidate's requirement.
        """
        candidates = list(methods if methods is not None else self.settings.forecast_auto_methods)
        if not candidates:
            raise InvalidConfigError(
                message="At least one candidate method is required",
                field="methods",
                value=candidates,
            )
        values = self._as_series(series)
        if seasonal_periods is None:
            seasonal_periods = heuristic_seasonal_periods(len(values))
        if confidence_level is None:
            confidence_level = self.settings.forecast_default_confidence_level

        configs = [
            ForecastConfig.build(
                periods=periods,
                seasonal_periods=seasonal_periods,
                confidence_level=confidence_level,
                method=method,
            )
            for method in candidates
        ]

        best: ForecastResult | None = None
        scores: list[MethodScore] = []
        skipped: list[InsufficientDataError] = []
        for config in configs:
            try:
                result = self.forecast(values, config)
            except InsufficientDataError as e:
                logger.info(
                    "forecasting.auto_candidate_skipped",
                    method=config.method,
                    required_length=e.required_length,
                    actual_length=e.actual_length,
                )
                skipped.append(e)
                scores.append(MethodScore(method=config.method, skipped_reason=e.message))
                continue
            scores.append(
                MethodScore(method=config.method, r2_score=result.r2_score, mae=result.mae)
            )
            if best is None or result.r2_score > best.r2_score:
                best = result

        if best is None:
            raise min(skipped, key=lambda e: e.required_length)

        logger.info(
            "forecasting.auto_forecast_completed",
            best_method=best.metadata.method,
            r2_score=best.r2_score,
            n_candidates=len(configs),
            n_skipped=len(skipped),
        )

        return AutoForecastResponse(best_method=best.metadata.method, result=best, scores=scores)

