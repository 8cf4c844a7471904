"""Forecasting API routes: forecast, decompose and automatic method selection.

Engine errors propagate to the RFC 7807 handlers registered in
app.core.exceptions; routes only translate request bodies.
"""

from fastapi import APIRouter, status

from app.core.logging import get_logger
from app.features.forecasting.schemas import (
    AutoForecastRequest,
    AutoForecastResponse,
    DecomposeRequest,
    DecompositionResponse,
    ForecastConfig,
    ForecastRequest,
    ForecastResult,
)
from app.features.forecasting.service import ForecastingService

logger = get_logger(__name__)

router = APIRouter(prefix="/forecasting", tags=["forecasting"])


@router.post(
    "/forecast",
    response_model=ForecastResult,
    status_code=status.HTTP_200_OK,
    summary="Forecast a numeric series",
    description="""
Forecast the next `periods` values of an equally spaced numeric series.

**Methods:**
- `linear`: OLS trend line extrapolation
- `exponential`: Holt double exponential smoothing (alpha=0.3, beta=0.1)
- `seasonal`: trend forecast plus centered seasonal basis (needs 2 full cycles)
- `autoregressive-simple`: differenced AR(1)/MA(1) approximation

Outliers (Tukey fences, 1.5 IQR) are replaced by the Q1/Q3 midpoint before fitting;
their positions are reported in `metadata.outlier_indices`.
""",
)
async def forecast_series(request: ForecastRequest) -> ForecastResult:
    """Forecast a series with the requested method.

    Args:
        request: Series plus forecast configuration.

    Returns:
        ForecastResult with predictions, intervals and fit metrics.

    Raises:
        InvalidConfigError: If the configuration is invalid.
        InsufficientDataError: If the series is too short for the method.
    """
    # Unset optional fields fall back to the settings-backed config defaults
    overrides = request.model_dump(
        include={"seasonal_periods", "confidence_level"}, exclude_none=True
    )
    config = ForecastConfig.build(periods=request.periods, method=request.method, **overrides)

    logger.info(
        "forecasting.forecast_request_received",
        method=config.method,
        periods=config.periods,
        n_observations=len(request.series),
    )

    return ForecastingService().forecast(request.series, config)


@router.post(
    "/decompose",
    response_model=DecompositionResponse,
    status_code=status.HTTP_200_OK,
    summary="Decompose a series into trend, seasonal and residual",
)
async def decompose_series(request: DecomposeRequest) -> DecompositionResponse:
    """Decompose the outlier-cleaned series.

    Args:
        request: Series plus seasonal cycle length.

    Returns:
        DecompositionResponse with components and strengths.
    """
    logger.info(
        "forecasting.decompose_request_received",
        seasonal_periods=request.seasonal_periods,
        n_observations=len(request.series),
    )

    return ForecastingService().decompose(request.series, request.seasonal_periods)


@router.post(
    "/auto",
    response_model=AutoForecastResponse,
    status_code=status.HTTP_200_OK,
    summary="Forecast with the best-fitting method",
    description="""
Run every candidate method (default: `linear`, `exponential`, `seasonal`) and return
the result with the highest in-sample R2. Candidates that need more data than the
series provides are listed in `scores` with a `skipped_reason`.
""",
)
async def auto_forecast_series(request: AutoForecastRequest) -> AutoForecastResponse:
    """Pick the best method by R2 and return its forecast.

    Args:
        request: Series plus forecast parameters and optional candidates.

    Returns:
        AutoForecastResponse with the winning result and the score table.
    """
    logger.info(
        "forecasting.auto_request_received",
        periods=request.periods,
        n_observations=len(request.series),
        methods=request.methods,
    )

    return ForecastingService().auto_forecast(
        request.series,
        periods=request.periods,
        confidence_level=request.confidence_level,
        seasonal_periods=request.seasonal_periods,
        methods=request.methods,
    )
