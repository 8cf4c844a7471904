"""Time-series decomposition and forecasting engine.

Pure, synchronous computation over a numeric series: outlier replacement,
additive decomposition, four interchangeable fitters, small-sample
confidence intervals and goodness-of-fit metrics.

Exports:
    Preprocessing:
        - preprocess, clean_series, outlier_indices, percentile

    Decomposition:
        - Decomposition, decompose

    Models:
        - ModelFit, FITTERS, get_fitter
        - fit_linear, fit_exponential, fit_seasonal, fit_autoregressive

    Intervals / Metrics:
        - t_value
        - r2_score, mean_absolute_error, mean_absolute_percentage_error, autocorrelation

    Schemas:
        - ForecastConfig, ForecastResult, DecompositionResponse, AutoForecastResponse

    Service:
        - ForecastingService: orchestration entry point
"""

from app.features.forecasting.decomposition import Decomposition, decompose
from app.features.forecasting.intervals import t_value
from app.features.forecasting.metrics import (
    autocorrelation,
    mean_absolute_error,
    mean_absolute_percentage_error,
    r2_score,
)
from app.features.forecasting.models import (
    FITTERS,
    ModelFit,
    fit_autoregressive,
    fit_exponential,
    fit_linear,
    fit_seasonal,
    get_fitter,
)
from app.features.forecasting.preprocessing import (
    clean_series,
    outlier_indices,
    percentile,
    preprocess,
)
from app.features.forecasting.schemas import (
    AutoForecastResponse,
    DecompositionResponse,
    ForecastConfig,
    ForecastResult,
)
from app.features.forecasting.service import ForecastingService

__all__ = [
    "FITTERS",
    "AutoForecastResponse",
    "Decomposition",
    "DecompositionResponse",
    "ForecastConfig",
    "ForecastResult",
    "ForecastingService",
    "ModelFit",
    "autocorrelation",
    "clean_series",
    "decompose",
    "fit_autoregressive",
    "fit_exponential",
    "fit_linear",
    "fit_seasonal",
    "get_fitter",
    "mean_absolute_error",
    "mean_absolute_percentage_error",
    "outlier_indices",
    "percentile",
    "preprocess",
    "r2_score",
    "t_value",
]
