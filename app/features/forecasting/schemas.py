"""Pydantic schemas for forecast configuration, results and API contracts.

ForecastConfig is:
- Immutable (frozen=True) so one config can be shared across concurrent calls
- Strict about unknown fields (extra="forbid")
- Hashable (config_hash) for logging and result correlation
"""

from __future__ import annotations

import hashlib
import math
from typing import Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from app.core.config import get_settings
from app.core.exceptions import InvalidConfigError

# Tagged variant for method dispatch
ForecastMethod = Literal["linear", "exponential", "seasonal", "autoregressive-simple"]

FORECAST_METHODS: tuple[str, ...] = get_args(ForecastMethod)

TrendDirection = Literal["increasing", "decreasing", "stable"]


# =============================================================================
# Configuration
# =============================================================================


def _default_seasonal_periods() -> int:
    return get_settings().forecast_default_seasonal_periods


def _default_confidence_level() -> float:
    return get_settings().forecast_default_confidence_level


class ForecastConfig(BaseModel):
    """Configuration for a single forecast call.

    Attributes:
        periods: Number of future points to predict.
        seasonal_periods: Length of one seasonal cycle (seasonal and
            decomposition paths only).
        confidence_level: Interval coverage, strictly between 0 and 1.
        method: Forecast model to fit.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    periods: int = Field(..., ge=1, description="Number of periods to forecast")
    seasonal_periods: int = Field(
        default_factory=_default_seasonal_periods, ge=1, description="Seasonal cycle length"
    )
    confidence_level: float = Field(
        default_factory=_default_confidence_level,
        gt=0.0,
        lt=1.0,
        description="Confidence level of the prediction interval",
    )
    method: ForecastMethod = Field(default="linear", description="Forecast method")

    @classmethod
    def build(cls, **values: Any) -> ForecastConfig:  # noqa: ANN401
        """Validate raw values into a config, raising InvalidConfigError.

        Args:
            **values: Raw configuration fields.

        Returns:
            Validated, frozen configuration.

        Raises:
            InvalidConfigError: If any field is out of range or unknown.
        """
        try:
            return cls(**values)
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ())) or None
            raise InvalidConfigError(
                message=f"Invalid forecast configuration: {field}: {first.get('msg')}",
                field=field,
                value=first.get("input"),
            ) from e

    def config_hash(self) -> str:
        """Generate a deterministic 16-character hash of the configuration."""
        config_json = self.model_dump_json()
        return hashlib.sha256(config_json.encode()).hexdigest()[:16]


# =============================================================================
# Results
# =============================================================================


class ConfidenceBand(BaseModel):
    """Lower and upper bounds of the prediction interval."""

    lower: list[float]
    upper: list[float]


class ForecastMetadata(BaseModel):
    """Diagnostic metadata attached to every forecast.

    Model-specific parameters (slope, alpha, ar1_coeff, ...) are carried in
    ``parameters``.
    """

    method: ForecastMethod
    data_points: int
    outlier_indices: list[int]
    trend_strength: float
    seasonal_strength: float
    config_hash: str
    parameters: dict[str, float] = Field(default_factory=dict)


class ForecastResult(BaseModel):
    """Assembled output of one forecast call.

    Invariants: ``len(predictions) == config.periods``,
    ``lower[i] <= predictions[i] <= upper[i]`` and no field holds NaN or
    Infinity.
    """

    predictions: list[float]
    confidence_intervals: ConfidenceBand
    trend: TrendDirection
    seasonality: float = Field(..., ge=0.0, le=1.0)
    r2_score: float = Field(..., le=1.0)
    mae: float = Field(..., ge=0.0)
    mape: float = Field(..., ge=0.0)
    metadata: ForecastMetadata

    @model_validator(mode="after")
    def validate_finite_and_ordered(self) -> ForecastResult:
        """Reject NaN/Infinity and misordered interval bounds."""
        band = self.confidence_intervals
        if not (len(self.predictions) == len(band.lower) == len(band.upper)):
            raise ValueError("predictions and confidence bounds must have equal length")

        scalars = [self.seasonality, self.r2_score, self.mae, self.mape]
        scalars += [self.metadata.trend_strength, self.metadata.seasonal_strength]
        scalars += list(self.metadata.parameters.values())
        for value in [*self.predictions, *band.lower, *band.upper, *scalars]:
            if not math.isfinite(value):
                raise ValueError("forecast result contains a non-finite value")

        for low, pred, high in zip(band.lower, self.predictions, band.upper, strict=True):
            if not low <= pred <= high:
                raise ValueError("prediction lies outside its confidence interval")
        return self


class DecompositionStrength(BaseModel):
    """Variance explained by the trend and seasonal components."""

    trend: float
    seasonal: float


class DecompositionResponse(BaseModel):
    """Trend/seasonal/residual split of a cleaned series."""

    trend: list[float]
    seasonal: list[float]
    residual: list[float]
    strength: DecompositionStrength
    seasonal_periods: int
    outlier_indices: list[int]


class MethodScore(BaseModel):
    """Outcome of one candidate method during automatic selection."""

    method: ForecastMethod
    r2_score: float | None = None
    mae: float | None = None
    skipped_reason: str | None = None


class AutoForecastResponse(BaseModel):
    """Best forecast among the candidate methods plus the score table."""

    best_method: ForecastMethod
    result: ForecastResult
    scores: list[MethodScore]


# =============================================================================
# API Request Schemas
# =============================================================================


class _SeriesRequest(BaseModel):
    """Common body: a numeric series already extracted from a column."""

    series: list[float] = Field(..., min_length=1, description="Equally spaced numeric values")


class ForecastRequest(_SeriesRequest):
    """Request body for POST /forecasting/forecast.

    Omitted ``seasonal_periods`` and ``confidence_level`` take the configured
    engine defaults.
    """

    periods: int = Field(..., description="Number of periods to forecast")
    method: str = Field(default="linear", description="Forecast method")
    seasonal_periods: int | None = Field(default=None, description="Seasonal cycle length")
    confidence_level: float | None = Field(default=None, description="Interval confidence level")


class DecomposeRequest(_SeriesRequest):
    """Request body for POST /forecasting/decompose."""

    seasonal_periods: int | None = Field(default=None, ge=1, description="Seasonal cycle length")


class AutoForecastRequest(_SeriesRequest):
    """Request body for POST /forecasting/auto.

    ``seasonal_periods`` may be omitted; it is then derived from the series
    length.
    """

    periods: int = Field(..., description="Number of periods to forecast")
    seasonal_periods: int | None = Field(default=None, description="Seasonal cycle length")
    confidence_level: float | None = Field(default=None, description="Interval confidence level")
    methods: list[str] | None = Field(default=None, description="Candidate methods")
