"""Tests for forecasting schemas."""

import pytest
from pydantic import ValidationError

from app.core.exceptions import InvalidConfigError
from app.features.forecasting.schemas import (
    ConfidenceBand,
    ForecastConfig,
    ForecastMetadata,
    ForecastRequest,
    ForecastResult,
)


def _metadata() -> ForecastMetadata:
    return ForecastMetadata(
        method="linear",
        data_points=10,
        outlier_indices=[],
        trend_strength=0.9,
        seasonal_strength=0.1,
        config_hash="abc",
        parameters={"slope": 1.0},
    )


def _result(**overrides) -> ForecastResult:
    values = {
        "predictions": [1.0, 2.0],
        "confidence_intervals": ConfidenceBand(lower=[0.5, 1.5], upper=[1.5, 2.5]),
        "trend": "increasing",
        "seasonality": 0.2,
        "r2_score": 0.8,
        "mae": 0.1,
        "mape": 1.0,
        "metadata": _metadata(),
    }
    values.update(overrides)
    return ForecastResult(**values)


class TestForecastConfig:
    """Tests for the forecast configuration model."""

    def test_defaults(self):
        """Test default values."""
        config = ForecastConfig(periods=3)

        assert config.seasonal_periods == 12
        assert config.confidence_level == 0.95
        assert config.method == "linear"

    def test_frozen(self):
        """Test the config is immutable."""
        config = ForecastConfig(periods=3)

        with pytest.raises(ValidationError):
            config.periods = 5  # type: ignore[misc]

    def test_extra_fields_forbidden(self):
        """Test unknown fields are rejected."""
        with pytest.raises(ValidationError):
            ForecastConfig(periods=3, horizon=4)  # type: ignore[call-arg]

    def test_config_hash_deterministic(self):
        """Test equal configs hash equally and differ otherwise."""
        a = ForecastConfig(periods=3, method="exponential")
        b = ForecastConfig(periods=3, method="exponential")
        c = ForecastConfig(periods=4, method="exponential")

        assert a.config_hash() == b.config_hash()
        assert a.config_hash() != c.config_hash()
        assert len(a.config_hash()) == 16

    @pytest.mark.parametrize(
        ("overrides", "field"),
        [
            ({"periods": 0}, "periods"),
            ({"periods": -2}, "periods"),
            ({"confidence_level": 1.0}, "confidence_level"),
            ({"confidence_level": 0.0}, "confidence_level"),
            ({"method": "unknown"}, "method"),
            ({"seasonal_periods": 0}, "seasonal_periods"),
        ],
    )
    def test_build_raises_invalid_config(self, overrides, field):
        """Test build() converts validation failures to InvalidConfigError."""
        values = {"periods": 5, **overrides}

        with pytest.raises(InvalidConfigError) as exc_info:
            ForecastConfig.build(**values)

        assert exc_info.value.field == field
        assert exc_info.value.code == "INVALID_CONFIG"
        assert exc_info.value.status_code == 422

    def test_build_accepts_valid_values(self):
        """Test build() returns a config for valid input."""
        config = ForecastConfig.build(periods=5, method="autoregressive-simple")

        assert config.method == "autoregressive-simple"


class TestForecastResult:
    """Tests for result invariants."""

    def test_valid_result(self):
        """Test a well-formed result validates."""
        result = _result()

        assert result.predictions == [1.0, 2.0]

    def test_rejects_nan(self):
        """Test NaN predictions are rejected."""
        with pytest.raises(ValidationError, match="non-finite"):
            _result(
                predictions=[float("nan"), 2.0],
            )

    def test_rejects_infinite_bounds(self):
        """Test infinite bounds are rejected."""
        with pytest.raises(ValidationError, match="non-finite"):
            _result(
                confidence_intervals=ConfidenceBand(
                    lower=[0.5, 1.5], upper=[1.5, float("inf")]
                )
            )

    def test_rejects_misordered_bounds(self):
        """Test a prediction outside its interval is rejected."""
        with pytest.raises(ValidationError, match="outside"):
            _result(confidence_intervals=ConfidenceBand(lower=[1.5, 1.5], upper=[2.0, 2.5]))

    def test_rejects_length_mismatch(self):
        """Test bounds must match the predictions length."""
        with pytest.raises(ValidationError, match="equal length"):
            _result(confidence_intervals=ConfidenceBand(lower=[0.5], upper=[1.5]))

    def test_rejects_out_of_range_scores(self):
        """Test seasonality above 1 and negative MAE are rejected."""
        with pytest.raises(ValidationError):
            _result(seasonality=1.5)
        with pytest.raises(ValidationError):
            _result(mae=-0.1)
        with pytest.raises(ValidationError):
            _result(r2_score=1.01)

    def test_negative_r2_allowed(self):
        """Test R2 may be negative for poor fits."""
        assert _result(r2_score=-3.0).r2_score == -3.0


class TestForecastRequest:
    """Tests for the HTTP request body."""

    def test_series_required(self):
        """Test an empty series is rejected."""
        with pytest.raises(ValidationError):
            ForecastRequest(series=[], periods=3)

    def test_method_is_free_text(self):
        """Test unknown methods pass the body schema for config validation later."""
        request = ForecastRequest(series=[1.0, 2.0], periods=3, method="unknown")

        assert request.method == "unknown"
