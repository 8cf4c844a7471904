"""Application configuration via Pydantic Settings v2."""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = "ForecastEngine"
    app_env: Literal["development", "testing", "staging", "production"] = "development"
    debug: bool = False

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    # API
    api_host: str = "0.0.0.0"  # noqa: S104
    api_port: int = 8123

    # Forecasting
    forecast_default_seasonal_periods: int = 12
    forecast_default_confidence_level: float = 0.95
    forecast_max_periods: int = 365
    forecast_max_series_length: int = 100_000
    forecast_auto_methods: list[str] = ["linear", "exponential", "seasonal"]

    @field_validator("forecast_auto_methods")
    @classmethod
    def validate_auto_methods(cls, v: list[str]) -> list[str]:
        """Require at least one candidate method.

        Method names are checked against the forecast method tags when
        automatic selection builds its configs.

        Raises:
            ValueError: If the list is empty.
        """
        if not v:
            raise ValueError("forecast_auto_methods must name at least one method")
        return v

    @field_validator("forecast_default_seasonal_periods")
    @classmethod
    def validate_seasonal_periods(cls, v: int) -> int:
        """Ensure the default seasonal cycle length is at least 1."""
        if v < 1:
            raise ValueError("forecast_default_seasonal_periods must be >= 1")
        return v

    @field_validator("forecast_default_confidence_level")
    @classmethod
    def validate_confidence_level(cls, v: float) -> float:
        """Ensure the default confidence level lies strictly between 0 and 1."""
        if not 0.0 < v < 1.0:
            raise ValueError("forecast_default_confidence_level must be in (0, 1)")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing mode."""
        return self.app_env == "testing"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton."""
    return Settings()
