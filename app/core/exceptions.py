"""Engine exceptions and their FastAPI handlers.

Invalid input is surfaced to the caller; degenerate statistics (flat series,
zero IQR) are not errors and never reach this module.
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from app.core.logging import get_logger
from app.core.problem_details import (
    ERROR_TYPES,
    ProblemDetailResponse,
    problem_response,
)

logger = get_logger(__name__)


# =============================================================================
# Exception Classes
# =============================================================================


class ForecastEngineError(Exception):
    """Base exception for forecasting engine errors.

    Each subclass carries a machine-readable code and maps to an RFC 7807
    problem type URI when rendered over HTTP.
    """

    error_type_uri: str = ERROR_TYPES["INTERNAL_ERROR"]

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize engine error.

        Args:
            message: Human-readable error message.
            code: Machine-readable error code.
            status_code: HTTP status code used by the API layer.
            details: Additional error context.
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}

    @property
    def title(self) -> str:
        """RFC 7807 title - short summary of problem type."""
        return self.code.replace("_", " ").title()


class InvalidConfigError(ForecastEngineError):
    """Forecast configuration is invalid.

    Raised for periods < 1, a confidence level outside (0, 1), or an unknown
    method. Never recovered locally.
    """

    error_type_uri: str = ERROR_TYPES["INVALID_CONFIG"]

    def __init__(
        self,
        message: str = "Invalid forecast configuration",
        field: str | None = None,
        value: Any = None,  # noqa: ANN401
    ) -> None:
        super().__init__(
            message=message,
            code="INVALID_CONFIG",
            status_code=422,
            details={"field": field, "value": str(value)} if field else {},
        )
        self.field = field
        self.value = value


class InsufficientDataError(ForecastEngineError):
    """Series is shorter than the selected method needs.

    The required length is included so callers can fall back to a less
    demanding method.
    """

    error_type_uri: str = ERROR_TYPES["INSUFFICIENT_DATA"]

    def __init__(self, method: str, required_length: int, actual_length: int) -> None:
        super().__init__(
            message=(
                f"Series too short for method '{method}': "
                f"need at least {required_length} points, got {actual_length}"
            ),
            code="INSUFFICIENT_DATA",
            status_code=422,
            details={
                "method": method,
                "required_length": required_length,
                "actual_length": actual_length,
            },
        )
        self.method = method
        self.required_length = required_length
        self.actual_length = actual_length


class InvalidSeriesError(ForecastEngineError):
    """Series contains non-finite values or exceeds the configured size limit."""

    error_type_uri: str = ERROR_TYPES["INVALID_SERIES"]

    def __init__(
        self,
        message: str = "Series must contain only finite numbers",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code="INVALID_SERIES",
            status_code=422,
            details=details,
        )


# =============================================================================
# Exception Handlers (RFC 7807)
# =============================================================================


async def forecast_engine_exception_handler(
    request: Request,
    exc: ForecastEngineError,
) -> ProblemDetailResponse:
    """Render a ForecastEngineError as RFC 7807 Problem Details.

    Args:
        request: FastAPI request object.
        exc: The raised exception.

    Returns:
        RFC 7807 Problem Detail response.
    """
    logger.warning(
        "app.error_handled",
        error=exc.message,
        error_type=type(exc).__name__,
        error_code=exc.code,
        status_code=exc.status_code,
        details=exc.details,
        path=str(request.url.path),
    )

    return problem_response(
        status=exc.status_code,
        title=exc.title,
        detail=exc.message,
        error_code=exc.code,
        details=exc.details or None,
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> ProblemDetailResponse:
    """Render request body validation errors with field-level detail.

    Args:
        request: FastAPI request object.
        exc: Pydantic validation error.

    Returns:
        RFC 7807 Problem Detail response with an ``errors`` list.
    """
    field_errors: list[dict[str, str]] = []
    for error in exc.errors():
        loc = error.get("loc", [])
        field_path = ".".join(str(part) for part in loc if part != "body")
        field_errors.append(
            {
                "field": field_path,
                "message": str(error.get("msg", "Validation failed")),
                "type": str(error.get("type", "unknown")),
            }
        )

    logger.warning(
        "app.validation_error",
        error_count=len(field_errors),
        path=str(request.url.path),
        fields=[e["field"] for e in field_errors],
    )

    return problem_response(
        status=422,
        title="Validation Error",
        detail=f"Request validation failed with {len(field_errors)} error(s). "
        "Check the 'errors' field for details.",
        error_code="VALIDATION_ERROR",
        errors=field_errors,
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> ProblemDetailResponse:
    """Render unexpected exceptions without leaking internals."""
    logger.error(
        "app.unhandled_error",
        error=str(exc),
        error_type=type(exc).__name__,
        path=str(request.url.path),
        exc_info=True,
    )

    return problem_response(
        status=500,
        title="Internal Server Error",
        detail="An unexpected error occurred. Please try again later or "
        "contact support with the request_id.",
        error_code="INTERNAL_ERROR",
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app.

    Args:
        app: FastAPI application instance.
    """
    app.add_exception_handler(
        ForecastEngineError,
        forecast_engine_exception_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(
        RequestValidationError,
        validation_exception_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(Exception, unhandled_exception_handler)
