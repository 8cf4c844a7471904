"""Tests for logging configuration."""

from app.core.logging import (
    add_request_id,
    configure_logging,
    get_logger,
    request_id_ctx,
    service_context,
)


def test_get_logger_returns_bound_logger():
    """get_logger should return a structlog logger."""
    configure_logging()
    logger = get_logger("test")

    assert logger is not None
    assert hasattr(logger, "info")
    assert hasattr(logger, "error")


def test_request_id_context_variable():
    """request_id_ctx should store and retrieve values."""
    assert request_id_ctx.get() is None

    token = request_id_ctx.set("test-id-123")
    assert request_id_ctx.get() == "test-id-123"

    request_id_ctx.reset(token)
    assert request_id_ctx.get() is None


def test_add_request_id_processor():
    """The processor should attach the active request id only when set."""
    assert add_request_id(None, "info", {"event": "x"}) == {"event": "x"}

    token = request_id_ctx.set("abc")
    try:
        event = add_request_id(None, "info", {"event": "x"})
    finally:
        request_id_ctx.reset(token)

    assert event == {"event": "x", "request_id": "abc"}


def test_configure_logging_console_format(monkeypatch):
    """configure_logging should accept the console renderer."""
    monkeypatch.setenv("LOG_FORMAT", "console")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")

    configure_logging()  # Should not raise


def test_service_context_processor():
    """The processor should stamp service and env without overriding explicit values."""
    processor = service_context("ForecastEngine", "testing")

    assert processor(None, "info", {"event": "x"}) == {
        "event": "x",
        "service": "ForecastEngine",
        "env": "testing",
    }
    assert processor(None, "info", {"event": "x", "env": "other"})["env"] == "other"
