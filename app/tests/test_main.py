"""Tests for the application entry point."""

from app import main as main_module


class _RecordingLogger:
    def __init__(self) -> None:
        self.events: list[tuple[str, dict]] = []

    def info(self, event: str, **kwargs) -> None:
        self.events.append((event, kwargs))


async def test_lifespan_logs_forecast_limits(monkeypatch):
    """Startup should record the engine limits and defaults in effect."""
    monkeypatch.setenv("FORECAST_MAX_PERIODS", "50")
    monkeypatch.setenv("FORECAST_DEFAULT_SEASONAL_PERIODS", "7")
    recorder = _RecordingLogger()
    monkeypatch.setattr(main_module, "logger", recorder)

    async with main_module.lifespan(main_module.app):
        pass

    events = dict(recorder.events)
    assert list(events) == ["app.startup_started", "app.forecast_limits", "app.shutdown_completed"]
    limits = events["app.forecast_limits"]
    assert limits["max_periods"] == 50
    assert limits["default_seasonal_periods"] == 7
    assert limits["auto_methods"] == ["linear", "exponential", "seasonal"]


def test_run_serves_on_configured_address(monkeypatch):
    """run() should hand the configured host, port and log level to uvicorn."""
    monkeypatch.setenv("API_HOST", "127.0.0.1")
    monkeypatch.setenv("API_PORT", "9001")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    calls = []
    monkeypatch.setattr(
        main_module.uvicorn, "run", lambda *args, **kwargs: calls.append((args, kwargs))
    )

    main_module.run()

    assert len(calls) == 1
    args, kwargs = calls[0]
    assert args == ("app.main:app",)
    assert kwargs["host"] == "127.0.0.1"
    assert kwargs["port"] == 9001
    assert kwargs["log_level"] == "warning"
