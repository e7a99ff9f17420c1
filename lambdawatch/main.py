"""Composition root for the lambdawatch telemetry adapter.

This module is the ONLY location that imports both core logic and the
concrete backend implementation. It owns the process-wide default
adapter and exposes module-level helpers for handler modules:

    from lambdawatch import capture_exception, wrap_handler

    def handler(event, context):
        ...

    handler = wrap_handler(handler)
"""

import json
import logging
import sys
import threading
from collections.abc import Callable, Mapping
from typing import Any

from lambdawatch.adapters.backend.sentry import SentryTelemetryBackend
from lambdawatch.config import Settings, load_settings
from lambdawatch.core.adapter import TelemetryAdapter
from lambdawatch.core.models import EventFilter, Level, TelemetryConfig, pass_through_event
from lambdawatch.core.ports import TelemetryBackendPort


class _MaxLevelFilter(logging.Filter):
    """Pass only records below a level."""

    def __init__(self, level: int):
        super().__init__()
        self.level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self.level


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(log_level: str, log_format: str) -> None:
    """Configure application logging.

    Records below WARNING go to stdout, WARNING and above to stderr, so
    disabled-mode messages and disabled-mode errors land on the
    streams a console reader expects.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Log format (json, text).
    """
    # Map string level to logging constant
    level = getattr(logging, log_level.upper(), logging.INFO)

    if log_format == "json":
        formatter: logging.Formatter = _JsonFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.addFilter(_MaxLevelFilter(logging.WARNING))
    stdout_handler.setFormatter(formatter)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.WARNING)
    stderr_handler.setFormatter(formatter)

    logging.basicConfig(
        level=level,
        handlers=[stdout_handler, stderr_handler],
        force=True,
    )


def build_adapter(
    settings_loader: Callable[[], Settings] = load_settings,
    backend: TelemetryBackendPort | None = None,
    event_filter: EventFilter = pass_through_event,
    log: logging.Logger | None = None,
) -> TelemetryAdapter:
    """Wire settings and a backend into a TelemetryAdapter.

    Nothing is read from the environment here; settings are loaded on
    each initialize() call.

    Args:
        settings_loader: Returns validated Settings.
        backend: Backend implementation (defaults to Sentry).
        event_filter: Hook applied to every outgoing event.
        log: Local log sink for the adapter.

    Returns:
        An uninitialized TelemetryAdapter.
    """

    def config_source() -> TelemetryConfig:
        return settings_loader().to_telemetry_config(event_filter)

    return TelemetryAdapter(
        backend=backend if backend is not None else SentryTelemetryBackend(),
        config_source=config_source,
        log=log,
    )


_default_adapter: TelemetryAdapter | None = None
_default_adapter_lock = threading.Lock()


def get_adapter() -> TelemetryAdapter:
    """Return the process-wide adapter, creating it on first use."""
    global _default_adapter
    if _default_adapter is None:
        with _default_adapter_lock:
            if _default_adapter is None:
                _default_adapter = build_adapter()
    return _default_adapter


def set_adapter(adapter: TelemetryAdapter | None) -> None:
    """Replace the process-wide adapter (None rebuilds it on next use)."""
    global _default_adapter
    with _default_adapter_lock:
        _default_adapter = adapter


def initialize() -> bool:
    """Initialize telemetry for this process. Returns True if enabled."""
    return get_adapter().initialize()


def wrap_handler(handler: Callable[..., Any]) -> Callable[..., Any]:
    """Wrap a function handler with error tracking."""
    return get_adapter().wrap_handler(handler)


def capture_exception(error: Any, context: Any = None) -> None:
    """Report an error with optional tags, extra data and user."""
    get_adapter().capture_exception(error, context)


def capture_message(message: str, level: str | Level = "info", context: Any = None) -> None:
    """Report a diagnostic message."""
    get_adapter().capture_message(message, level, context)


def set_user(user_id: Any, user_data: Mapping[str, Any] | None = None) -> None:
    """Set the ambient user for later captures."""
    get_adapter().set_user(user_id, user_data)


def add_breadcrumb(
    message: str,
    category: str = "default",
    level: str | Level = "info",
    data: Mapping[str, Any] | None = None,
) -> None:
    """Append a breadcrumb to the ambient trail."""
    get_adapter().add_breadcrumb(message, category, level, data)
