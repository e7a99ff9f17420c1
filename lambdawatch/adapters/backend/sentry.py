"""Sentry telemetry backend.

Implements TelemetryBackendPort on top of sentry-sdk. Transport,
batching, sampling and delivery retry all stay inside the SDK.
"""

import logging
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any

import sentry_sdk

from lambdawatch.core.models import Breadcrumb, Level, TelemetryConfig, WrapOptions
from lambdawatch.core.ports import ScopePort, TelemetryBackendPort
from lambdawatch.core.wrapper import wrap_reporting_handler

logger = logging.getLogger(__name__)


class SentryScope(ScopePort):
    """ScopePort over a forked sentry_sdk Scope."""

    def __init__(self, scope: sentry_sdk.Scope):
        self.scope = scope

    def set_tag(self, key: str, value: str) -> None:
        self.scope.set_tag(key, value)

    def set_extra(self, key: str, value: Any) -> None:
        self.scope.set_extra(key, value)

    def set_user(self, user: Mapping[str, Any] | None) -> None:
        self.scope.set_user(dict(user) if user is not None else None)

    def capture_exception(self, error: BaseException) -> None:
        self.scope.capture_exception(error)

    def capture_message(self, message: str, level: Level) -> None:
        self.scope.capture_message(message, level=level.value)


class SentryTelemetryBackend(TelemetryBackendPort):
    """sentry-sdk backed implementation of the telemetry backend port."""

    def __init__(self, **client_options: Any):
        """Initialize the backend without creating a Sentry client.

        Args:
            **client_options: Extra keyword arguments forwarded to
                ``sentry_sdk.init`` (e.g. ``integrations``, ``release``,
                ``transport``).
        """
        self.client_options = client_options
        self.init_count = 0

    def init(self, config: TelemetryConfig) -> None:
        """Create and install the Sentry client for this process."""
        options: dict[str, Any] = {
            "dsn": config.endpoint_credential,
            "environment": config.environment,
            "traces_sample_rate": config.sample_rate,
            "debug": config.debug,
            "before_send": self._before_send(config.event_filter),
        }
        options.update(self.client_options)
        sentry_sdk.init(**options)
        self.init_count += 1
        logger.debug(f"Sentry client created for environment {config.environment}")

    @staticmethod
    def _before_send(
        event_filter: Callable[[dict[str, Any], dict[str, Any]], dict[str, Any] | None],
    ) -> Callable[[dict[str, Any], dict[str, Any]], dict[str, Any] | None]:
        def before_send(event: dict[str, Any], hint: dict[str, Any]) -> dict[str, Any] | None:
            return event_filter(event, hint)

        return before_send

    def wrap_handler(
        self, handler: Callable[..., Any], options: WrapOptions
    ) -> Callable[..., Any]:
        return wrap_reporting_handler(handler, self, options)

    @contextmanager
    def open_scope(self) -> Iterator[ScopePort]:
        with sentry_sdk.new_scope() as scope:
            yield SentryScope(scope)

    def set_user(self, user: Mapping[str, Any] | None) -> None:
        sentry_sdk.set_user(dict(user) if user is not None else None)

    def add_breadcrumb(self, breadcrumb: Breadcrumb) -> None:
        sentry_sdk.add_breadcrumb(crumb=breadcrumb.to_dict())

    def flush(self, timeout_seconds: float) -> None:
        sentry_sdk.flush(timeout=timeout_seconds)
