"""Telemetry adapter: lazy backend initialization and safe capture helpers.

The adapter decides once whether telemetry is enabled, wraps function
handlers when it is, and exposes capture/context helpers that degrade
to local log records when it is not. No operation here raises into the
caller: telemetry errors are absorbed, business errors pass through the
handler wrapper unchanged.
"""

import logging
from collections.abc import Callable, Mapping
from typing import Any

from .models import Breadcrumb, Level, ScopeContext, TelemetryConfig
from .once import InitializationGuard
from .ports import ScopePort, TelemetryBackendPort

logger = logging.getLogger(__name__)


class TelemetryAdapter:
    """Lazily initialized facade over a TelemetryBackendPort."""

    def __init__(
        self,
        backend: TelemetryBackendPort,
        config_source: Callable[[], TelemetryConfig],
        log: logging.Logger | None = None,
    ):
        """Initialize the adapter without touching the backend.

        Args:
            backend: Error-tracking backend implementation.
            config_source: Returns the current TelemetryConfig; read on
                every initialize() call.
            log: Sink for local log records (defaults to this module's logger).
        """
        self.backend = backend
        self.config_source = config_source
        self.log = log or logger
        self._guard = InitializationGuard()
        self._config: TelemetryConfig | None = None

    @property
    def enabled(self) -> bool:
        """Whether the backend has been successfully initialized."""
        return self._guard.is_set

    @property
    def config(self) -> TelemetryConfig | None:
        """Config the backend was initialized with, if any."""
        return self._config

    def initialize(self) -> bool:
        """Initialize the backend once, if a credential is configured.

        Returns:
            True if telemetry is enabled, False if it is disabled because
            the credential is missing or initialization failed.
        """
        try:
            config = self.config_source()
        except Exception as e:
            self.log.error(f"Error loading telemetry configuration: {e}", exc_info=True)
            return False

        if not config.has_credential:
            self.log.warning("Telemetry endpoint credential not configured, error tracking disabled")
            return False

        if self._guard.is_set:
            return True

        try:
            return self._guard.run(lambda: self._start(config))
        except Exception as e:
            self.log.error(f"Error initializing telemetry: {e}", exc_info=True)
            return False

    def _start(self, config: TelemetryConfig) -> bool:
        try:
            self.backend.init(config)
        except Exception as e:
            self.log.error(f"Error initializing telemetry backend: {e}", exc_info=True)
            return False

        self._config = config
        self.log.info(
            f"Telemetry initialized (environment={config.environment}, "
            f"sample_rate={config.sample_rate})"
        )
        return True

    def wrap_handler(self, handler: Callable[..., Any]) -> Callable[..., Any]:
        """Wrap a function handler with error tracking.

        Initializes the backend first, so wrapping does not depend on an
        earlier initialize() call. When telemetry is disabled the handler
        is returned unchanged. Usable as a decorator.
        """
        if not self.initialize():
            return handler

        config = self._config
        if config is None:
            return handler

        try:
            return self.backend.wrap_handler(handler, config.wrap_options)
        except Exception as e:
            self.log.error(f"Error wrapping handler with telemetry: {e}", exc_info=True)
            return handler

    def capture_exception(self, error: Any, context: Any = None) -> None:
        """Report an error with optional tags, extra data and user.

        Args:
            error: The error to report, normally an exception instance.
            context: Optional mapping (or ScopeContext) with ``tags``,
                ``extra`` and ``user`` entries. Applied to this capture only.
        """
        if not self.enabled:
            self.log.error(
                "Telemetry not initialized, error: %r",
                error,
                exc_info=error if isinstance(error, BaseException) else None,
            )
            return

        try:
            scope_context = ScopeContext.coerce(context)
            with self.backend.open_scope() as scope:
                _apply(scope, scope_context)
                if isinstance(error, BaseException):
                    scope.capture_exception(error)
                else:
                    scope.capture_message(str(error), Level.ERROR)
        except Exception as e:
            self.log.error(f"Error capturing exception to telemetry: {e}", exc_info=True)

    def capture_message(
        self, message: str, level: str | Level = "info", context: Any = None
    ) -> None:
        """Report a diagnostic message at the given level.

        Args:
            message: Free-text message.
            level: ``info``, ``warning`` or ``error`` (also ``debug`` and
                ``fatal``). Unknown levels are reported as ``info``.
            context: Optional tags/extra/user, applied to this capture only.
        """
        resolved = Level.coerce(level)
        if not self.enabled:
            self.log.info("[telemetry not initialized] %s: %s", resolved.value, message)
            return

        try:
            scope_context = ScopeContext.coerce(context)
            with self.backend.open_scope() as scope:
                _apply(scope, scope_context)
                scope.capture_message(str(message), resolved)
        except Exception as e:
            self.log.error(f"Error capturing message to telemetry: {e}", exc_info=True)

    def set_user(
        self, user_id: Any, user_data: Mapping[str, Any] | None = None
    ) -> None:
        """Set the ambient user attached to every later capture.

        ``set_user(None)`` with no extra data clears the user.
        """
        if not self.enabled:
            return

        try:
            if user_id is None and not user_data:
                self.backend.set_user(None)
                return
            record = {"id": user_id}
            if isinstance(user_data, Mapping):
                record.update(user_data)
            self.backend.set_user(record)
        except Exception as e:
            self.log.error(f"Error setting telemetry user: {e}", exc_info=True)

    def add_breadcrumb(
        self,
        message: str,
        category: str = "default",
        level: str | Level = "info",
        data: Mapping[str, Any] | None = None,
    ) -> None:
        """Append a breadcrumb to the ambient trail."""
        if not self.enabled:
            return

        try:
            self.backend.add_breadcrumb(
                Breadcrumb(
                    message=str(message),
                    category=category or "default",
                    level=Level.coerce(level),
                    data=dict(data) if isinstance(data, Mapping) else {},
                )
            )
        except Exception as e:
            self.log.error(f"Error adding telemetry breadcrumb: {e}", exc_info=True)


def _apply(scope: ScopePort, context: ScopeContext) -> None:
    for key, value in context.tags.items():
        scope.set_tag(key, value)
    for key, value in context.extra.items():
        scope.set_extra(key, value)
    if context.user:
        scope.set_user(context.user)
