"""Reporting wrapper for serverless function handlers.

Wraps a handler so that each invocation runs inside an isolated scope,
arms a timeout warning, reports uncaught exceptions, and flushes the
backend with a bounded wait before returning. Telemetry failures inside
the wrapper are logged and never change what the handler returns or
raises.
"""

import asyncio
import functools
import inspect
import logging
from collections.abc import Callable
from contextlib import ExitStack
from typing import Any

from .deadline import TimerFactory, TimeoutWarning, daemon_timer
from .invocation import invocation_tags
from .models import Level, WrapOptions
from .ports import ScopePort, TelemetryBackendPort

logger = logging.getLogger(__name__)


def _context_from_args(args: tuple[Any, ...], kwargs: dict[str, Any]) -> Any:
    if len(args) > 1:
        return args[1]
    return kwargs.get("context")


def _handler_name(handler: Callable[..., Any]) -> str:
    module = getattr(handler, "__module__", None) or ""
    name = getattr(handler, "__qualname__", None) or getattr(
        handler, "__name__", type(handler).__name__
    )
    return f"{module}.{name}" if module else name


class _Invocation:
    """Telemetry bookkeeping for a single handler invocation."""

    def __init__(
        self,
        backend: TelemetryBackendPort,
        options: WrapOptions,
        handler_name: str,
        context: Any,
        timer_factory: TimerFactory,
    ):
        self.backend = backend
        self.options = options
        self.handler_name = handler_name
        self.tags = {"handler": handler_name, **invocation_tags(context)}
        self.scope: ScopePort | None = None
        self._stack = ExitStack()
        self.warning = TimeoutWarning(
            self._warn_timeout,
            options.timeout_warning_limit_ms,
            context=context,
            timer_factory=timer_factory,
        )

    def begin(self) -> None:
        try:
            self.scope = self._stack.enter_context(self.backend.open_scope())
            self._tag(self.scope)
        except Exception as e:
            self.scope = None
            logger.error(f"Error opening invocation scope: {e}", exc_info=True)

        try:
            self.warning.arm()
        except Exception as e:
            logger.error(f"Error arming timeout warning: {e}", exc_info=True)

    def report(self, error: BaseException) -> None:
        try:
            if self.scope is not None:
                self.scope.capture_exception(error)
            else:
                with self.backend.open_scope() as scope:
                    self._tag(scope)
                    scope.capture_exception(error)
        except Exception as e:
            logger.error(f"Error reporting handler exception: {e}", exc_info=True)

    def end(self) -> None:
        try:
            self.warning.cancel()
        except Exception as e:
            logger.error(f"Error cancelling timeout warning: {e}", exc_info=True)
        try:
            self._stack.close()
        except Exception as e:
            logger.error(f"Error closing invocation scope: {e}", exc_info=True)

    def flush(self) -> None:
        try:
            self.backend.flush(self.options.flush_timeout_seconds)
        except Exception as e:
            logger.error(f"Error flushing telemetry: {e}", exc_info=True)

    async def flush_async(self) -> None:
        await asyncio.to_thread(self.flush)

    def _tag(self, scope: ScopePort) -> None:
        for key, value in self.tags.items():
            scope.set_tag(key, value)

    def _warn_timeout(self, elapsed_ms: float) -> None:
        with self.backend.open_scope() as scope:
            self._tag(scope)
            scope.set_extra("elapsed_ms", round(elapsed_ms))
            scope.set_extra(
                "timeout_warning_limit_ms", self.options.timeout_warning_limit_ms
            )
            scope.capture_message(
                f"Possible timeout: {self.handler_name} still running "
                f"after {elapsed_ms:.0f} ms",
                Level.WARNING,
            )


def wrap_reporting_handler(
    handler: Callable[..., Any],
    backend: TelemetryBackendPort,
    options: WrapOptions,
    timer_factory: TimerFactory = daemon_timer,
) -> Callable[..., Any]:
    """Wrap handler with error reporting, a timeout warning and a bounded flush.

    Args:
        handler: Function handler, sync or ``async def``.
        backend: Backend used for scopes, captures and flushing.
        options: Timeout warning limit and flush timeout.
        timer_factory: Builds the timeout warning's timer.

    Returns:
        A callable with the handler's signature. Coroutine functions get
        a coroutine function wrapper.
    """
    name = _handler_name(handler)

    if inspect.iscoroutinefunction(handler):

        @functools.wraps(handler)
        async def async_wrapped(*args: Any, **kwargs: Any) -> Any:
            invocation = _Invocation(
                backend, options, name, _context_from_args(args, kwargs), timer_factory
            )
            invocation.begin()
            try:
                return await handler(*args, **kwargs)
            except Exception as error:
                invocation.report(error)
                raise
            finally:
                invocation.end()
                await invocation.flush_async()

        return async_wrapped

    @functools.wraps(handler)
    def wrapped(*args: Any, **kwargs: Any) -> Any:
        invocation = _Invocation(
            backend, options, name, _context_from_args(args, kwargs), timer_factory
        )
        invocation.begin()
        try:
            return handler(*args, **kwargs)
        except Exception as error:
            invocation.report(error)
            raise
        finally:
            invocation.end()
            invocation.flush()

    return wrapped
