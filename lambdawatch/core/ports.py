"""Port interfaces for the lambdawatch telemetry adapter.

These abstract base classes define the boundary between the adapter's
core logic and the error-tracking backend. Implementations live in the
adapters/ package.

Port Interface Categories:

1. **Backend Port** (core calls out to the tracking client)
   - TelemetryBackendPort: init, handler wrapping, ambient context, flush

2. **Scope Port** (one isolated reporting context)
   - ScopePort: tags, extra, user and the capture calls bound to them
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from contextlib import AbstractContextManager
from typing import Any

from .models import Breadcrumb, Level, TelemetryConfig, WrapOptions


class ScopePort(ABC):
    """An isolated reporting context.

    Mutations made through a scope are visible only to captures made
    through that same scope, and are discarded when the scope closes.
    """

    @abstractmethod
    def set_tag(self, key: str, value: str) -> None:
        """Attach an indexed tag to events captured in this scope."""

    @abstractmethod
    def set_extra(self, key: str, value: Any) -> None:
        """Attach arbitrary extra data to events captured in this scope."""

    @abstractmethod
    def set_user(self, user: Mapping[str, Any] | None) -> None:
        """Attach a user identity to events captured in this scope."""

    @abstractmethod
    def capture_exception(self, error: BaseException) -> None:
        """Report an exception with this scope's context."""

    @abstractmethod
    def capture_message(self, message: str, level: Level) -> None:
        """Report a free-text message with this scope's context."""


class TelemetryBackendPort(ABC):
    """Port for the external error-tracking client.

    Adapters implementing this port own transport, batching, sampling
    and retry. The core only decides when to call them.
    """

    @abstractmethod
    def init(self, config: TelemetryConfig) -> None:
        """Construct and install the backend client.

        Raises:
            Exception: If the client cannot be constructed (e.g. a
                malformed credential). The core treats this as
                "telemetry disabled".
        """

    @abstractmethod
    def wrap_handler(
        self, handler: Callable[..., Any], options: WrapOptions
    ) -> Callable[..., Any]:
        """Return a handler that reports failures and flushes on exit.

        The returned callable must re-raise the original handler's
        exception unchanged and return its result unchanged.
        """

    @abstractmethod
    def open_scope(self) -> AbstractContextManager[ScopePort]:
        """Open an isolated scope, closed on every exit path."""

    @abstractmethod
    def set_user(self, user: Mapping[str, Any] | None) -> None:
        """Set (or clear, with None) the ambient user for later captures."""

    @abstractmethod
    def add_breadcrumb(self, breadcrumb: Breadcrumb) -> None:
        """Append to the ambient breadcrumb trail."""

    @abstractmethod
    def flush(self, timeout_seconds: float) -> None:
        """Wait up to timeout_seconds for buffered events to be sent."""
