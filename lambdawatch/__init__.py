"""Error tracking for serverless function handlers.

Wraps handlers with Sentry error capture when a DSN is configured and
degrades to local logging when it is not.
"""

from lambdawatch.core.invocation import LocalInvocationContext
from lambdawatch.main import (
    add_breadcrumb,
    capture_exception,
    capture_message,
    configure_logging,
    get_adapter,
    initialize,
    set_user,
    wrap_handler,
)

__all__ = [
    "LocalInvocationContext",
    "add_breadcrumb",
    "capture_exception",
    "capture_message",
    "configure_logging",
    "get_adapter",
    "initialize",
    "set_user",
    "wrap_handler",
]
