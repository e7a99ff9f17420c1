"""Core logic for the lambdawatch telemetry adapter.

This package contains zero external dependencies. The error-tracking
backend and configuration loading are handled outside it, by the
adapters package and the composition root.
"""

from .adapter import TelemetryAdapter
from .models import (
    Breadcrumb,
    Level,
    ScopeContext,
    TelemetryConfig,
    WrapOptions,
    pass_through_event,
)

__all__ = [
    "Breadcrumb",
    "Level",
    "ScopeContext",
    "TelemetryAdapter",
    "TelemetryConfig",
    "WrapOptions",
    "pass_through_event",
]
