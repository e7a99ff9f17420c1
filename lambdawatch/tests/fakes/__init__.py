"""Fake implementations of core ports for testing.

These in-memory implementations allow the adapter's core logic to be
tested without a real error-tracking backend:

- FakeTelemetryBackend: Recorded init calls, scopes, reports and context
- ManualTimerFactory: Timeout-warning timers fired explicitly by the test
"""

from .backend import (
    FakeScope,
    FakeTelemetryBackend,
    ManualTimer,
    ManualTimerFactory,
    Report,
)

__all__ = [
    "FakeScope",
    "FakeTelemetryBackend",
    "ManualTimer",
    "ManualTimerFactory",
    "Report",
]
