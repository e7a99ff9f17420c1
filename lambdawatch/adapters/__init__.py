"""External adapters for the lambdawatch telemetry adapter.

This package contains all external dependencies and provides
implementations of the core port interfaces.

Adapter Organization:

- backend/: Error-tracking backends (Sentry)
"""
