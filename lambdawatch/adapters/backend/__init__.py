"""Error-tracking backends.

Implementations:
- Sentry (sentry-sdk)
"""
