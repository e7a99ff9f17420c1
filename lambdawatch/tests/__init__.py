"""Test suite for lambdawatch.

Organized into three categories:

1. core/: Unit tests for core adapter logic
   - No third-party dependencies, fast execution
   - Uses the in-memory fake backend

2. adapters/: Integration tests for backend implementations
   - Runs sentry-sdk against an in-memory transport

3. fakes/: Port implementations for testing
"""
