"""Integration tests for backend implementations.

These tests run the real sentry-sdk client against an in-memory
transport to validate translation between core models and Sentry events.
"""
