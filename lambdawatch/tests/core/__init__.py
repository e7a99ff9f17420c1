"""Unit tests for core adapter logic.

These tests exercise the core without a real tracking backend.
The backend port is replaced with the in-memory fake from tests/fakes/.
"""
