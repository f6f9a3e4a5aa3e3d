"""Shared contracts for the TaskTrack service.

Provides the response envelope, the error taxonomy, declarative request
parsing, settings, and the Pydantic models that cross component boundaries.
"""
