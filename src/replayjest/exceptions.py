"""Custom exceptions raised across replay-jest."""

from __future__ import annotations


class SessionSetupError(RuntimeError):
    """Raised when a recording session is missing something it needs to start."""


class RecordingStoreError(RuntimeError):
    """Raised when the recording store cannot complete a request."""


class ConfigurationError(ValueError):
    """Raised when a configuration payload cannot be parsed."""
