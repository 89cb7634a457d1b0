"""Errors raised by the domain and its adapters."""

from __future__ import annotations


class RecordMappingError(ValueError):
    """Raised when one raw record cannot be mapped onto a canonical record."""


class InputFileError(RuntimeError):
    """Raised when an input file is missing or structurally unusable."""


class ApiError(RuntimeError):
    """Raised when the Public Art API call fails.

    ``transient`` marks failures worth retrying: network errors, timeouts, HTTP 5xx
    and 429.
    """

    def __init__(
        self, message: str, *, status_code: int | None = None, transient: bool = False
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.transient = transient


class OperationCancelled(RuntimeError):
    """Raised when a guarded operation is interrupted by cancellation."""
