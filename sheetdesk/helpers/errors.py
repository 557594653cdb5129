"""
Error types raised by the SheetDesk client and controllers.

Controllers catch these at the call site and turn them into a notification;
they never escape a controller operation for a remote failure.
"""

from typing import Optional


class SheetDeskError(Exception):
    """Base class for all SheetDesk errors."""


class ValidationError(SheetDeskError):
    """Local input was rejected (bad extension or size). Not retryable as-is."""


class TransportError(SheetDeskError):
    """No response was received from the service (connectivity, timeout)."""


class ServerError(SheetDeskError):
    """The service answered with an error response."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self):
        if self.status_code is None:
            return self.message
        return f"{self.status_code}: {self.message}"


class StateError(SheetDeskError):
    """An operation was attempted in a state that does not allow it."""
