"""Errors raised by the Somneo integration."""
from __future__ import annotations


class SomneoError(Exception):
    """Base class for Somneo errors."""


class TransportError(SomneoError):
    """Raised when a device request fails after retries."""

    def __init__(self, message: str, status: int | None = None, retryable: bool = True):
        self.status = status
        self.retryable = retryable
        text = f"{message} (status={status})" if status is not None else message
        super().__init__(text)

    @property
    def is_client_error(self) -> bool:
        return self.status is not None and 400 <= self.status < 500


class SlotExhaustedError(SomneoError):
    """Raised when every device alarm slot is in use."""


class StaleReferenceError(SomneoError):
    """Raised when the referenced entity no longer exists on the other side."""


class ConfigurationError(SomneoError):
    """Raised when options fail validation."""
