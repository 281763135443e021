"""
Error types raised by the Disney connector.

Every error carries a human-readable message and, where there is one,
the underlying cause (also chained via ``raise ... from``).
"""

from typing import Any, Optional


class ParkAPIError(Exception):
    """Base class for all connector failures."""

    def __init__(self, message: str, cause: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is None:
            return self.message
        return f"{self.message}: {self.cause}"


class ConfigurationError(ParkAPIError):
    """A required venue identifier (park id, region) is missing."""


class CredentialError(ParkAPIError):
    """Access token fetch failed, was malformed or had an implausible expiry."""


class TransportError(ParkAPIError):
    """Network failure, non-2xx status or non-JSON body from the upstream API."""


class ScheduleFetchError(ParkAPIError):
    pass


class ScheduleParseError(ParkAPIError):
    pass


class LiveDataFetchError(ParkAPIError):
    pass
