"""Exceptions raised by the meeting point service."""

from typing import Optional


class MeetPointError(Exception):
    """Base class for all meeting point errors"""


class ConfigurationError(MeetPointError):
    """Settings could not be loaded from the environment"""


class InvalidInputError(MeetPointError, ValueError):
    """Caller supplied input that can never succeed (e.g. an empty address)"""


class ProviderError(MeetPointError):
    """The maps provider reported a non-success outcome"""

    def __init__(self, message: str, status: Optional[str] = None):
        super().__init__(message)
        self.status = status


class GeocodingFailedError(ProviderError):
    def __init__(self, address: str, status: Optional[str] = None):
        detail = f" (status: {status})" if status else ""
        super().__init__(f"Geocoding failed for address: {address}{detail}", status)
        self.address = address


class VenueSearchFailedError(ProviderError):
    def __init__(self, status: Optional[str] = None):
        super().__init__(f"Places search failed (status: {status or 'unknown'})", status)


class ProviderUnavailableError(ProviderError):
    """The provider could not be reached at all"""


class ProviderTimeoutError(MeetPointError, TimeoutError):
    """A provider call exceeded the configured timeout"""

    def __init__(self, operation: str, timeout: float):
        super().__init__(f"{operation} timed out after {timeout:g}s")
        self.operation = operation
        self.timeout = timeout
