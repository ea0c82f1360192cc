"""
Exception hierarchy for the airpoll pipeline.

Only FetchError and PublishError are recoverable; the poll loop backs off
and retries on those. Everything else aborts the running command.
"""

from typing import Optional


class AirPollError(Exception):
    """Base class for all airpoll errors."""


class ConfigurationError(AirPollError):
    """A required input is missing or malformed."""


class GeometryError(AirPollError):
    """A geographic value violates its range or shape invariants."""


class InvalidBoundsError(GeometryError):
    """Bounds edges are out of range or the box is inverted."""


class ValidationError(AirPollError):
    """A request parameter or field name is not in the known catalog."""

    def __init__(self, message: str, token: str):
        super().__init__(message)
        self.token = token


class FetchError(AirPollError):
    """The sensor API could not be reached or returned an unusable response."""

    def __init__(self, message: str, status_code: Optional[int] = None, api_error=None):
        super().__init__(message)
        self.status_code = status_code
        self.api_error = api_error


class PublishError(AirPollError):
    """A line could not be delivered to the time-series sink."""
