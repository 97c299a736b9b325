"""
Domain-specific exception hierarchy for the availability engine.
"""


class BookingSlotsError(Exception):
    """Base class for all application-level errors."""


class InvalidInput(BookingSlotsError):
    """Raised when a request carries a malformed date or id."""


class InvalidTimeFormat(InvalidInput, ValueError):
    """Raised when a time of day cannot be parsed as HH:MM."""


class NotFound(BookingSlotsError):
    """Raised when a business or service is missing or inactive."""


class GatewayFailure(BookingSlotsError):
    """Raised when an external read fails."""


class RequestCancelled(BookingSlotsError):
    """Raised when the caller cancelled a request before slots were built."""
