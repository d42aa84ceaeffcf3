"""Custom exceptions for the settlement service."""


class SettlementException(Exception):
    """Base exception for the settlement service."""

    pass


class ValidationError(SettlementException):
    """Raised when validation fails."""

    pass


class InvalidAmountError(ValidationError):
    """Raised when a currency amount is negative, non-finite or fractional."""

    pass


class NotFoundError(SettlementException):
    """Raised when a resource is not found."""

    pass


class ConfigurationError(SettlementException):
    """Raised when configuration is invalid."""

    pass


class InvalidTransitionError(SettlementException):
    """Raised when a disallowed invoice status transition is attempted."""

    pass
