class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class InsufficientBalanceError(ValidationError):
    """Raised when a leave or loan balance cannot cover the request."""


class NotFoundError(DomainError):
    """Raised when a referenced request or entity does not exist."""


class UnauthorizedApproverError(DomainError):
    """Raised when the caller is not the current required approver."""


class InvalidStateError(DomainError):
    """Raised when an action does not fit the request's current status."""


class ConcurrentModificationError(InvalidStateError):
    """Raised when another transaction changed the request first."""


class ConfigurationError(DomainError):
    """Raised when an approval chain is missing or a seat is vacant."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""
