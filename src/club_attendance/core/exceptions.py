class DomainError(Exception):
    """Base exception for business rule violations.

    Carries the HTTP status the API boundary answers with.
    """

    status_code = 400


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when credentials or bearer tokens are invalid."""

    status_code = 401


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403


class NotFoundError(DomainError):
    """Raised when a referenced session, user or record does not exist."""

    status_code = 404


class InvalidStateError(DomainError):
    """Raised when an action is not allowed in the entity's current state."""


class ConflictError(InvalidStateError):
    """Raised when an action would repeat one that already happened."""
