"""Domain errors with a stable kind, mapped to HTTP responses in app.main."""


class DomainError(Exception):
    """Base exception for business rule violations."""

    kind = "domain_error"
    status_code = 400

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__doc__ or self.kind


class InvalidCredentials(DomainError):
    """Invalid credentials"""

    kind = "invalid_credentials"
    status_code = 401


class NotAuthorized(DomainError):
    """Access denied. You are not authorized to access this system."""

    kind = "not_authorized"
    status_code = 403


class InsufficientPermission(DomainError):
    """Access denied. You do not have permission for this operation."""

    kind = "insufficient_permission"
    status_code = 403


class NotFound(DomainError):
    """Resource not found"""

    kind = "not_found"
    status_code = 404


class DuplicateKey(DomainError):
    """Resource already exists"""

    kind = "duplicate_key"
    status_code = 409


class ValidationFailure(DomainError):
    """Invalid request data"""

    kind = "validation_failure"
    status_code = 400
