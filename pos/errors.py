"""Custom domain exceptions for the application."""

# Stable, machine-readable error codes for API consumers.
NOT_FOUND = "NOT_FOUND"
DUPLICATE_RESOURCE = "DUPLICATE_RESOURCE"
VALIDATION_ERROR = "VALIDATION_ERROR"
FORBIDDEN = "FORBIDDEN"
UNAUTHORIZED = "UNAUTHORIZED"
CONFLICT = "CONFLICT"


class DomainError(Exception):
    """Base exception for domain/business logic errors."""

    pass


class NotFoundError(DomainError):
    """Raised when a requested resource does not exist (or belongs to another tenant)."""

    pass


class DuplicateResourceError(DomainError):
    """Raised when attempting to create or update a resource that would violate a uniqueness constraint."""

    pass


class DomainValidationError(DomainError):
    """Raised when business rules or domain validation fail (e.g. a holiday without a date)."""

    pass


class ForbiddenError(DomainError):
    """Raised when the caller is authenticated but not allowed to act on the resource."""

    pass


class UnauthorizedError(DomainError):
    """Raised when the caller could not be authenticated."""

    pass


class ConcurrencyConflictError(DomainError):
    """Raised when a versioned write loses against a concurrent writer."""

    pass
