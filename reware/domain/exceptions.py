"""Domain exceptions for the REWARE application.

Defines domain-level exceptions for business rule violations and for
failures of the external collaborators (identity provider, document store).
Infrastructure wraps transport errors into these; views catch them at the
call site and turn them into notifications. The HTTP layer maps them to
responses in exception handlers.
"""

from typing import Any


class RewareException(Exception):
    """Base exception for all REWARE application errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, path).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON error responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(RewareException):
    """Raised when input validation fails (missing required field, read-only field)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class AuthenticationException(RewareException):
    """Raised when sign-in, sign-up or session restore is rejected."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message, "AUTHENTICATION_ERROR")


class AuthorizationException(RewareException):
    """Raised when the identity lacks the role required for the operation."""

    def __init__(
        self,
        resource: str | None = None,
        action: str | None = None,
        message: str = "Permission denied",
    ) -> None:
        """Initialize with optional resource, action, and message.

        Args:
            resource: Optional resource type (e.g. 'user').
            action: Optional action that was attempted (e.g. 'update').
            message: Human-readable message; default used when resource/action omitted.
        """
        if resource and action:
            message = f"Permission denied: {action} on {resource}"
        details: dict[str, Any] = {}
        if resource:
            details["resource"] = resource
        if action:
            details["action"] = action
        super().__init__(message, "PERMISSION_DENIED", details)


class ResourceNotFoundException(RewareException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class IdentityProviderException(RewareException):
    """Raised when the identity provider cannot be reached or answers unexpectedly."""

    def __init__(self, reason: str) -> None:
        super().__init__(
            f"Identity provider error: {reason}",
            "IDENTITY_PROVIDER_ERROR",
            {"reason": reason},
        )


class DocumentStoreException(RewareException):
    """Base exception for document store operations."""


class DocumentNotFoundException(DocumentStoreException):
    """A write required an existing document (patch, delete, increment) and there was none."""

    def __init__(self, path: str) -> None:
        super().__init__(
            f"No document to update: {path}",
            "DOCUMENT_NOT_FOUND",
            {"path": path},
        )


class DocumentAlreadyExistsException(DocumentStoreException):
    """A create targeted an id that already exists."""

    def __init__(self, path: str) -> None:
        super().__init__(
            f"Document already exists: {path}",
            "DOCUMENT_ALREADY_EXISTS",
            {"path": path},
        )


class StoreUnavailableException(DocumentStoreException):
    """Transport or server failure talking to the document store."""

    def __init__(self, operation: str, reason: str) -> None:
        super().__init__(
            f"Document store {operation} failed: {reason}",
            "STORE_UNAVAILABLE",
            {"operation": operation, "reason": reason},
        )
