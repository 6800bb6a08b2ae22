"""Domain exceptions for AssetHub.

Defines domain-level exceptions that represent business rule violations.
These exceptions are independent of infrastructure concerns. Presentation
layer maps them to HTTP responses in exception handlers.

Taxonomy:
    ResourceNotFoundException   -> unknown identifier (NotFound)
    ValidationException         -> malformed input or wrong upload mode (InvalidInput)
    PreconditionFailedException -> operation not allowed in the current status
    UpstreamFailureException    -> storage backend or metadata store call failed
"""

from typing import Any


class AssetHubException(Exception):
    """Base exception for all AssetHub application errors.

    All custom exceptions should inherit from this class to allow
    consistent error handling and logging. Presentation layer maps
    these to HTTP responses using message, error_code, and details.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, resource_id).
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


class ValidationException(AssetHubException):
    """Raised when input validation fails (e.g. invalid format, range, or upload mode)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class ResourceNotFoundException(AssetHubException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'file').
            resource_id: The ID that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class PreconditionFailedException(AssetHubException):
    """Raised when a file is not in the status an operation requires (e.g. download before completion)."""

    def __init__(self, message: str, file_id: str, status: str) -> None:
        super().__init__(
            message,
            "PRECONDITION_FAILED",
            {"file_id": file_id, "status": status},
        )


class InvalidStatusTransitionException(PreconditionFailedException):
    """Raised when a status change would move a file backwards in its lifecycle."""

    def __init__(self, file_id: str, current: str, target: str) -> None:
        super().__init__(
            f"Cannot move file {file_id} from {current} to {target}",
            file_id,
            current,
        )
        self.details["target_status"] = target


class UpstreamFailureException(AssetHubException):
    """Raised when the storage backend or metadata store fails.

    The underlying cause is kept in details["reason"] (and as __cause__)
    for diagnostics; callers treat it as opaque.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "UPSTREAM_FAILURE",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, error_code, details)


class SqlNotConfiguredException(AssetHubException):
    """Raised when an operation requires Postgres but DATABASE_URL is not configured."""

    def __init__(self) -> None:
        super().__init__(
            message="This operation requires a SQL database that is not configured.",
            error_code="SERVICE_UNAVAILABLE",
        )
