"""
Custom exceptions for the application.
Centralized error taxonomy shared by services, repositories and controllers.

Every exception carries the HTTP status and the machine-readable error code
the API error handlers render, so controllers never translate them by hand.
"""

from typing import Dict, Optional


class ClinicError(Exception):
    """Base class for all expected, caller-facing errors."""

    status_code = 500
    code = "server_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict:
        return {"success": False, "error": self.code, "message": self.message}


class NotFoundError(ClinicError):
    """Raised when a referenced entity id does not exist."""

    status_code = 404
    code = "not_found"

    def __init__(self, entity: str, entity_id) -> None:
        super().__init__(f"{entity} with ID {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class PermissionDeniedError(ClinicError):
    """Raised when an authenticated principal may not touch a resource."""

    status_code = 403
    code = "permission_denied"

    def __init__(self, message: str = "You do not have permission to access this resource") -> None:
        super().__init__(message)


class ValidationError(ClinicError):
    """Raised when input breaks a field rule.

    ``errors`` maps each offending field to a human-readable message.
    """

    status_code = 400
    code = "validation_error"

    def __init__(
        self, errors: Dict[str, str], message: Optional[str] = None
    ) -> None:
        super().__init__(message or "Validation failed")
        self.errors = dict(errors)

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls({field: message})

    def to_dict(self) -> Dict:
        body = super().to_dict()
        body["errors"] = self.errors
        return body


class ConflictError(ClinicError):
    """Raised on uniqueness or referential-integrity violations."""

    status_code = 409
    code = "conflict"

    def __init__(
        self,
        message: str = "Operation denied: a record with duplicate data exists or it has active dependencies",
    ) -> None:
        super().__init__(message)


class AuthenticationError(ClinicError):
    """Raised when credentials or tokens are missing or invalid."""

    status_code = 401
    code = "unauthorized"

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)
