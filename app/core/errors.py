"""Domain error taxonomy shared by services and the HTTP layer."""
from enum import Enum


class AppError(Exception):
    """Base class for failures reported to the caller as structured errors."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class AuthReason(str, Enum):
    MISSING = "missing"
    INVALID = "invalid"
    EXPIRED = "expired"
    INACTIVE = "inactive"


class ValidationReason(str, Enum):
    OUT_OF_RANGE = "out_of_range"
    MISSING_FIELD = "missing_field"
    EMPTY_FIELD = "empty_field"


class NotFoundResource(str, Enum):
    MODULE = "module"
    USER = "user"
    SESSION = "session"


class AuthError(AppError):
    status_code = 401
    code = "UNAUTHORIZED"

    def __init__(self, reason: AuthReason, message: str | None = None):
        super().__init__(message or f"Authentication failed: {reason.value}", {"reason": reason.value})
        self.reason = reason


class ValidationError(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(self, reason: ValidationReason, field: str, message: str):
        super().__init__(message, {"reason": reason.value, "field": field})
        self.reason = reason
        self.field = field


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, resource: NotFoundResource, message: str | None = None):
        super().__init__(message or f"{resource.value.capitalize()} not found", {"resource": resource.value})
        self.resource = resource


class ConflictError(AppError):
    """Store rejected a uniqueness violation (e.g. duplicate email)."""

    status_code = 409
    code = "CONFLICT"

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message, {"reason": "duplicate_unique", "field": field})
        self.field = field


class InternalError(AppError):
    pass
