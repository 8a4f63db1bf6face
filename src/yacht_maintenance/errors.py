"""Domain exceptions raised by services and rendered by the API.

Every exception carries a stable ``error_code`` and the HTTP status the API
answers with. Services never build HTTP responses themselves.
"""

from typing import Any


class YachtMaintenanceError(Exception):
    """Base class for all domain errors."""

    status_code = 500
    error_code = "ERR_INTERNAL"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NotFoundError(YachtMaintenanceError):
    """A referenced yacht, component, schedule or record does not exist."""

    status_code = 404
    error_code = "ERR_NOT_FOUND"

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} {resource_id} not found"
        super().__init__(message, {"resource": resource, "id": resource_id})


class ValidationFailedError(YachtMaintenanceError):
    """A write violates a domain constraint."""

    status_code = 422
    error_code = "ERR_VALIDATION"


class InvalidTransitionError(ValidationFailedError):
    """A lifecycle transition is not allowed from the current state."""

    status_code = 409
    error_code = "ERR_INVALID_TRANSITION"

    def __init__(self, entity: str, current: str, target: str):
        super().__init__(
            f"{entity} cannot move from '{current}' to '{target}'",
            {"current": current, "target": target},
        )


class AuthenticationRequiredError(YachtMaintenanceError):
    status_code = 401
    error_code = "ERR_AUTH_REQUIRED"


class PermissionDeniedError(YachtMaintenanceError):
    status_code = 403
    error_code = "ERR_PERMISSION_DENIED"
