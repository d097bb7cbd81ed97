"""Module: errors.

Typed failures raised by the admin operations. Each carries the HTTP status it
maps to and an optional ``details`` payload; ``portal.main`` renders them as
``{"error": message, "details": details}``.
"""

from typing import Any


class PortalError(Exception):
    status_code = 400

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.message, "details": self.details}


class Unauthorized(PortalError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized", details: dict[str, Any] | None = None):
        super().__init__(message, details)


class InsufficientRoles(PortalError):
    status_code = 403

    def __init__(self, message: str = "No roles assigned to caller", details: dict[str, Any] | None = None):
        super().__init__(message, details)


class InsufficientPermissions(PortalError):
    status_code = 403

    def __init__(self, message: str = "Insufficient permissions", details: dict[str, Any] | None = None):
        super().__init__(message, details)


class ValidationError(PortalError):
    status_code = 400


class NotFound(PortalError):
    status_code = 404


class Conflict(PortalError):
    status_code = 409


class InternalError(PortalError):
    status_code = 500


# Raised when a cleanup step fails; details always name the step.
class CleanupFailed(InternalError):
    def __init__(self, step: str, message: str | None = None):
        super().__init__(message or f"Cleanup step '{step}' failed", {"step": step})
        self.step = step
