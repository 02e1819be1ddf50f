"""
Domain error taxonomy of the entitlement & progress engine.

Services raise these plain exceptions; the HTTP layer translates them into
typed responses (see ``academy_backend.api.exceptions``).
"""

from typing import Any, Optional


class AcademyError(Exception):
    """Base class for all recoverable engine failures."""

    code = "error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__

    def to_detail(self) -> dict:
        return {"code": self.code, "message": self.message}


class AccessDenied(AcademyError):
    """Entitlement is insufficient for the requested content or action."""

    code = "access_denied"


class Forbidden(AcademyError):
    """Capability check failed for an administrative operation."""

    code = "forbidden"


class EnrollmentRequired(AcademyError):
    """The operation needs an enrollment that does not exist."""

    code = "enrollment_required"


class NotFound(AcademyError):
    """Referenced course/module/lesson/user does not exist."""

    code = "not_found"

    def __init__(self, entity_type: str, entity_id: Any):
        super().__init__(f"{entity_type} with id {entity_id} not found")
        self.entity_type = entity_type
        self.entity_id = entity_id


class InvalidOrder(AcademyError):
    """Reorder target index is out of range."""

    code = "invalid_order"


class InvalidRequest(AcademyError):
    """Payload is well-formed JSON but not acceptable to the engine."""

    code = "invalid_request"


class Conflict(AcademyError):
    """Concurrent structural mutation detected; the caller should retry."""

    code = "conflict"


class InvariantViolation(Exception):
    """Internal invariant broken. Aborts the operation instead of persisting corrupt state."""
