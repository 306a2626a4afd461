"""Typed business-rule failures.

Every failure carries a stable ``kind`` and a human-readable ``detail``.
The HTTP layer maps them to JSON responses in ``campus_events.main``;
services never raise ``HTTPException`` themselves.
"""
from typing import Optional


class DomainError(Exception):
    kind: str = "Error"
    status_code: int = 400
    default_detail: str = "Request could not be completed"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    def to_dict(self) -> dict:
        return {
            "error": self.kind,
            "message": self.detail,
            "status_code": self.status_code,
        }


class NotFound(DomainError):
    kind = "NotFound"
    status_code = 404
    default_detail = "Resource not found"


class Forbidden(DomainError):
    kind = "Forbidden"
    status_code = 403
    default_detail = "Forbidden"


class NotOpen(DomainError):
    kind = "NotOpen"
    status_code = 400
    default_detail = "Event not open for this action"


class DeadlinePassed(DomainError):
    kind = "DeadlinePassed"
    status_code = 400
    default_detail = "Registration deadline passed"


class CapacityReached(DomainError):
    kind = "CapacityReached"
    status_code = 409
    default_detail = "Registration limit reached"


class NotEligible(DomainError):
    kind = "NotEligible"
    status_code = 403
    default_detail = "You are not eligible for this IIIT-only event"


class OutOfStock(DomainError):
    kind = "OutOfStock"
    status_code = 409
    default_detail = "Item out of stock or insufficient stock"


class LockedField(DomainError):
    kind = "LockedField"
    status_code = 403
    default_detail = "Field is locked"


class InvalidTransition(DomainError):
    kind = "InvalidTransition"
    status_code = 400
    default_detail = "Invalid status transition"


class ValidationFailed(DomainError):
    kind = "ValidationFailed"
    status_code = 422
    default_detail = "Validation failed"


class AlreadyExists(DomainError):
    kind = "AlreadyExists"
    status_code = 409
    default_detail = "Already exists"


class InvalidTicket(DomainError):
    kind = "Invalid"
    status_code = 400
    default_detail = "Ticket is not valid for check-in"
