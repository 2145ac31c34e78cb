"""Domain errors raised by the blood services and rendered by the JSON API."""

from __future__ import annotations

from typing import Optional


class WorkflowError(Exception):
    """Base class for every error the API reports back to the operator."""

    code = "error"
    http_status = 400
    default_message = "The operation could not be completed."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)

    def to_dict(self) -> dict:
        return {"detail": str(self), "code": self.code}


class ValidationFailed(WorkflowError):
    code = "invalid"
    default_message = "Submitted data is invalid."

    def __init__(self, message: Optional[str] = None, errors: Optional[dict] = None):
        super().__init__(message)
        self.errors = errors or {}

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.errors:
            data["errors"] = self.errors
        return data


class NotFound(WorkflowError):
    code = "not_found"
    http_status = 404
    default_message = "Record not found."


class InvalidState(WorkflowError):
    code = "invalid_state"
    http_status = 409
    default_message = "Record is not in a state that allows this action."


class InsufficientStock(WorkflowError):
    code = "insufficient_stock"
    http_status = 409

    def __init__(self, bloodgroup: str, available: int, requested: int):
        self.bloodgroup = bloodgroup
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient {bloodgroup} stock: available {available}, requested {requested}."
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update(
            blood_type=self.bloodgroup,
            available=self.available,
            requested=self.requested,
        )
        return data


class TransientFailure(WorkflowError):
    code = "transient_failure"
    http_status = 503
    default_message = "The database is temporarily unavailable; nothing was changed. Please retry."


class Unauthorized(WorkflowError):
    code = "unauthorized"
    http_status = 401
    default_message = "Authentication required."


class Forbidden(WorkflowError):
    code = "forbidden"
    http_status = 403
    default_message = "You do not have access to this resource."
