from __future__ import annotations

from typing import Any


class AdminError(Exception):
    """
    Base class for errors shown to the admin user.

    `message` is the localized text the console displays; `code` is stable
    for clients and tests.
    """

    code = "admin_error"
    status_code = 400

    def __init__(self, message: str, *, details: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or []


class ValidationFailed(AdminError):
    code = "validation_failed"
    status_code = 422


class UploadRejected(AdminError):
    code = "upload_rejected"
    status_code = 415


class FileTooLarge(UploadRejected):
    code = "file_too_large"
    status_code = 413


class LimitExceeded(AdminError):
    code = "limit_exceeded"
    status_code = 409


class ConfirmationRequired(AdminError):
    code = "confirmation_required"
    status_code = 428


class RecordNotFound(AdminError):
    code = "not_found"
    status_code = 404


class InvalidFormState(AdminError):
    code = "invalid_form_state"
    status_code = 409


class OperationFailed(AdminError):
    """A backend call failed; the original BackendError is kept as __cause__."""

    code = "operation_failed"
    status_code = 502
