"""
auth/errors.py -- Failure kinds raised by the auth core.

Each class carries the HTTP status and the stable error code the API layer
puts in the response envelope. The orchestrator and stores raise these; only
api/main.py turns them into responses.

  ValidationError      400  validation_error  malformed or missing input
  UnauthorizedError    401  unauthorized      bad credentials, bad/revoked token
  NotFoundError        404  not_found         resource lookups by collaborators
  DuplicateEntryError  409  duplicate_entry   unique constraint violated
  InternalError        500  internal_error    store/registry failures, timeouts

Layer rule: stdlib only.
"""

from __future__ import annotations

from typing import Any


class AuthError(Exception):
    """Base class for every error the auth core raises on purpose."""

    status_code: int = 500
    code: str = "internal_error"

    def __init__(self, message: str, detail: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class ValidationError(AuthError):
    status_code = 400
    code = "validation_error"


class UnauthorizedError(AuthError):
    status_code = 401
    code = "unauthorized"


class NotFoundError(AuthError):
    status_code = 404
    code = "not_found"


class DuplicateEntryError(AuthError):
    """A unique field (email or phone) is already taken.

    field names the offending column so clients can render a field-level error.
    """

    status_code = 409
    code = "duplicate_entry"

    def __init__(self, field: str) -> None:
        super().__init__(f"An account with this {field} already exists.", detail={"field": field})
        self.field = field


class InternalError(AuthError):
    status_code = 500
    code = "internal_error"
