"""Workflow error taxonomy.

Every error a caller can recover from derives from ``WorkflowError`` and carries
a stable ``kind`` plus the HTTP status the API layer renders it with.
"""

from __future__ import annotations

from fastapi import Request, status
from fastapi.responses import JSONResponse


class WorkflowError(Exception):
    kind = "workflow_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(WorkflowError):
    """Malformed or missing required input."""

    kind = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST


class UnknownResultCode(ValidationError):
    kind = "unknown_result_code"


class NotFoundError(WorkflowError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class InvalidTransition(WorkflowError):
    """No transition rule exists for the requested move."""

    kind = "invalid_transition"
    status_code = status.HTTP_409_CONFLICT


class MissingComment(WorkflowError):
    kind = "missing_comment"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class MissingAction(WorkflowError):
    kind = "missing_action"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class AlreadyDecided(WorkflowError):
    kind = "already_decided"
    status_code = status.HTTP_409_CONFLICT


class ConflictError(WorkflowError):
    """The report changed underneath the caller. Re-read and retry."""

    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT


class AuthorizationError(WorkflowError):
    kind = "authorization_error"
    status_code = status.HTTP_403_FORBIDDEN


class CatalogConfigurationError(RuntimeError):
    """Status catalog or transition table is unusable. Raised at startup."""


async def workflow_error_handler(request: Request, exc: WorkflowError) -> JSONResponse:
    """Render a WorkflowError as ``{"detail": ..., "kind": ...}``."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "kind": exc.kind},
    )
