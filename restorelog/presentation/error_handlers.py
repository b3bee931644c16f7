"""Centralized error handling for the presentation layer."""

from fastapi import Request
from fastapi.responses import JSONResponse

from ..domain.exceptions import (
    DomainError,
    LogEntryNotFoundError,
    RestoreInProgressError,
    TransportError,
    ValidationError,
)
from .problem_details import ErrorCodes, ProblemDetail, ProblemDetailFactory

PROBLEM_MEDIA_TYPE = "application/problem+json"


def problem_response(problem: ProblemDetail) -> JSONResponse:
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(exclude_none=True),
        media_type=PROBLEM_MEDIA_TYPE,
    )


def handle_domain_error(error: DomainError, request: Request) -> JSONResponse:
    """Convert domain errors to RFC 7807 responses."""
    instance = str(request.url.path)
    problem: ProblemDetail

    if isinstance(error, ValidationError):
        field_errors = []
        if error.field:
            field_errors.append(
                {
                    "field": error.field,
                    "code": ErrorCodes.FIELD_INVALID_VALUE,
                    "message": str(error),
                }
            )
        problem = ProblemDetailFactory.validation_failed(
            detail=str(error), instance=instance, field_errors=field_errors
        )
    elif isinstance(error, LogEntryNotFoundError):
        problem = ProblemDetailFactory.resource_not_found(
            resource_type="log-entry", detail=str(error), instance=instance
        )
    elif isinstance(error, RestoreInProgressError):
        problem = ProblemDetailFactory.restore_in_progress(
            detail=str(error), instance=instance
        )
    elif isinstance(error, TransportError):
        problem = ProblemDetailFactory.bad_gateway(detail=str(error), instance=instance)
    else:
        problem = ProblemDetailFactory.internal_server_error(
            detail="An unexpected error occurred. Please try again.",
            instance=instance,
        )

    return problem_response(problem)
