"""RFC 7807 Problem Details for API error responses."""

from typing import Final

from fastapi import status
from pydantic import BaseModel, Field

PROBLEM_BASE_URI: Final = "https://restorelog.dev/problems"


class ErrorCodes:
    """Machine-readable codes for field errors."""

    FIELD_REQUIRED: Final = "field_required"
    FIELD_INVALID_FORMAT: Final = "field_invalid_format"
    FIELD_INVALID_VALUE: Final = "field_invalid_value"


class FieldError(BaseModel):
    field: str = Field(description="Name of the offending field")
    code: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error message")


class ProblemDetail(BaseModel):
    """Base problem document."""

    type: str = Field(description="URI identifying the problem type")
    title: str = Field(description="Short summary of the problem type")
    status: int = Field(description="HTTP status code")
    detail: str | None = Field(None, description="Explanation of this occurrence")
    instance: str | None = Field(None, description="Request path that failed")


class ValidationProblemDetail(ProblemDetail):
    errors: list[FieldError] = Field(
        default_factory=list, description="Field-level validation errors"
    )


class ProblemDetailFactory:
    """Builds the problem documents used by the API."""

    @staticmethod
    def validation_failed(
        detail: str,
        instance: str | None = None,
        field_errors: list[dict[str, str]] | None = None,
    ) -> ValidationProblemDetail:
        return ValidationProblemDetail(
            type=f"{PROBLEM_BASE_URI}/validation-failed",
            title="Validation Failed",
            status=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            instance=instance,
            errors=[FieldError(**e) for e in field_errors or []],
        )

    @staticmethod
    def resource_not_found(
        resource_type: str, detail: str, instance: str | None = None
    ) -> ProblemDetail:
        return ProblemDetail(
            type=f"{PROBLEM_BASE_URI}/{resource_type}-not-found",
            title=f"{resource_type.replace('-', ' ').title()} Not Found",
            status=status.HTTP_404_NOT_FOUND,
            detail=detail,
            instance=instance,
        )

    @staticmethod
    def restore_in_progress(detail: str, instance: str | None = None) -> ProblemDetail:
        return ProblemDetail(
            type=f"{PROBLEM_BASE_URI}/restore-in-progress",
            title="Restore In Progress",
            status=status.HTTP_409_CONFLICT,
            detail=detail,
            instance=instance,
        )

    @staticmethod
    def bad_gateway(detail: str, instance: str | None = None) -> ProblemDetail:
        return ProblemDetail(
            type=f"{PROBLEM_BASE_URI}/admin-api-unavailable",
            title="Admin API Unavailable",
            status=status.HTTP_502_BAD_GATEWAY,
            detail=detail,
            instance=instance,
        )

    @staticmethod
    def internal_server_error(
        detail: str, instance: str | None = None
    ) -> ProblemDetail:
        return ProblemDetail(
            type=f"{PROBLEM_BASE_URI}/internal-error",
            title="Internal Server Error",
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            instance=instance,
        )
