from datetime import datetime
from typing import Any, Final

from fastapi import APIRouter, Depends, Form, Path, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from ..application.count_service import fetch_resource_count_for_tags, parse_tags
from ..application.executor import MutationExecutor
from ..application.log_service import delete_log, get_logs, restore_row
from ..application.log_view import LogViewController, ModalState, PopupState
from ..application.resolver import IdentifierResolver
from ..domain.entities import JobFailure, LogEntry, RestoreBatchState
from ..domain.exceptions import LogEntryNotFoundError, TransportError, ValidationError
from ..infrastructure.database.database import get_session
from ..infrastructure.shopify.client import AdminApiClient
from ..logging_config import get_logger
from .dependencies import get_admin_client, get_executor, get_log_view, get_resolver

logger: Final = get_logger(__name__)

api_router: Final = APIRouter(
    prefix="/api",
    tags=["logs"],
    responses={
        400: {"description": "Bad Request - Invalid input data"},
        500: {"description": "Internal Server Error - Backend failure"},
    },
)

history_router: Final = APIRouter(
    prefix="/api/v1/history",
    tags=["history"],
    responses={
        400: {"description": "Bad Request - Invalid input data"},
        404: {"description": "Not Found - Log entry does not exist"},
        409: {"description": "Conflict - A restore is already in progress"},
    },
)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Response Models
class LogEntryResponse(CamelModel):
    """A logged destructive operation."""

    id: int | None = Field(description="Log row identifier")
    user_name: str = Field(description="Operator who performed the removal")
    operation: str = Field(
        description="Logged operation", examples=["Tags-removed", "Metafield-cleared"]
    )
    object_type: str = Field(description="Type of the affected objects")
    time: datetime = Field(description="When the removal happened")
    value: list[dict[str, Any]] = Field(
        description="Affected items as {id, removedTags, data, success}"
    )

    @classmethod
    def from_entry(cls, entry: LogEntry) -> "LogEntryResponse":
        return cls(
            id=entry.id,
            user_name=entry.user_name,
            operation=entry.operation,
            object_type=entry.object_type,
            time=entry.time,
            value=[item.to_dict() for item in entry.value],
        )


class LogListResponse(CamelModel):
    logs: list[LogEntryResponse] = Field(description="Log entries, newest first")


class TagCountResponse(CamelModel):
    success: bool = Field(description="Always true; failing tags count as zero")
    resource: str | None = Field(description="Counted resource")
    tag_count: int = Field(description="Sum of the per-tag counts")


class ModalResponse(CamelModel):
    is_open: bool
    title: str
    message: str
    target_id: int | None = Field(description="Log entry awaiting confirmation")

    @classmethod
    def from_state(cls, modal: ModalState) -> "ModalResponse":
        return cls(
            is_open=modal.is_open,
            title=modal.title,
            message=modal.message,
            target_id=modal.target.id if modal.target else None,
        )


class JobFailureResponse(CamelModel):
    item_id: str
    kind: str
    error: str
    user_errors: list[dict[str, Any]]

    @classmethod
    def from_failure(cls, failure: JobFailure) -> "JobFailureResponse":
        return cls(
            item_id=failure.item_id,
            kind=failure.kind.value,
            error=failure.error,
            user_errors=[e.to_dict() for e in failure.user_errors],
        )


class PopupResponse(CamelModel):
    visible: bool
    title: str = Field(examples=["Restoring...", "Restore Completed"])
    completed: int
    total: int
    percent: float
    succeeded: int | None = Field(description="Set once the batch has finished")
    failures: list[JobFailureResponse]
    can_dismiss: bool

    @classmethod
    def from_state(cls, popup: PopupState) -> "PopupResponse":
        return cls(
            visible=popup.visible,
            title=popup.title,
            completed=popup.completed,
            total=popup.total,
            percent=popup.percent,
            succeeded=popup.succeeded,
            failures=[JobFailureResponse.from_failure(f) for f in popup.failures],
            can_dismiss=popup.can_dismiss,
        )


class BatchResponse(CamelModel):
    phase: str
    active: bool
    total: int
    completed: int

    @classmethod
    def from_state(cls, state: RestoreBatchState) -> "BatchResponse":
        return cls(
            phase=state.phase.value,
            active=state.active,
            total=state.total,
            completed=state.completed,
        )


class HistoryStateResponse(CamelModel):
    """Everything the history page renders."""

    logs: list[LogEntryResponse]
    selected_row: int | None
    modal: ModalResponse
    popup: PopupResponse
    batch: BatchResponse
    refreshing: bool

    @classmethod
    def from_view(cls, view: LogViewController) -> "HistoryStateResponse":
        return cls(
            logs=[LogEntryResponse.from_entry(e) for e in view.logs],
            selected_row=view.selected_row,
            modal=ModalResponse.from_state(view.modal),
            popup=PopupResponse.from_state(view.popup),
            batch=BatchResponse.from_state(view.orchestrator.state),
            refreshing=view.refreshing,
        )


# Log endpoints used by the history page


@api_router.get(
    "/check/db",
    response_model=LogListResponse,
    summary="List operation logs",
)
async def api_list_logs(*, session: Session = Depends(get_session)) -> LogListResponse:
    """Return every stored log entry, newest first."""
    return LogListResponse(
        logs=[LogEntryResponse.from_entry(e) for e in get_logs(session)]
    )


@api_router.post(
    "/remove/db",
    summary="Delete a log row",
    description="""
    Delete one log row by its numeric id.

    `rowId` must be a positive integer written with digits only; decimal or
    exponent forms such as `12.0` or `1e2` are rejected. A missing or invalid
    `rowId` is rejected with 400 before the database is touched. A row that
    cannot be deleted yields 500.
    """,
)
async def api_remove_log(
    *,
    session: Session = Depends(get_session),
    row_id: str | None = Form(None, alias="rowId"),
) -> JSONResponse:
    try:
        delete_log(session, row_id)
    except ValidationError as e:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "message": str(e)},
        )
    except (LogEntryNotFoundError, SQLAlchemyError) as e:
        logger.error("Delete error", row_id=row_id, error=str(e))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "message": "Delete failed", "error": str(e)},
        )
    return JSONResponse(content={"success": True})


@api_router.post(
    "/restore/db",
    summary="Restore one logged item",
    description="""
    Restore the first element of the JSON-encoded `rows` array.

    Rows carrying `tags` get their tags added back; rows carrying `namespace`
    and `key` get their metafield set again. Non-canonical ids are resolved
    first. Failures are reported in `errors` with `success: false`.
    """,
)
async def api_restore_row(
    *,
    resolver: IdentifierResolver = Depends(get_resolver),
    executor: MutationExecutor = Depends(get_executor),
    rows: str | None = Form(None),
) -> JSONResponse:
    try:
        result = await restore_row(resolver, executor, rows)
    except ValidationError as e:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "errors": [{"message": str(e)}]},
        )
    except TransportError as e:
        logger.error("Restore request failed", error=str(e))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "errors": [{"message": str(e) or "Unexpected server error"}],
            },
        )
    return JSONResponse(content={"success": result.success, "errors": result.errors})


@api_router.post(
    "/get/total",
    response_model=TagCountResponse,
    summary="Count resources carrying any of the given tags",
)
async def api_count_tagged(
    *,
    client: AdminApiClient = Depends(get_admin_client),
    resource: str | None = Form(None),
    tags: str | None = Form(None),
) -> TagCountResponse:
    tag_list = parse_tags(tags)
    count = await fetch_resource_count_for_tags(client, resource, tag_list)
    return TagCountResponse(success=True, resource=resource, tag_count=count)


# History page state


@history_router.get(
    "", response_model=HistoryStateResponse, summary="Get the history page state"
)
async def api_history_state(
    *, view: LogViewController = Depends(get_log_view)
) -> HistoryStateResponse:
    return HistoryStateResponse.from_view(view)


@history_router.post(
    "/refresh", response_model=HistoryStateResponse, summary="Reload the log list"
)
async def api_history_refresh(
    *, view: LogViewController = Depends(get_log_view)
) -> HistoryStateResponse:
    view.load_logs()
    return HistoryStateResponse.from_view(view)


@history_router.post(
    "/rows/{index}/toggle",
    response_model=HistoryStateResponse,
    summary="Show or hide a row's details",
)
async def api_history_toggle_row(
    *,
    view: LogViewController = Depends(get_log_view),
    index: int = Path(description="Position of the row in the log list"),
) -> HistoryStateResponse:
    view.toggle_row(index)
    return HistoryStateResponse.from_view(view)


@history_router.post(
    "/logs/{log_id}/restore",
    response_model=HistoryStateResponse,
    summary="Ask for confirmation before restoring a log entry",
)
async def api_history_request_restore(
    *,
    view: LogViewController = Depends(get_log_view),
    log_id: int = Path(description="Log entry to restore"),
) -> HistoryStateResponse:
    view.request_restore(log_id)
    return HistoryStateResponse.from_view(view)


@history_router.post(
    "/modal/confirm",
    response_model=HistoryStateResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Confirm the pending restore",
    description="""
    Close the confirmation modal and start restoring its log entry in the
    background. Poll the history state for progress. Only one restore can run
    at a time; confirming while another is in flight yields 409.
    """,
)
async def api_history_confirm(
    *, view: LogViewController = Depends(get_log_view)
) -> HistoryStateResponse:
    view.confirm_restore()
    return HistoryStateResponse.from_view(view)


@history_router.post(
    "/modal/cancel",
    response_model=HistoryStateResponse,
    summary="Dismiss the confirmation modal",
)
async def api_history_cancel(
    *, view: LogViewController = Depends(get_log_view)
) -> HistoryStateResponse:
    view.cancel_restore()
    return HistoryStateResponse.from_view(view)


@history_router.post(
    "/popup/dismiss",
    response_model=HistoryStateResponse,
    summary="Close the restore progress popup",
)
async def api_history_dismiss_popup(
    *, view: LogViewController = Depends(get_log_view)
) -> HistoryStateResponse:
    view.dismiss_popup()
    return HistoryStateResponse.from_view(view)
