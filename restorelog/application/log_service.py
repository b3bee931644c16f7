from dataclasses import dataclass, field
from typing import Any, Final

from sqlmodel import Session

from ..domain.entities import (
    LogEntry,
    LogItem,
    MetafieldData,
    RestoreJob,
    RestoreKind,
    as_tag_tuple,
    item_reference,
)
from ..domain.exceptions import LogEntryNotFoundError, ResolutionError
from ..infrastructure.database.repositories import LogRepository
from ..logging_config import get_logger
from .executor import MutationExecutor
from .resolver import IdentifierResolver
from .validation import parse_restore_rows, validate_row_id_with_logging

logger: Final = get_logger(__name__)


@dataclass
class RowRestoreResult:
    success: bool
    errors: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def failed(cls, message: str) -> "RowRestoreResult":
        return cls(success=False, errors=[{"message": message}])


def get_logs(session: Session) -> list[LogEntry]:
    return LogRepository(session).find_all()


def delete_log(session: Session, raw_row_id: Any) -> int:
    """Delete a log row by its client-supplied id.

    Raises:
        ValidationError: If the id is missing or non-numeric
        LogEntryNotFoundError: If no row has that id
    """
    row_id = validate_row_id_with_logging(raw_row_id)

    if not LogRepository(session).delete(row_id):
        raise LogEntryNotFoundError(f"Log entry {row_id} not found")

    logger.info("Log entry deleted", log_id=row_id)
    return row_id


def _job_from_row(row: dict[str, Any]) -> RestoreJob | None:
    """Pick the restore kind from the row shape: ``tags`` or ``namespace`` + ``key``."""
    object_type = str(row.get("objectType") or "")
    item_id = item_reference(row.get("id"))

    if row.get("tags"):
        item = LogItem(id=item_id, removed_tags=as_tag_tuple(row["tags"]))
        return RestoreJob(item, object_type, RestoreKind.TAGS)

    if row.get("namespace") and row.get("key"):
        item = LogItem(
            id=item_id,
            data=MetafieldData(
                namespace=row["namespace"],
                key=row["key"],
                type=row.get("type"),
                value=row.get("value"),
            ),
        )
        return RestoreJob(item, object_type, RestoreKind.METAFIELD)

    return None


async def restore_row(
    resolver: IdentifierResolver, executor: MutationExecutor, raw_rows: str | None
) -> RowRestoreResult:
    """Restore the first row of a JSON-encoded ``rows`` payload.

    Resolution problems and rejected shapes come back as an unsuccessful
    result. ``TransportError`` from the mutation propagates.

    Raises:
        ValidationError: If ``rows`` is not a JSON array
    """
    rows = parse_restore_rows(raw_rows)
    if not rows:
        return RowRestoreResult.failed("No row data provided")

    job = _job_from_row(rows[0])
    if job is None:
        return RowRestoreResult.failed(
            "Invalid restore request. No tags or metafields present."
        )

    try:
        job.resolved_id = await resolver.resolve(
            job.object_type, job.source_item.id, job.kind
        )
    except ResolutionError as e:
        return RowRestoreResult.failed(str(e))

    outcome = await executor.execute(job.resolved_id, job)
    if not outcome.success:
        return RowRestoreResult(
            success=False, errors=[e.to_dict() for e in outcome.errors]
        )
    return RowRestoreResult(success=True)
