"""Pure domain entities without infrastructure dependencies."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from .constants import CANONICAL_ID_PREFIX, OPERATION_TAGS_REMOVED
from .exceptions import ValidationError


def is_canonical_id(reference: Any) -> bool:
    """Check whether a reference already uses the canonical resource-URI scheme."""
    return isinstance(reference, str) and reference.startswith(CANONICAL_ID_PREFIX)


def item_reference(raw: Any) -> str:
    """Stored item id as a string; a missing or null id becomes empty."""
    return "" if raw is None else str(raw)


def as_tag_tuple(raw: Any) -> tuple[str, ...]:
    """Normalize stored tags; a bare string is a single tag."""
    if not raw:
        return ()
    if isinstance(raw, str):
        return (raw,)
    return tuple(str(t) for t in raw)


def validate_row_id(raw: Any) -> int:
    """Validate a log row id received from a client.

    Pure domain validation without logging or external dependencies.

    Raises:
        ValidationError: If the id is missing, non-numeric or not positive
    """
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise ValidationError("Invalid or missing rowId", field="rowId")

    if isinstance(raw, bool):
        raise ValidationError("Invalid or missing rowId", field="rowId")

    if isinstance(raw, int):
        row_id = raw
    else:
        text = str(raw).strip()
        if not text.isdigit():
            raise ValidationError("Invalid or missing rowId", field="rowId")
        row_id = int(text)

    if row_id <= 0:
        raise ValidationError("Invalid or missing rowId", field="rowId")
    return row_id


class RestoreKind(StrEnum):
    TAGS = "tags"
    METAFIELD = "metafield"


class JobStatus(StrEnum):
    PENDING = "pending"
    RESOLVING = "resolving"
    EXECUTING = "executing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class BatchPhase(StrEnum):
    IDLE = "idle"
    EXPANDING = "expanding"
    RUNNING = "running"
    FINALIZING = "finalizing"


@dataclass(frozen=True)
class MetafieldData:
    """A cleared metafield value as recorded at removal time."""

    namespace: str | None = None
    key: str | None = None
    type: str | None = None
    value: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MetafieldData":
        return cls(
            namespace=data.get("namespace"),
            key=data.get("key"),
            type=data.get("type"),
            value=data.get("value"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "namespace": self.namespace,
            "key": self.key,
            "type": self.type,
            "value": self.value,
        }

    def is_restorable(self) -> bool:
        """A metafield can only be set again when it is fully addressed."""
        return bool(self.namespace) and bool(self.key)


@dataclass(frozen=True)
class LogItem:
    """One object touched by a logged removal."""

    id: str
    removed_tags: tuple[str, ...] = ()
    data: MetafieldData | None = None
    success: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LogItem":
        """Build an item from its stored shape ``{id, removedTags, data, success}``."""
        raw_data = data.get("data")
        return cls(
            id=item_reference(data.get("id")),
            removed_tags=as_tag_tuple(data.get("removedTags")),
            data=MetafieldData.from_dict(raw_data) if raw_data else None,
            success=bool(data.get("success", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        item: dict[str, Any] = {"id": self.id, "success": self.success}
        if self.removed_tags:
            item["removedTags"] = list(self.removed_tags)
        if self.data is not None:
            item["data"] = self.data.to_dict()
        return item


@dataclass(frozen=True)
class LogEntry:
    """A recorded destructive operation and the items it affected."""

    id: int | None
    user_name: str
    operation: str
    object_type: str
    time: datetime
    value: tuple[LogItem, ...] = ()

    def is_tag_operation(self) -> bool:
        return self.operation == OPERATION_TAGS_REMOVED


@dataclass
class UserError:
    """A field-level validation failure reported by the Admin API."""

    message: str
    field: list[str] | None = None
    code: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserError":
        raw_field = data.get("field")
        if isinstance(raw_field, str):
            raw_field = [raw_field]
        return cls(
            message=str(data.get("message", "")),
            field=list(raw_field) if raw_field else None,
            code=data.get("code"),
        )

    def to_dict(self) -> dict[str, Any]:
        error: dict[str, Any] = {"field": self.field, "message": self.message}
        if self.code is not None:
            error["code"] = self.code
        return error


@dataclass
class MutationOutcome:
    """Normalized result of one restore mutation."""

    success: bool
    errors: list[UserError] = field(default_factory=list)

    @classmethod
    def from_user_errors(cls, raw_errors: list[dict[str, Any]]) -> "MutationOutcome":
        errors = [UserError.from_dict(e) for e in raw_errors]
        return cls(success=not errors, errors=errors)


@dataclass
class RestoreJob:
    """A single item of a restore batch, tracked from pending to done."""

    source_item: LogItem
    object_type: str
    kind: RestoreKind
    resolved_id: str | None = None
    status: JobStatus = JobStatus.PENDING
    error: str | None = None
    user_errors: list[UserError] = field(default_factory=list)

    def mark_failed(self, error: str, user_errors: list[UserError] | None = None):
        self.status = JobStatus.FAILED
        self.error = error
        self.user_errors = list(user_errors or [])

    def mark_succeeded(self) -> None:
        self.status = JobStatus.SUCCEEDED
        self.error = None


@dataclass
class RestoreBatchState:
    """Progress of the restore batch currently tracked by the orchestrator."""

    phase: BatchPhase = BatchPhase.IDLE
    total: int = 0
    completed: int = 0
    entry_id: int | None = None

    @property
    def active(self) -> bool:
        return self.phase in (BatchPhase.RUNNING, BatchPhase.FINALIZING)

    def start(self, entry_id: int | None, total: int) -> None:
        if total < 0:
            raise ValueError("Batch total cannot be negative")
        self.phase = BatchPhase.RUNNING
        self.entry_id = entry_id
        self.total = total
        self.completed = 0

    def record_done(self) -> None:
        if self.completed >= self.total:
            raise ValueError("Cannot complete more jobs than the batch holds")
        self.completed += 1

    def is_complete(self) -> bool:
        return self.completed >= self.total


@dataclass
class JobFailure:
    item_id: str
    kind: RestoreKind
    error: str
    user_errors: list[UserError] = field(default_factory=list)


@dataclass
class BatchReport:
    """Summary of a finished restore batch."""

    entry_id: int | None
    total: int
    completed: int
    succeeded: int
    failures: list[JobFailure] = field(default_factory=list)
    deleted: bool = False
