from datetime import datetime
from typing import Any

from sqlmodel import JSON, Column, Field, SQLModel

from ...domain.entities import LogEntry, LogItem


class OperationLog(SQLModel, table=True):  # type: ignore[call-arg]
    """A recorded destructive operation, e.g. tags removed from products."""

    __tablename__: str = "operation_logs"  # type: ignore[assignment]

    id: int | None = Field(default=None, primary_key=True)
    user_name: str
    operation: str = Field(index=True)
    object_type: str
    time: datetime = Field(default_factory=datetime.now, index=True)

    # Affected items in their stored shape {id, removedTags, data, success}
    value: list[dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))

    @classmethod
    def from_domain(cls, entry: LogEntry) -> "OperationLog":
        """Convert domain entity to persistence model."""
        return cls(
            id=entry.id,
            user_name=entry.user_name,
            operation=entry.operation,
            object_type=entry.object_type,
            time=entry.time,
            value=[item.to_dict() for item in entry.value],
        )

    def to_domain(self) -> LogEntry:
        """Convert persistence model to domain entity."""
        return LogEntry(
            id=self.id,
            user_name=self.user_name,
            operation=self.operation,
            object_type=self.object_type,
            time=self.time,
            value=tuple(LogItem.from_dict(item) for item in self.value or []),
        )
