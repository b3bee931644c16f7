"""Infrastructure layer - Repository implementations."""

from sqlmodel import Session, col, select

from ...domain.entities import LogEntry
from ...logging_utils import log_database_operation
from .models import OperationLog


class LogRepository:
    """Repository for operation log persistence."""

    def __init__(self, session: Session):
        self.session = session

    def add(self, entry: LogEntry) -> LogEntry:
        """Store a new log entry."""
        log_model = OperationLog.from_domain(entry)

        self.session.add(log_model)
        self.session.commit()
        self.session.refresh(log_model)

        log_database_operation(
            operation="create", table="operation_logs", log_id=log_model.id
        )
        return log_model.to_domain()

    def find_all(self) -> list[LogEntry]:
        """Get all log entries, newest first."""
        logs = self.session.exec(
            select(OperationLog).order_by(
                col(OperationLog.time).desc(), col(OperationLog.id).desc()
            )
        ).all()
        return [log.to_domain() for log in logs]

    def find_by_id(self, log_id: int) -> LogEntry | None:
        """Find log entry by ID."""
        log_model = self.session.get(OperationLog, log_id)
        return log_model.to_domain() if log_model else None

    def delete(self, log_id: int) -> bool:
        """Delete log entry by ID."""
        log_model = self.session.get(OperationLog, log_id)
        if log_model is None:
            log_database_operation(
                operation="delete",
                table="operation_logs",
                success=False,
                log_id=log_id,
                reason="not found",
            )
            return False

        self.session.delete(log_model)
        self.session.commit()
        log_database_operation(
            operation="delete", table="operation_logs", log_id=log_id
        )
        return True
