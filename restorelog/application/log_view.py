"""State behind the restore history page.

The controller owns what the operator sees: the log list, the expanded
detail row, the confirmation modal and the restore progress popup. A
confirmed restore runs as a background task; once it has consumed the log
entry, exactly one debounced reload of the log list is scheduled and the
popup can be dismissed only after that reload has landed.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Final

from fastapi.concurrency import run_in_threadpool
from sqlmodel import Session

from ..config import settings
from ..domain.constants import (
    RESTORE_BANNER_DONE,
    RESTORE_BANNER_RUNNING,
    RESTORE_MODAL_MESSAGE,
    RESTORE_MODAL_TITLE,
)
from ..domain.entities import BatchReport, JobFailure, LogEntry
from ..domain.exceptions import (
    LogEntryNotFoundError,
    RestoreInProgressError,
    ValidationError,
)
from ..infrastructure.database.repositories import LogRepository
from ..logging_config import get_logger
from .executor import MutationExecutor
from .orchestrator import RestoreOrchestrator
from .resolver import IdentifierResolver

logger: Final = get_logger(__name__)

SessionFactory = Callable[[], Session]


@dataclass
class ModalState:
    is_open: bool = False
    title: str = ""
    message: str = ""
    target: LogEntry | None = None


@dataclass
class PopupState:
    visible: bool
    title: str
    completed: int
    total: int
    succeeded: int | None = None
    failures: list[JobFailure] = field(default_factory=list)
    can_dismiss: bool = False

    @property
    def percent(self) -> float:
        if self.total == 0:
            return 100.0
        return round(self.completed / self.total * 100, 1)


class LogViewController:
    def __init__(
        self,
        resolver: IdentifierResolver,
        executor: MutationExecutor,
        session_factory: SessionFactory,
        refresh_debounce: float | None = None,
    ):
        self._session_factory = session_factory
        self._refresh_debounce = (
            settings.refresh_debounce_seconds
            if refresh_debounce is None
            else refresh_debounce
        )
        self.orchestrator = RestoreOrchestrator(
            resolver, executor, delete_entry=self._delete_entry
        )

        self.logs: list[LogEntry] = []
        self.selected_row: int | None = None
        self.modal = ModalState()
        self.popup_visible = False

        self._batch_task: asyncio.Task[BatchReport] | None = None
        self._refresh_task: asyncio.Task[list[LogEntry]] | None = None

    # Log list

    def load_logs(self) -> list[LogEntry]:
        """Replace the visible log list with the stored one."""
        with self._session_factory() as session:
            self.logs = LogRepository(session).find_all()

        if self.selected_row is not None and self.selected_row >= len(self.logs):
            self.selected_row = None
        logger.debug("Log list loaded", count=len(self.logs))
        return self.logs

    def toggle_row(self, index: int) -> int | None:
        """Expand a row's details, or collapse it when it is already open."""
        if index < 0 or index >= len(self.logs):
            raise ValidationError(f"No log row at index {index}", field="index")
        self.selected_row = None if self.selected_row == index else index
        return self.selected_row

    # Confirmation modal

    def request_restore(self, log_id: int) -> ModalState:
        """Ask the operator to confirm restoring a log entry."""
        entry = next((log for log in self.logs if log.id == log_id), None)
        if entry is None:
            with self._session_factory() as session:
                entry = LogRepository(session).find_by_id(log_id)
        if entry is None:
            raise LogEntryNotFoundError(f"Log entry {log_id} not found")

        self.modal = ModalState(
            is_open=True,
            title=RESTORE_MODAL_TITLE,
            message=RESTORE_MODAL_MESSAGE,
            target=entry,
        )
        return self.modal

    def cancel_restore(self) -> None:
        self.modal = ModalState()

    def confirm_restore(self) -> "asyncio.Task[BatchReport] | None":
        """Close the modal and start restoring its target in the background.

        Returns the batch task, or None when there was nothing to restore.

        Raises:
            RestoreInProgressError: If another batch is still running
        """
        entry = self.modal.target
        self.modal = ModalState()
        if entry is None:
            return None

        if not self.orchestrator.begin(entry):
            return None

        self.popup_visible = True
        self._batch_task = asyncio.create_task(self._run_batch())
        return self._batch_task

    async def wait_for_batch(self) -> BatchReport | None:
        if self._batch_task is None:
            return None
        return await self._batch_task

    async def _run_batch(self) -> BatchReport:
        report = await self.orchestrator.drive()
        if report.deleted and report.completed >= report.total:
            self.schedule_refresh()
        return report

    def _delete_entry_sync(self, log_id: int) -> bool:
        with self._session_factory() as session:
            return LogRepository(session).delete(log_id)

    async def _delete_entry(self, log_id: int) -> bool:
        # Sync session; keep it off the event loop
        return await run_in_threadpool(self._delete_entry_sync, log_id)

    # Refresh

    @property
    def refreshing(self) -> bool:
        return self._refresh_task is not None and not self._refresh_task.done()

    def schedule_refresh(self) -> "asyncio.Task[list[LogEntry]]":
        """Schedule one debounced reload, reusing a reload that is still pending."""
        if self._refresh_task is not None and not self._refresh_task.done():
            return self._refresh_task
        self._refresh_task = asyncio.create_task(self._debounced_refresh())
        return self._refresh_task

    async def wait_for_refresh(self) -> list[LogEntry]:
        if self._refresh_task is None:
            return self.logs
        return await self._refresh_task

    async def _debounced_refresh(self) -> list[LogEntry]:
        await asyncio.sleep(self._refresh_debounce)
        return self.load_logs()

    # Progress popup

    @property
    def popup(self) -> PopupState:
        state = self.orchestrator.state
        report = self.orchestrator.last_report
        running = state.completed < state.total or state.active

        return PopupState(
            visible=self.popup_visible,
            title=RESTORE_BANNER_RUNNING if running else RESTORE_BANNER_DONE,
            completed=state.completed,
            total=state.total,
            succeeded=report.succeeded if report else None,
            failures=list(report.failures) if report else [],
            can_dismiss=not running and not self.refreshing,
        )

    def dismiss_popup(self) -> None:
        if not self.popup.can_dismiss:
            raise RestoreInProgressError(
                "The restore is still running. Please wait until it completes."
            )
        self.popup_visible = False
