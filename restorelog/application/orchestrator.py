"""Restore orchestration for logged removals.

A restore batch replays every restorable item of one log entry through the
resolver and the executor, strictly one job after another, then consumes
the log entry with a single deletion request. Job failures are recorded on
the job and counted as completed; they never abort the batch.
"""

from collections.abc import Awaitable, Callable
from typing import Final

from ..domain.entities import (
    BatchPhase,
    BatchReport,
    JobFailure,
    JobStatus,
    LogEntry,
    RestoreBatchState,
    RestoreJob,
    RestoreKind,
)
from ..domain.exceptions import RestoreError, RestoreInProgressError
from ..logging_config import get_logger
from ..logging_utils import log_restore_job
from ..metrics import record_batch_finished, record_batch_started, record_restore_job
from .executor import MutationExecutor
from .resolver import IdentifierResolver

logger: Final = get_logger(__name__)

DeleteEntry = Callable[[int], Awaitable[bool]]
ProgressListener = Callable[[RestoreBatchState, RestoreJob], None]


def expand_restore_jobs(entry: LogEntry) -> list[RestoreJob]:
    """Build the ordered restore jobs for a log entry.

    Tag entries only contribute items that still have removed tags; every
    other entry only contributes items whose metafield has a namespace and
    a key.
    """
    jobs = []
    for item in entry.value:
        if entry.is_tag_operation():
            if item.removed_tags:
                jobs.append(RestoreJob(item, entry.object_type, RestoreKind.TAGS))
        elif item.data is not None and item.data.is_restorable():
            jobs.append(RestoreJob(item, entry.object_type, RestoreKind.METAFIELD))
    return jobs


class RestoreOrchestrator:
    """Runs one restore batch at a time."""

    def __init__(
        self,
        resolver: IdentifierResolver,
        executor: MutationExecutor,
        delete_entry: DeleteEntry,
        on_progress: ProgressListener | None = None,
    ):
        self.resolver = resolver
        self.executor = executor
        self._delete_entry = delete_entry
        self._on_progress = on_progress

        self.state = RestoreBatchState()
        self.jobs: list[RestoreJob] = []
        self.last_report: BatchReport | None = None
        self._entry: LogEntry | None = None

    @property
    def busy(self) -> bool:
        return self.state.phase is not BatchPhase.IDLE

    def begin(self, entry: LogEntry) -> list[RestoreJob]:
        """Claim the orchestrator for a log entry and expand its jobs.

        Returns an empty list, leaving the orchestrator idle, when the entry
        has nothing to restore.

        Raises:
            RestoreInProgressError: If another batch has not finished yet
        """
        if self.busy:
            raise RestoreInProgressError(
                "A restore is already in progress. Please wait until it completes."
            )

        self.state.phase = BatchPhase.EXPANDING
        jobs = expand_restore_jobs(entry)
        if not jobs:
            self.state.phase = BatchPhase.IDLE
            logger.info(
                "Nothing to restore for log entry",
                log_id=entry.id,
                operation=entry.operation,
            )
            return []

        self._entry = entry
        self.jobs = jobs
        self.last_report = None
        self.state.start(entry.id, len(jobs))
        record_batch_started(entry.operation)

        logger.info(
            "Restore batch started",
            log_id=entry.id,
            operation=entry.operation,
            object_type=entry.object_type,
            total=len(jobs),
        )
        return jobs

    async def run(self, entry: LogEntry) -> BatchReport | None:
        """Restore every item of a log entry and consume the entry."""
        if not self.begin(entry):
            return None
        return await self.drive()

    async def drive(self) -> BatchReport:
        """Process the claimed batch job by job, then finalize it."""
        if self.state.phase is not BatchPhase.RUNNING or self._entry is None:
            raise RuntimeError("No restore batch has been started")

        for job in self.jobs:
            await self._run_job(job)
            self.state.record_done()
            if self._on_progress is not None:
                self._on_progress(self.state, job)

        return await self._finalize()

    async def _run_job(self, job: RestoreJob) -> None:
        item = job.source_item
        try:
            job.status = JobStatus.RESOLVING
            job.resolved_id = await self.resolver.resolve(
                job.object_type, item.id, job.kind
            )

            job.status = JobStatus.EXECUTING
            outcome = await self.executor.execute(job.resolved_id, job)
        except RestoreError as e:
            job.mark_failed(str(e))
        except Exception as e:
            logger.error(
                "Unexpected error while restoring item",
                item_id=item.id,
                kind=job.kind.value,
                error=str(e),
                exc_info=True,
            )
            job.mark_failed(f"Unexpected error: {e}")
        else:
            if outcome.success:
                job.mark_succeeded()
            else:
                job.mark_failed(
                    "; ".join(err.message for err in outcome.errors),
                    outcome.errors,
                )

        log_restore_job(
            job.kind.value,
            item.id,
            job.status is JobStatus.SUCCEEDED,
            error=job.error,
            resolved_id=job.resolved_id,
        )
        record_restore_job(job.kind.value, job.status is JobStatus.SUCCEEDED)

    async def _finalize(self) -> BatchReport:
        entry = self._entry
        assert entry is not None

        self.state.phase = BatchPhase.FINALIZING
        deleted = False
        try:
            if entry.id is None:
                logger.warning("Restored log entry has no id and cannot be deleted")
            else:
                deleted = await self._delete_entry(entry.id)
                if not deleted:
                    logger.error(
                        "Restore failed: log entry could not be deleted",
                        log_id=entry.id,
                    )
        except Exception as e:
            logger.error(
                "Restore failed: deleting the log entry raised",
                log_id=entry.id,
                error=str(e),
            )
        finally:
            self.state.phase = BatchPhase.IDLE
            self._entry = None
            record_batch_finished(deleted)

        failures = [
            JobFailure(
                item_id=job.source_item.id,
                kind=job.kind,
                error=job.error or "Restore failed",
                user_errors=job.user_errors,
            )
            for job in self.jobs
            if job.status is JobStatus.FAILED
        ]
        report = BatchReport(
            entry_id=entry.id,
            total=self.state.total,
            completed=self.state.completed,
            succeeded=self.state.completed - len(failures),
            failures=failures,
            deleted=deleted,
        )
        self.last_report = report

        logger.info(
            "Restore batch finished",
            log_id=entry.id,
            total=report.total,
            succeeded=report.succeeded,
            failed=len(failures),
            deleted=deleted,
        )
        return report
