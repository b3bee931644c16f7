"""Restore metrics for the Restore Log application."""

from opentelemetry import metrics

from .logging_config import get_logger

logger = get_logger(__name__)

meter = metrics.get_meter(__name__)

# HTTP Request Metrics
http_request_duration = meter.create_histogram(
    name="http_request_duration_seconds",
    description="Duration of HTTP requests in seconds",
    unit="s",
)

http_requests_total = meter.create_counter(
    name="http_requests_total",
    description="Total number of HTTP requests",
)

http_request_errors = meter.create_counter(
    name="http_request_errors_total",
    description="Total number of HTTP request errors",
)

# Restore Metrics
restore_batches_total = meter.create_counter(
    name="restore_batches_total",
    description="Total number of restore batches started",
)

restore_jobs_total = meter.create_counter(
    name="restore_jobs_total",
    description="Total number of restore jobs attempted",
)

log_entries_consumed_total = meter.create_counter(
    name="log_entries_consumed_total",
    description="Total number of log entries deleted after a restore",
)

restores_active = meter.create_up_down_counter(
    name="restores_active",
    description="Number of restore batches currently in flight",
)


def record_http_request(method: str, endpoint: str, status_code: int, duration: float):
    """Record HTTP request metrics."""
    labels = {"method": method, "endpoint": endpoint, "status_code": str(status_code)}

    http_request_duration.record(duration, labels)
    http_requests_total.add(1, labels)

    if status_code >= 400:
        http_request_errors.add(1, labels)


def record_batch_started(operation: str):
    """Record when a restore batch enters the running state."""
    restore_batches_total.add(1, {"operation": operation})
    restores_active.add(1)


def record_batch_finished(deleted: bool):
    """Record when a restore batch leaves the finalizing state."""
    restores_active.add(-1)
    if deleted:
        log_entries_consumed_total.add(1)


def record_restore_job(kind: str, success: bool):
    """Record the outcome of one restore job."""
    restore_jobs_total.add(
        1, {"kind": kind, "outcome": "success" if success else "failure"}
    )


logger.info("Restore metrics instruments created")
