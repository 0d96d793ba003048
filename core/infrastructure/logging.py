"""
Logging infrastructure.

Provides logging utilities for the infrastructure layer, including a job
context (job id + workload type) that is attached to every record emitted
while a job callback runs.
"""
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

_job_id: ContextVar[Optional[str]] = ContextVar("job_id", default=None)
_workload_type: ContextVar[Optional[str]] = ContextVar("workload_type", default=None)

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(job_context)s%(message)s"


class JobContextFilter(logging.Filter):
    """Copy the current job context onto log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        job_id = _job_id.get()
        workload_type = _workload_type.get()
        record.job_id = job_id
        record.workload_type = workload_type
        parts = []
        if job_id:
            parts.append(f"job={job_id}")
        if workload_type:
            parts.append(f"workload={workload_type}")
        record.job_context = f"[{' '.join(parts)}] " if parts else ""
        return True


@contextmanager
def job_log_context(job_id: Optional[str], workload_type: Optional[object] = None) -> Iterator[None]:
    """
    Tag every log record emitted inside the block with the job context.

    Args:
        job_id: Job identifier
        workload_type: Workload being executed (optional)
    """
    job_token = _job_id.set(job_id)
    workload_token = _workload_type.set(str(workload_type) if workload_type is not None else None)
    try:
        yield
    finally:
        _workload_type.reset(workload_token)
        _job_id.reset(job_token)


def configure_logging(level: str = "INFO") -> None:
    """
    Configure the root logger once for the application.

    Args:
        level: Log level name
    """
    root = logging.getLogger()
    if not any(isinstance(f, JobContextFilter) for h in root.handlers for f in h.filters):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler.addFilter(JobContextFilter())
        root.addHandler(handler)
    root.setLevel(level.upper())


def get_logger(name: str) -> logging.Logger:
    """
    Get logger instance.

    Args:
        name: Logger name (usually module name)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
