"""
Domain exceptions.

Every failure the orchestrator raises derives from WorkloadOrchestratorError.
Request validation errors are also ValueErrors so the API layer can turn
them into 400 responses without knowing each type.
"""
from typing import Optional

from core.domain.value_objects import ExecutionResult


class WorkloadOrchestratorError(Exception):
    """Base class for orchestrator errors."""


class WorkloadValidationError(WorkloadOrchestratorError, ValueError):
    """Raised when a request is rejected before any job is submitted."""


class EmptyPipelineError(WorkloadValidationError):
    """Raised when a pipeline has no steps."""

    def __init__(self, pipeline_name: str = ""):
        self.pipeline_name = pipeline_name
        super().__init__("Pipeline must contain at least one step")


class MissingScheduleTimeError(WorkloadValidationError):
    """Raised when a scheduled request has no scheduled_at."""

    def __init__(self):
        super().__init__("scheduled_at must be provided for scheduled jobs")


class MissingCronExpressionError(WorkloadValidationError):
    """Raised when a recurring request has no cron expression."""

    def __init__(self):
        super().__init__("cron_expression must be provided for recurring jobs")


class UnsupportedWorkloadError(WorkloadOrchestratorError):
    """Raised for a workload type with no executable mapping."""

    def __init__(self, workload_type: object):
        self.workload_type = workload_type
        super().__init__(f"Workload type {workload_type} is not supported")


class ExecutableNotFoundError(WorkloadOrchestratorError):
    """Raised when the executable for a workload is missing on disk."""

    def __init__(self, workload_type: object, path: object = None):
        self.workload_type = workload_type
        self.path = path
        message = f"Executable not found for workload {workload_type}"
        if path is not None:
            message = f"{message}: {path}"
        super().__init__(message)


class WorkloadExecutionError(WorkloadOrchestratorError):
    """
    Base class for failures of a launched workload.

    Carries the (possibly partial) ExecutionResult so callers that need the
    structured outcome still get it after the failure propagates.
    """

    def __init__(self, message: str, result: Optional[ExecutionResult] = None):
        super().__init__(message)
        self.result = result


class ExecutionTimeoutError(WorkloadExecutionError):
    """Raised when a workload exceeds the configured timeout and is killed."""

    def __init__(self, workload_type: object, timeout_seconds: float, result: Optional[ExecutionResult] = None):
        self.workload_type = workload_type
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Process {workload_type} timed out after {timeout_seconds:g}s",
            result=result,
        )


class NonZeroExitError(WorkloadExecutionError):
    """Raised when a workload exits with a non-zero code."""

    def __init__(self, workload_type: object, exit_code: int, result: Optional[ExecutionResult] = None):
        self.workload_type = workload_type
        self.exit_code = exit_code
        super().__init__(f"Process {workload_type} exited with code {exit_code}", result=result)


class ExecutionFailureError(WorkloadExecutionError):
    """Raised for unexpected errors while launching or monitoring a workload."""

    def __init__(self, workload_type: object, reason: str, result: Optional[ExecutionResult] = None):
        self.workload_type = workload_type
        self.reason = reason
        super().__init__(f"Process {workload_type} failed: {reason}", result=result)
