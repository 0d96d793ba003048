"""Domain value objects."""

from .execution_result import ExecutionResult
from .value_objects import PipelineID, generate_recurring_job_id

__all__ = [
    "ExecutionResult",
    "PipelineID",
    "generate_recurring_job_id",
]
