"""Domain enums."""

from .execution_mode import ExecutionMode
from .job_state import JobState
from .workload_type import WORKLOAD_DESCRIPTIONS, WorkloadType

__all__ = [
    "ExecutionMode",
    "JobState",
    "WORKLOAD_DESCRIPTIONS",
    "WorkloadType",
]
