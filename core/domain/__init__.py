"""Domain layer - pure domain models and interfaces."""

from .enums import ExecutionMode, JobState, WorkloadType
from .value_objects import ExecutionResult, PipelineID

__all__ = [
    "ExecutionMode",
    "ExecutionResult",
    "JobState",
    "PipelineID",
    "WorkloadType",
]
