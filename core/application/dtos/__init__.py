"""Application DTOs."""

from .job_dto import (
    DEFAULT_QUEUE,
    DELAY_METHOD,
    DELAY_QUEUE,
    EXECUTE_WORKLOAD_METHOD,
    JobCall,
    JobDetails,
    StateHistoryEntry,
)
from .workload_dto import (
    JobStatusView,
    PipelineExecutionResponse,
    WorkflowPipelineRequest,
    WorkflowStep,
    WorkloadExecutionRequest,
    WorkloadExecutionResponse,
    WorkloadInfo,
)

__all__ = [
    "DEFAULT_QUEUE",
    "DELAY_METHOD",
    "DELAY_QUEUE",
    "EXECUTE_WORKLOAD_METHOD",
    "JobCall",
    "JobDetails",
    "JobStatusView",
    "PipelineExecutionResponse",
    "StateHistoryEntry",
    "WorkflowPipelineRequest",
    "WorkflowStep",
    "WorkloadExecutionRequest",
    "WorkloadExecutionResponse",
    "WorkloadInfo",
]
