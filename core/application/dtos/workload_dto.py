"""Application DTOs for workload and pipeline operations."""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from core.domain.enums import ExecutionMode, WorkloadType


class WorkloadExecutionRequest(BaseModel):
    """Request DTO for running a single workload."""

    workload_type: WorkloadType = Field(..., description="Workload to run")
    mode: ExecutionMode = Field(default=ExecutionMode.IMMEDIATE, description="Submission mode")
    parameters: Optional[Dict[str, Any]] = Field(None, description="Values exported as WORKLOAD_<KEY>")
    scheduled_at: Optional[datetime] = Field(None, description="Run time (Scheduled mode only)")
    cron_expression: Optional[str] = Field(None, description="Cron cadence (Recurring mode only)")
    recurring_job_id: Optional[str] = Field(None, description="Stable recurring job id (Recurring mode only)")

    model_config = {"frozen": True}


class WorkflowStep(BaseModel):
    """One step of a pipeline."""

    workload_type: WorkloadType = Field(..., description="Workload to run")
    order: int = Field(default=0, description="Sort key; ties keep list order")
    parameters: Optional[Dict[str, Any]] = Field(None, description="Step-local parameters")
    delay_after_completion: Optional[timedelta] = Field(
        None, description="Wait before the next step starts"
    )
    continue_on_error: bool = Field(
        default=False, description="Let the chain proceed if this step fails (policy dependent)"
    )

    model_config = {"frozen": True}


class WorkflowPipelineRequest(BaseModel):
    """Request DTO for running an ordered pipeline of workloads."""

    pipeline_name: str = Field(..., min_length=1, description="Pipeline name")
    steps: List[WorkflowStep] = Field(default_factory=list, description="Pipeline steps")
    global_parameters: Optional[Dict[str, Any]] = Field(
        None, description="Parameters applied to every step"
    )

    model_config = {"frozen": True}


class WorkloadExecutionResponse(BaseModel):
    """Response DTO for a submitted workload."""

    job_id: str = Field(..., description="Job id (recurring id for Recurring mode)")
    message: str = Field(..., description="Human-readable outcome")
    workload_type: WorkloadType = Field(..., description="Submitted workload")
    mode: ExecutionMode = Field(..., description="Submission mode")
    requested_at: datetime = Field(..., description="Submission time (UTC)")
    parameters: Optional[Dict[str, Any]] = Field(None, description="Echoed parameters")


class PipelineExecutionResponse(BaseModel):
    """Response DTO for a submitted pipeline."""

    pipeline_id: str = Field(..., description="Pipeline correlation id")
    pipeline_name: str = Field(..., description="Pipeline name")
    job_ids: List[str] = Field(default_factory=list, description="Submitted job ids in chain order")
    message: str = Field(..., description="Human-readable outcome")
    started_at: datetime = Field(..., description="Submission time (UTC)")


class JobStatusView(BaseModel):
    """Status of a job, derived from the substrate history on every query."""

    job_id: str = Field(..., description="Job id")
    status: str = Field(..., description="Latest state name, or NotFound/Unknown/Error")
    created_at: Optional[datetime] = Field(None, description="Job creation time")
    started_at: Optional[datetime] = Field(None, description="Time the job started processing")
    completed_at: Optional[datetime] = Field(None, description="Time the job reached a final state")
    error_message: Optional[str] = Field(None, description="Reason attached to the latest state")
    result: Optional[Any] = Field(None, description="Persisted job output")


class WorkloadInfo(BaseModel):
    """Catalogue entry for an available workload."""

    name: str = Field(..., description="Workload name")
    value: int = Field(..., ge=0, description="Workload ordinal")
    description: str = Field(..., description="Workload description")
