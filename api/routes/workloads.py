"""
Workload orchestration endpoints.

Submit workloads and pipelines, query and delete jobs, list the workload
catalogue.
"""
from datetime import date, datetime, timedelta, timezone
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
import logging

from api.dependencies import get_workload_service
from core.application.dtos import (
    JobStatusView,
    PipelineExecutionResponse,
    WorkflowPipelineRequest,
    WorkflowStep,
    WorkloadExecutionRequest,
    WorkloadExecutionResponse,
    WorkloadInfo,
)
from core.domain.enums import WorkloadType


logger = logging.getLogger(__name__)
router = APIRouter()


# =============================================================================
# EXECUTE WORKLOAD
# =============================================================================

@router.post(
    "/execute",
    response_model=WorkloadExecutionResponse,
    status_code=status.HTTP_200_OK,
    summary="Execute a workload",
    description="Run a workload immediately, at a scheduled time or on a recurring cadence",
)
def execute_workload(
    request: WorkloadExecutionRequest,
    service=Depends(get_workload_service),
):
    """
    Submit a single workload.

    **Returns:**
    - Job id (the recurring id for Recurring mode)
    """
    try:
        job_id = service.submit(request)
    except ValueError as e:
        logger.error(f"Error executing workload {request.workload_type}: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return WorkloadExecutionResponse(
        job_id=job_id,
        message=f"Workload {request.workload_type} {request.mode.value.lower()} successfully",
        workload_type=request.workload_type,
        mode=request.mode,
        requested_at=datetime.now(timezone.utc),
        parameters=request.parameters,
    )


# =============================================================================
# EXECUTE PIPELINE
# =============================================================================

@router.post(
    "/pipeline",
    response_model=PipelineExecutionResponse,
    status_code=status.HTTP_200_OK,
    summary="Execute a pipeline",
    description="Run an ordered chain of workloads; each step starts only after the previous one succeeded",
)
def execute_pipeline(
    request: WorkflowPipelineRequest,
    service=Depends(get_workload_service),
):
    try:
        submission = service.execute_pipeline(request)
    except ValueError as e:
        logger.error(f"Error executing pipeline {request.pipeline_name}: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return PipelineExecutionResponse(
        pipeline_id=str(submission.pipeline_id),
        pipeline_name=submission.pipeline_name,
        job_ids=list(submission.job_ids),
        message=f"Pipeline '{request.pipeline_name}' started successfully",
        started_at=submission.submitted_at,
    )


# =============================================================================
# JOBS
# =============================================================================

@router.get(
    "/jobs/{job_id}/status",
    response_model=JobStatusView,
    summary="Get job status",
)
def get_job_status(job_id: str, service=Depends(get_workload_service)):
    return service.get_job_status(job_id)


@router.delete(
    "/jobs/{job_id}",
    summary="Delete a job",
    description="Delete a job or, with is_recurring=true, a recurring job. Running processes are not interrupted.",
)
def delete_job(
    job_id: str,
    is_recurring: bool = Query(default=False, description="Treat job_id as a recurring job id"),
    service=Depends(get_workload_service),
):
    if not service.delete_job(job_id, is_recurring):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Failed to delete job {job_id}",
        )

    return {"message": f"Job {job_id} deleted successfully", "job_id": job_id}


# =============================================================================
# CATALOGUE
# =============================================================================

@router.get(
    "/workloads",
    response_model=List[WorkloadInfo],
    summary="List available workloads",
    description="Workloads whose executable is currently present",
)
def get_available_workloads(service=Depends(get_workload_service)):
    return [
        WorkloadInfo(name=str(workload), value=workload.ordinal, description=workload.description)
        for workload in service.get_available_workloads()
    ]


@router.get(
    "/pipelines/examples",
    response_model=List[WorkflowPipelineRequest],
    summary="Predefined pipeline examples",
)
def get_pipeline_examples():
    return build_pipeline_examples(date.today())


def build_pipeline_examples(today: date) -> List[WorkflowPipelineRequest]:
    """Example pipelines for the contract signing workflow."""
    return [
        WorkflowPipelineRequest(
            pipeline_name="Complete Contract Workflow",
            steps=[
                WorkflowStep(workload_type=WorkloadType.SETUP, order=1),
                WorkflowStep(
                    workload_type=WorkloadType.PREPARAZIONE_GENERAZIONE_CONTRATTI,
                    order=2,
                    delay_after_completion=timedelta(minutes=2),
                ),
                WorkflowStep(
                    workload_type=WorkloadType.GENERA_CONTRATTI,
                    order=3,
                    delay_after_completion=timedelta(minutes=5),
                ),
                WorkflowStep(workload_type=WorkloadType.INIZIO_FIRMA_MASSIVA, order=4),
                WorkflowStep(workload_type=WorkloadType.FINALIZZAZIONE_FIRMA_MASSIVA, order=5),
            ],
            global_parameters={
                "DataInizioServizio": (today + timedelta(days=30)).isoformat(),
                "MaxConcurrentTasks": 3,
            },
        ),
        WorkflowPipelineRequest(
            pipeline_name="Volunteer Digital Signature Process",
            steps=[
                WorkflowStep(workload_type=WorkloadType.PREPARAZIONE_FIRMA_VOLONTARI, order=1),
                WorkflowStep(
                    workload_type=WorkloadType.INIZIO_FIRMA_VOLONTARI,
                    order=2,
                    delay_after_completion=timedelta(minutes=1),
                ),
                WorkflowStep(workload_type=WorkloadType.FINALIZZAZIONE_FIRMA_VOLONTARI, order=3),
            ],
            global_parameters={"MaxDegreeOfParallelism": 4, "ThreadSleepSeconds": 5},
        ),
        WorkflowPipelineRequest(
            pipeline_name="Entity Digital Signature Process",
            steps=[
                WorkflowStep(workload_type=WorkloadType.PREPARAZIONE_FIRMA_ENTE, order=1),
                WorkflowStep(
                    workload_type=WorkloadType.INIZIO_FIRMA_ENTI,
                    order=2,
                    delay_after_completion=timedelta(minutes=1),
                ),
                WorkflowStep(workload_type=WorkloadType.FINALIZZAZIONE_FIRMA_ENTI, order=3),
            ],
            global_parameters={"MaxDegreeOfParallelism": 4},
        ),
    ]
