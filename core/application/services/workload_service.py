"""
Workload Service.

Submits workloads and pipelines to the job substrate and provides the job
callbacks the substrate invokes later:
- execute_workload_job: runs one workload through the executor
- delay_job: waits between two pipeline steps
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional
from uuid import uuid4

from core.application.dtos import (
    DELAY_METHOD,
    EXECUTE_WORKLOAD_METHOD,
    JobCall,
    JobStatusView,
    WorkflowPipelineRequest,
    WorkloadExecutionRequest,
)
from core.application.interfaces import IJobSubstrate, IWorkloadExecutor
from core.application.services.job_status_translator import JobStatusTranslator
from core.domain.enums import ExecutionMode, WorkloadType
from core.domain.exceptions import (
    ExecutableNotFoundError,
    MissingCronExpressionError,
    MissingScheduleTimeError,
    WorkloadExecutionError,
    WorkloadValidationError,
)
from core.domain.value_objects import generate_recurring_job_id
from core.infrastructure.logging import job_log_context
from orchestration import PipelineCompiler, PipelineSubmission

logger = logging.getLogger(__name__)

JobHandler = Callable[..., Awaitable[Any]]


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class WorkloadService:
    """Submission façade over the job substrate."""

    def __init__(
        self,
        executor: IWorkloadExecutor,
        substrate: IJobSubstrate,
        compiler: PipelineCompiler,
        status_translator: Optional[JobStatusTranslator] = None,
    ):
        """
        Initialize workload service.

        Args:
            executor: Runs workloads when the substrate invokes a job
            substrate: External job queue / scheduler
            compiler: Pipeline compiler bound to the same substrate
            status_translator: Job status reader (defaults to one over substrate)
        """
        self._executor = executor
        self._substrate = substrate
        self._compiler = compiler
        self._status_translator = status_translator or JobStatusTranslator(substrate)

    # =========================================================================
    # SUBMISSION
    # =========================================================================

    def submit(self, request: WorkloadExecutionRequest) -> str:
        """Submit a single workload according to its mode and return the job id."""
        if request.mode == ExecutionMode.IMMEDIATE:
            return self.enqueue_workload(request)
        if request.mode == ExecutionMode.SCHEDULED:
            return self.schedule_workload(request)
        if request.mode == ExecutionMode.RECURRING:
            return self.add_recurring_workload(request)
        raise WorkloadValidationError(f"Invalid execution mode: {request.mode}")

    def enqueue_workload(self, request: WorkloadExecutionRequest) -> str:
        job_id = self._substrate.enqueue(JobCall.for_workload(request.workload_type, request.parameters))
        logger.info(f"Enqueued workload {request.workload_type} with job ID {job_id}")
        return job_id

    def schedule_workload(self, request: WorkloadExecutionRequest) -> str:
        if request.scheduled_at is None:
            raise MissingScheduleTimeError()

        scheduled_at = _as_utc(request.scheduled_at)
        job_id = self._substrate.schedule_at(
            JobCall.for_workload(request.workload_type, request.parameters),
            scheduled_at,
        )
        logger.info(
            f"Scheduled workload {request.workload_type} for {scheduled_at.isoformat()} with job ID {job_id}"
        )
        return job_id

    def add_recurring_workload(self, request: WorkloadExecutionRequest) -> str:
        if not request.cron_expression:
            raise MissingCronExpressionError()

        recurring_job_id = request.recurring_job_id or generate_recurring_job_id(str(request.workload_type))
        self._substrate.add_or_update_recurring(
            recurring_job_id,
            JobCall.for_workload(request.workload_type, request.parameters),
            request.cron_expression,
        )
        logger.info(
            f"Added recurring workload {request.workload_type} with cron "
            f"'{request.cron_expression}' and ID {recurring_job_id}"
        )
        return recurring_job_id

    def execute_pipeline(self, request: WorkflowPipelineRequest) -> PipelineSubmission:
        """Compile and submit a pipeline."""
        return self._compiler.submit(request)

    # =========================================================================
    # QUERIES / MANAGEMENT
    # =========================================================================

    def get_job_status(self, job_id: str) -> JobStatusView:
        return self._status_translator.status(job_id)

    def delete_job(self, job_id: str, is_recurring: bool = False) -> bool:
        """
        Request deletion of a job or recurring job.

        A workload process that is already running is not interrupted.

        Returns:
            True if the substrate accepted the request, False on error
        """
        try:
            if is_recurring:
                self._substrate.remove_recurring(job_id)
                logger.info(f"Deleted recurring job {job_id}")
            else:
                self._substrate.delete(job_id)
                logger.info(f"Deleted job {job_id}")
            return True
        except Exception as e:
            logger.error(f"Failed to delete job {job_id}: {e}", exc_info=True)
            return False

    def get_available_workloads(self) -> List[WorkloadType]:
        return [workload for workload in WorkloadType if self._executor.is_available(workload)]

    # =========================================================================
    # JOB CALLBACKS (invoked by the substrate)
    # =========================================================================

    def job_handlers(self) -> Dict[str, JobHandler]:
        """Handlers to register with the substrate, keyed by JobCall method."""
        return {
            EXECUTE_WORKLOAD_METHOD: self.execute_workload_job,
            DELAY_METHOD: self.delay_job,
        }

    async def execute_workload_job(
        self,
        workload_type: str,
        parameters: Optional[Dict[str, Any]] = None,
        continue_on_error: bool = False,
        job_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Run one workload for the substrate.

        Args:
            workload_type: Workload name
            parameters: Parameters resolved at submission time
            continue_on_error: Report a failed run as a result instead of raising
            job_id: Substrate job id, for log correlation

        Returns:
            The execution result as a dict (persisted by the substrate)
        """
        job_id = job_id or uuid4().hex[:8]

        with job_log_context(job_id, workload_type):
            logger.info(f"Starting execution of workload {workload_type} with job ID {job_id}")

            try:
                executable_path = self._executor.resolve_path(workload_type)
                if not self._executor.is_available(workload_type):
                    raise ExecutableNotFoundError(workload_type, executable_path)

                result = await self._executor.execute(workload_type, parameters)

                logger.info(f"Successfully completed workload {workload_type} with job ID {job_id}")
                return result.to_dict()

            except WorkloadExecutionError as e:
                if continue_on_error:
                    logger.warning(
                        f"Workload {workload_type} failed with job ID {job_id}, "
                        f"continuing pipeline: {e}"
                    )
                    if e.result is not None:
                        return e.result.to_dict()
                    return {"success": False, "error_message": str(e)}
                logger.error(f"Failed to execute workload {workload_type} with job ID {job_id}: {e}")
                raise
            except Exception as e:
                logger.error(
                    f"Failed to execute workload {workload_type} with job ID {job_id}: {e}",
                    exc_info=True,
                )
                raise

    async def delay_job(self, delay_seconds: float, job_id: Optional[str] = None) -> None:
        """Wait between two pipeline steps."""
        with job_log_context(job_id):
            logger.info(f"Delaying execution for {delay_seconds:g}s")
            await asyncio.sleep(delay_seconds)
            logger.info(f"Delay completed for {delay_seconds:g}s")
