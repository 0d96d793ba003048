"""Pipeline compiler - turns a pipeline request into a chain of dependent jobs."""

from datetime import datetime, timedelta, timezone

from core.application.dtos import JobCall, WorkflowPipelineRequest, WorkflowStep
from core.application.interfaces import IJobSubstrate
from core.application.services.parameter_merger import merge_parameters
from core.domain.exceptions import EmptyPipelineError
from core.domain.value_objects import PipelineID
from core.infrastructure.logging import get_logger

from .models import PipelineSubmission, PlannedJob, PlannedJobKind
from .workflow import FailurePolicy


def _has_delay(step: WorkflowStep) -> bool:
    return step.delay_after_completion is not None and step.delay_after_completion > timedelta(0)


class PipelineCompiler:
    """
    Compiles pipelines into linear continuation chains on the job substrate.

    The substrate only knows jobs and "run after parent succeeded" links, so
    a pipeline becomes: entry job, then for every following step an optional
    delay job and the step job, each continuing from the previous one.
    """

    def __init__(
        self,
        substrate: IJobSubstrate,
        failure_policy: FailurePolicy | None = None,
    ) -> None:
        """Initialize compiler.

        Args:
            substrate: Job substrate receiving the submissions
            failure_policy: How continue_on_error flags are treated
        """
        self._substrate = substrate
        self._failure_policy = failure_policy or FailurePolicy()
        self._logger = get_logger("orchestration.compiler")

    def plan(self, request: WorkflowPipelineRequest) -> list[PlannedJob]:
        """Build the ordered submission list for a pipeline without submitting it.

        Args:
            request: Pipeline request

        Returns:
            Planned jobs in submission order

        Raises:
            EmptyPipelineError: If the pipeline has no steps
        """
        if not request.steps:
            raise EmptyPipelineError(request.pipeline_name)

        # sorted() is stable: equal orders keep their list position
        sorted_steps = sorted(request.steps, key=lambda s: s.order)

        planned: list[PlannedJob] = []
        previous_index: int | None = None
        previous_step: WorkflowStep | None = None

        for step in sorted_steps:
            if previous_step is not None and _has_delay(previous_step):
                planned.append(
                    PlannedJob(
                        kind=PlannedJobKind.DELAY,
                        call=JobCall.for_delay(previous_step.delay_after_completion),
                        step_order=previous_step.order,
                        depends_on=previous_index,
                    )
                )
                previous_index = len(planned) - 1

            step_params = merge_parameters(request.global_parameters, step.parameters)
            planned.append(
                PlannedJob(
                    kind=PlannedJobKind.WORKLOAD,
                    call=JobCall.for_workload(
                        step.workload_type,
                        step_params,
                        continue_on_error=self._failure_policy.continues_on_error(step),
                    ),
                    step_order=step.order,
                    depends_on=previous_index,
                    workload_type=step.workload_type,
                )
            )
            previous_index = len(planned) - 1
            previous_step = step

        return planned

    def submit(self, request: WorkflowPipelineRequest) -> PipelineSubmission:
        """Submit a pipeline and return its id with every submitted job id.

        Returns as soon as the submissions are accepted; no step has run yet.

        Args:
            request: Pipeline request

        Returns:
            PipelineSubmission with job ids in chain order
        """
        planned = self.plan(request)
        submission = PipelineSubmission(
            pipeline_id=PipelineID.generate(),
            pipeline_name=request.pipeline_name,
            submitted_at=datetime.now(timezone.utc),
        )

        for planned_job in planned:
            if planned_job.depends_on is None:
                job_id = self._substrate.enqueue(planned_job.call)
                self._logger.info(
                    f"Started pipeline {request.pipeline_name} ({submission.pipeline_id}) "
                    f"with first job {job_id}"
                )
            else:
                parent_job_id = submission.job_ids[planned_job.depends_on]
                job_id = self._substrate.continue_with(parent_job_id, planned_job.call)
                if planned_job.kind is PlannedJobKind.DELAY:
                    self._logger.info(
                        f"Added delay of {planned_job.call.kwargs['delay_seconds']:g}s after step "
                        f"{planned_job.step_order} to pipeline {submission.pipeline_id} with job {job_id}"
                    )
                else:
                    self._logger.info(
                        f"Added step {planned_job.step_order} ({planned_job.workload_type}) to pipeline "
                        f"{submission.pipeline_id} with job {job_id}"
                    )
            submission.job_ids.append(job_id)

        return submission

    def compile(self, request: WorkflowPipelineRequest) -> str:
        """Submit a pipeline and return its correlation id."""
        return str(self.submit(request).pipeline_id)
