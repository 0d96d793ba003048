"""Orchestration models - PlannedJob, PipelineSubmission."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from core.application.dtos import JobCall
from core.domain.enums import WorkloadType
from core.domain.value_objects import PipelineID


class PlannedJobKind(str, Enum):
    """Kind of job in a compiled pipeline."""

    WORKLOAD = "workload"
    DELAY = "delay"


@dataclass(frozen=True)
class PlannedJob:
    """
    One submission in a compiled pipeline.

    depends_on is the index of the planned job this one continues from, or
    None for the entry job.
    """

    kind: PlannedJobKind
    call: JobCall
    step_order: int
    depends_on: int | None = None
    workload_type: WorkloadType | None = None


@dataclass
class PipelineSubmission:
    """Result of submitting a pipeline to the job substrate."""

    pipeline_id: PipelineID
    pipeline_name: str
    submitted_at: datetime
    job_ids: list[str] = field(default_factory=list)

    @property
    def entry_job_id(self) -> str | None:
        return self.job_ids[0] if self.job_ids else None
