"""Domain value objects - pure Python immutable types."""

from dataclasses import dataclass
from uuid import uuid4


@dataclass(frozen=True)
class PipelineID:
    """
    Correlation token for a submitted pipeline.

    The job substrate has no notion of a pipeline, only of jobs and
    continuations, so this id never equals any job id. It is used for
    client-facing tracking and logging only.
    """

    value: str

    def __post_init__(self):
        if not self.value.startswith("pipeline-"):
            raise ValueError(f"Pipeline id must start with 'pipeline-', got: {self.value}")

    @classmethod
    def generate(cls) -> "PipelineID":
        """Generate a new PipelineID."""
        return cls(value=f"pipeline-{uuid4().hex}")

    def __str__(self) -> str:
        """Return string representation."""
        return self.value


def generate_recurring_job_id(workload_name: str) -> str:
    """Default id for a recurring job when the caller does not supply one."""
    return f"{workload_name}-{uuid4().hex}"
