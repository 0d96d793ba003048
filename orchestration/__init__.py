"""Orchestration layer - pipeline compilation onto the job substrate."""

from typing import TYPE_CHECKING

from .compiler import PipelineCompiler
from .models import PipelineSubmission, PlannedJob, PlannedJobKind
from .workflow import FailurePolicy

if TYPE_CHECKING:
    from core.application.interfaces import IJobSubstrate
    from core.settings import PipelineSettings

__all__ = [
    "FailurePolicy",
    "PipelineCompiler",
    "PipelineSubmission",
    "PlannedJob",
    "PlannedJobKind",
]


def create_default_compiler(
    substrate: "IJobSubstrate", settings: "PipelineSettings | None" = None
) -> PipelineCompiler:
    """Create a pipeline compiler with the configured failure policy.

    Args:
        substrate: Job substrate receiving the submissions
        settings: Pipeline settings (defaults to FailurePolicy defaults)

    Returns:
        PipelineCompiler instance
    """
    policy = FailurePolicy()
    if settings is not None:
        policy = FailurePolicy(honor_continue_on_error=settings.honor_continue_on_error)
    return PipelineCompiler(substrate=substrate, failure_policy=policy)
