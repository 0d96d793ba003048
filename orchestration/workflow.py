"""Workflow policies - FailurePolicy."""

from dataclasses import dataclass

from core.application.dtos import WorkflowStep


@dataclass
class FailurePolicy:
    """
    Failure policy for pipeline steps.

    With honor_continue_on_error off, a failing step halts the chain: its
    continuation only fires on success. With it on, steps flagged
    continue_on_error report their failure as a completed job so the next
    step still runs.
    """

    honor_continue_on_error: bool = False

    def continues_on_error(self, step: WorkflowStep) -> bool:
        return self.honor_continue_on_error and step.continue_on_error
