"""
Job DTOs.

Data exchanged with the job substrate: the serialisable call that a job
runs, and the details the substrate reports back about a job.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from types import MappingProxyType
from typing import Any, List, Mapping, Optional

DEFAULT_QUEUE = "default"
DELAY_QUEUE = "delay"

EXECUTE_WORKLOAD_METHOD = "execute_workload_job"
DELAY_METHOD = "delay_job"


@dataclass(frozen=True)
class JobCall:
    """
    A job callback in serialisable form.

    The substrate stores the method name and keyword arguments and resolves
    the method against its registered handlers when the job runs.
    """

    method: str
    kwargs: Mapping[str, Any] = field(default_factory=dict)
    queue: str = DEFAULT_QUEUE

    def __post_init__(self):
        object.__setattr__(self, "kwargs", MappingProxyType(dict(self.kwargs)))

    @classmethod
    def for_workload(
        cls,
        workload_type: Any,
        parameters: Optional[Mapping[str, Any]] = None,
        continue_on_error: bool = False,
    ) -> "JobCall":
        """Build the call that runs one workload."""
        return cls(
            method=EXECUTE_WORKLOAD_METHOD,
            kwargs={
                "workload_type": str(workload_type),
                "parameters": dict(parameters) if parameters is not None else None,
                "continue_on_error": continue_on_error,
            },
            queue=DEFAULT_QUEUE,
        )

    @classmethod
    def for_delay(cls, delay: timedelta) -> "JobCall":
        """Build the call that waits between two pipeline steps."""
        return cls(
            method=DELAY_METHOD,
            kwargs={"delay_seconds": delay.total_seconds()},
            queue=DELAY_QUEUE,
        )


@dataclass(frozen=True)
class StateHistoryEntry:
    """One state transition of a job."""

    state_name: str
    created_at: datetime
    reason: Optional[str] = None


@dataclass
class JobDetails:
    """Job details as reported by the substrate. History is newest-first."""

    job_id: str
    created_at: datetime
    history: List[StateHistoryEntry] = field(default_factory=list)
    call: Optional[JobCall] = None
    result: Any = None
