"""Application layer interfaces."""
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from core.application.dtos.job_dto import JobCall, JobDetails
from core.domain.enums import WorkloadType
from core.domain.value_objects import ExecutionResult


class IWorkloadExecutor(ABC):
    """
    Interface for running a workload to completion.

    Implementations block the caller for the duration of the run, bounded by
    their timeout, and never retry.
    """

    @abstractmethod
    async def execute(
        self,
        workload_type: Union[WorkloadType, str],
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> ExecutionResult:
        """
        Execute a workload.

        Args:
            workload_type: Workload to run
            parameters: Workload parameters

        Returns:
            ExecutionResult of a successful run

        Raises:
            WorkloadOrchestratorError: On any failure
        """
        pass

    @abstractmethod
    def is_available(self, workload_type: Union[WorkloadType, str]) -> bool:
        """Whether the workload can be run right now. Never raises."""
        pass

    @abstractmethod
    def resolve_path(self, workload_type: Union[WorkloadType, str]) -> Path:
        """
        Resolve the executable path of a workload.

        Raises:
            UnsupportedWorkloadError: Unknown workload type
        """
        pass


class IJobSubstrate(ABC):
    """
    Interface for the external job queue / scheduler.

    The substrate owns durability, delivery and worker concurrency. A
    continuation runs only after its parent job has succeeded.
    """

    @abstractmethod
    def enqueue(self, call: JobCall) -> str:
        """Submit a job for immediate execution and return its id."""
        pass

    @abstractmethod
    def schedule_at(self, call: JobCall, when: datetime) -> str:
        """Submit a job that runs at the given time and return its id."""
        pass

    @abstractmethod
    def add_or_update_recurring(self, recurring_id: str, call: JobCall, cron_expression: str) -> None:
        """Register (or replace) a recurring job."""
        pass

    @abstractmethod
    def continue_with(self, parent_job_id: str, call: JobCall) -> str:
        """Submit a job that runs after parent_job_id succeeds and return its id."""
        pass

    @abstractmethod
    def delete(self, job_id: str) -> bool:
        """Delete a job. Does not interrupt a job that is already running."""
        pass

    @abstractmethod
    def remove_recurring(self, recurring_id: str) -> None:
        """Remove a recurring job if it exists."""
        pass

    @abstractmethod
    def job_details(self, job_id: str) -> Optional[JobDetails]:
        """Return job details, or None if the job does not exist."""
        pass

    @abstractmethod
    def statistics(self) -> Dict[str, int]:
        """Return job counts per state."""
        pass
