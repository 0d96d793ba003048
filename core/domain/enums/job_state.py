"""
Job State Enum.

State names reported by the job substrate history.
"""
from enum import Enum


class JobState(str, Enum):
    """Job state names."""

    ENQUEUED = "Enqueued"
    SCHEDULED = "Scheduled"
    AWAITING = "Awaiting"
    PROCESSING = "Processing"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    DELETED = "Deleted"

    def __str__(self) -> str:
        return self.value

    @property
    def is_final(self) -> bool:
        return self in (JobState.SUCCEEDED, JobState.FAILED, JobState.DELETED)
