"""
Execution Mode Enum.

Decides which submission operation a single workload request uses.
"""
from enum import Enum


class ExecutionMode(str, Enum):
    """How a single workload is submitted."""

    IMMEDIATE = "Immediate"
    SCHEDULED = "Scheduled"
    RECURRING = "Recurring"

    def __str__(self) -> str:
        return self.value
