"""Execution result value object."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class ExecutionResult:
    """
    Outcome of one external workload run.

    Produced once per executor invocation and handed to the job substrate,
    which persists it as the job output.
    """

    exit_code: Optional[int]
    execution_time_ms: int
    stdout_lines: Tuple[str, ...] = field(default_factory=tuple)
    stderr_lines: Tuple[str, ...] = field(default_factory=tuple)
    error_message: Optional[str] = None

    def __post_init__(self):
        # Accept any sequence but store tuples
        object.__setattr__(self, "stdout_lines", tuple(self.stdout_lines))
        object.__setattr__(self, "stderr_lines", tuple(self.stderr_lines))

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for job output persistence."""
        return {
            "exit_code": self.exit_code,
            "execution_time_ms": self.execution_time_ms,
            "stdout_lines": list(self.stdout_lines),
            "stderr_lines": list(self.stderr_lines),
            "success": self.success,
            "error_message": self.error_message,
        }
