"""Workload executors."""
from .process_executor import (
    ENV_PREFIX,
    EXECUTABLE_NAMES,
    ProcessWorkloadExecutor,
    build_workload_environment,
    to_workload_type,
)

__all__ = [
    "ENV_PREFIX",
    "EXECUTABLE_NAMES",
    "ProcessWorkloadExecutor",
    "build_workload_environment",
    "to_workload_type",
]
