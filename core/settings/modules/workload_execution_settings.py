from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field

from core.settings.base_settings import PROJECT_ROOT, OrchestratorBaseSettings


def _default_executable_suffix() -> str:
    return ".exe" if os.name == "nt" else ""


class WorkloadExecutionSettings(OrchestratorBaseSettings):
    """
    Settings for launching workload executables.
    Loaded from the environment / .env with exact variable name matching.
    """

    executables_path: str = Field("Executables", alias="WORKLOAD_EXECUTION_EXECUTABLES_PATH")
    base_dir: Path = Field(PROJECT_ROOT, alias="WORKLOAD_EXECUTION_BASE_DIR")
    timeout_minutes: float = Field(60, gt=0, alias="WORKLOAD_EXECUTION_TIMEOUT_MINUTES")
    executable_suffix: str = Field(
        default_factory=_default_executable_suffix,
        alias="WORKLOAD_EXECUTION_EXECUTABLE_SUFFIX",
    )

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_minutes * 60

    @property
    def executables_dir(self) -> Path:
        """Executables directory; relative paths are resolved against base_dir."""
        path = Path(self.executables_path)
        if not path.is_absolute():
            path = Path(self.base_dir) / path
        return path
