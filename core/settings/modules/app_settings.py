from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel, ConfigDict

from core.settings.modules.logging_settings import LoggingSettings
from core.settings.modules.pipeline_settings import PipelineSettings
from core.settings.modules.workload_execution_settings import WorkloadExecutionSettings


class AppSettings(BaseModel):
    """Application settings aggregator."""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="ignore")

    workload_execution: WorkloadExecutionSettings
    pipeline: PipelineSettings
    logging: LoggingSettings


@lru_cache()
def get_app_settings() -> AppSettings:
    return AppSettings(
        workload_execution=WorkloadExecutionSettings(),
        pipeline=PipelineSettings(),
        logging=LoggingSettings(),
    )
