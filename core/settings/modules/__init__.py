# Settings modules
from .app_settings import AppSettings, get_app_settings
from .logging_settings import LoggingSettings
from .pipeline_settings import PipelineSettings
from .workload_execution_settings import WorkloadExecutionSettings

__all__ = [
    "AppSettings",
    "get_app_settings",
    "LoggingSettings",
    "PipelineSettings",
    "WorkloadExecutionSettings",
]
