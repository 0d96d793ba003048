# Settings package
from core.settings.modules import (
    AppSettings,
    LoggingSettings,
    PipelineSettings,
    WorkloadExecutionSettings,
    get_app_settings,
)

__all__ = [
    "get_app_settings",
    "AppSettings",
    "LoggingSettings",
    "PipelineSettings",
    "WorkloadExecutionSettings",
]
