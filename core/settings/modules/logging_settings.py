from __future__ import annotations

from pydantic import Field

from core.settings.base_settings import OrchestratorBaseSettings


class LoggingSettings(OrchestratorBaseSettings):
    """Logging settings."""

    level: str = Field("INFO", alias="LOG_LEVEL")
