from __future__ import annotations

from pydantic import Field

from core.settings.base_settings import OrchestratorBaseSettings


class PipelineSettings(OrchestratorBaseSettings):
    """
    Pipeline compilation settings.

    honor_continue_on_error decides whether a step's continue_on_error flag
    is acted upon. When off, any failing step halts the chain.
    """

    honor_continue_on_error: bool = Field(False, alias="PIPELINE_HONOR_CONTINUE_ON_ERROR")
