"""
FastAPI Dependencies.

Provides dependency injection for the executor, job substrate and services.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from dotenv import load_dotenv

# Load environment variables ONCE before any settings objects are created
_PROJECT_ROOT = Path(__file__).resolve().parents[1]
load_dotenv(dotenv_path=_PROJECT_ROOT / ".env")

from core.settings import AppSettings, get_app_settings

if TYPE_CHECKING:
    from core.application.services.workload_service import WorkloadService
    from core.infrastructure.executors import ProcessWorkloadExecutor
    from core.infrastructure.substrate import InMemoryJobSubstrate
    from orchestration import PipelineCompiler


logger = logging.getLogger(__name__)


# =============================================================================
# SINGLETONS
# =============================================================================

_executor: Optional[ProcessWorkloadExecutor] = None
_substrate: Optional[InMemoryJobSubstrate] = None
_compiler: Optional[PipelineCompiler] = None
_workload_service: Optional[WorkloadService] = None


def get_settings() -> AppSettings:
    return get_app_settings()


def get_workload_executor() -> ProcessWorkloadExecutor:
    global _executor

    if _executor is None:
        from core.infrastructure.executors import ProcessWorkloadExecutor

        settings = get_settings().workload_execution
        _executor = ProcessWorkloadExecutor(settings)
        logger.info(f"Created ProcessWorkloadExecutor (executables: {settings.executables_dir})")

    return _executor


def get_job_substrate() -> InMemoryJobSubstrate:
    global _substrate

    if _substrate is None:
        from core.infrastructure.substrate import InMemoryJobSubstrate

        _substrate = InMemoryJobSubstrate()
        logger.info("Created InMemoryJobSubstrate")

    return _substrate


def get_pipeline_compiler() -> PipelineCompiler:
    global _compiler

    if _compiler is None:
        from orchestration import create_default_compiler

        _compiler = create_default_compiler(get_job_substrate(), get_settings().pipeline)
        logger.info("Created PipelineCompiler")

    return _compiler


def get_workload_service() -> WorkloadService:
    """
    Get the workload service.

    Registers the service's job callbacks with the substrate on first use.
    """
    global _workload_service

    if _workload_service is None:
        from core.application.services.workload_service import WorkloadService

        substrate = get_job_substrate()
        _workload_service = WorkloadService(
            executor=get_workload_executor(),
            substrate=substrate,
            compiler=get_pipeline_compiler(),
        )
        substrate.register_handlers(_workload_service.job_handlers())
        logger.info("Created WorkloadService")

    return _workload_service


# =============================================================================
# RESET (for testing)
# =============================================================================

def reset_dependencies():
    global _executor, _substrate, _compiler, _workload_service

    _executor = None
    _substrate = None
    _compiler = None
    _workload_service = None

    logger.info("Dependencies reset")
