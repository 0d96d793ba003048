"""Pytest configuration and fixtures for integration tests."""

import stat
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_job_substrate, get_workload_service
from api.main import app
from core.application.services.workload_service import WorkloadService
from core.domain.enums import WorkloadType
from core.infrastructure.executors import EXECUTABLE_NAMES, ProcessWorkloadExecutor
from core.infrastructure.substrate import InMemoryJobSubstrate
from core.settings import WorkloadExecutionSettings
from orchestration import PipelineCompiler

# Workloads with an executable installed in the test executables directory
INSTALLED_WORKLOADS = (WorkloadType.SETUP, WorkloadType.GENERA_CONTRATTI)


def _install(directory: Path, workload: WorkloadType) -> None:
    path = directory / EXECUTABLE_NAMES[workload]
    path.write_text('#!/bin/sh\necho "ran $0 region=$WORKLOAD_REGION"\n', encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


@pytest.fixture
def substrate() -> InMemoryJobSubstrate:
    return InMemoryJobSubstrate()


@pytest.fixture
def workload_service(tmp_path, substrate) -> WorkloadService:
    """Workload service over real executables generated in tmp_path."""
    directory = tmp_path / "Executables"
    directory.mkdir()
    for workload in INSTALLED_WORKLOADS:
        _install(directory, workload)

    settings = WorkloadExecutionSettings(
        executables_path=str(directory),
        base_dir=tmp_path,
        timeout_minutes=1,
        executable_suffix="",
    )
    service = WorkloadService(
        executor=ProcessWorkloadExecutor(settings),
        substrate=substrate,
        compiler=PipelineCompiler(substrate),
    )
    substrate.register_handlers(service.job_handlers())
    return service


@pytest.fixture
def test_client(workload_service, substrate) -> TestClient:
    """Create FastAPI test client wired to the test service."""
    app.dependency_overrides[get_workload_service] = lambda: workload_service
    app.dependency_overrides[get_job_substrate] = lambda: substrate

    # Not used as a context manager: startup events (background worker) do not run
    client = TestClient(app)
    yield client

    app.dependency_overrides.clear()
