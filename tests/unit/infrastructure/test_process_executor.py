"""
Tests for ProcessWorkloadExecutor.

Workloads are small generated shell scripts placed where the executor
expects the real executables.
"""
import asyncio
import os
import stat
import sys
import time
from pathlib import Path

import pytest

from core.domain.enums import WorkloadType
from core.domain.exceptions import (
    ExecutableNotFoundError,
    ExecutionFailureError,
    ExecutionTimeoutError,
    NonZeroExitError,
    UnsupportedWorkloadError,
)
from core.infrastructure.executors import process_executor as process_executor_module
from core.infrastructure.executors import (
    EXECUTABLE_NAMES,
    ProcessWorkloadExecutor,
    build_workload_environment,
)
from core.settings import WorkloadExecutionSettings

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="uses POSIX shell scripts")


def _settings(tmp_path: Path, timeout_minutes: float = 1) -> WorkloadExecutionSettings:
    return WorkloadExecutionSettings(
        executables_path="Executables",
        base_dir=tmp_path,
        timeout_minutes=timeout_minutes,
        executable_suffix="",
    )


def _install(tmp_path: Path, workload: WorkloadType, body: str) -> Path:
    directory = tmp_path / "Executables"
    directory.mkdir(exist_ok=True)
    path = directory / EXECUTABLE_NAMES[workload]
    path.write_text("#!/bin/sh\n" + body + "\n", encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def test_every_workload_type_has_an_executable():
    assert set(EXECUTABLE_NAMES) == set(WorkloadType)


def test_resolve_path_uses_fixed_names(tmp_path):
    executor = ProcessWorkloadExecutor(_settings(tmp_path))

    assert executor.resolve_path(WorkloadType.SETUP) == tmp_path / "Executables" / "Executors.SetupWorkload"
    assert executor.resolve_path("InizioFirmaEnti").name == "Executors.InizioFirmaEnteWorkload"
    assert (
        executor.resolve_path(WorkloadType.CHIUSURA_FASE_DI_FIRMA_DIGITALE).name
        == "Executors.ChiusuraFaseDiFirmaDigitale"
    )


def test_resolve_path_appends_suffix(tmp_path):
    settings = WorkloadExecutionSettings(base_dir=tmp_path, executable_suffix=".exe")
    executor = ProcessWorkloadExecutor(settings)

    assert executor.resolve_path(WorkloadType.GENERA_CONTRATTI).name == "Executors.GeneraContrattiWorkload.exe"


def test_resolve_path_rejects_unknown_type(tmp_path):
    executor = ProcessWorkloadExecutor(_settings(tmp_path))

    with pytest.raises(UnsupportedWorkloadError):
        executor.resolve_path("NotAWorkload")


def test_is_available_never_raises(tmp_path):
    executor = ProcessWorkloadExecutor(_settings(tmp_path))

    assert executor.is_available(WorkloadType.SETUP) is False
    assert executor.is_available("NotAWorkload") is False


def test_build_workload_environment_prefixes_and_uppercases():
    env = build_workload_environment(
        {"region": "eu", "MaxConcurrentTasks": 3, "empty": None},
        base_env={"PATH": "/bin"},
    )

    assert env == {
        "PATH": "/bin",
        "WORKLOAD_REGION": "eu",
        "WORKLOAD_MAXCONCURRENTTASKS": "3",
        "WORKLOAD_EMPTY": "",
    }


@pytest.mark.asyncio
async def test_execute_missing_executable_raises(tmp_path):
    executor = ProcessWorkloadExecutor(_settings(tmp_path))

    with pytest.raises(ExecutableNotFoundError):
        await executor.execute(WorkloadType.SETUP)


@pytest.mark.asyncio
async def test_execute_unknown_type_raises(tmp_path):
    executor = ProcessWorkloadExecutor(_settings(tmp_path))

    with pytest.raises(UnsupportedWorkloadError):
        await executor.execute("NotAWorkload")


@posix_only
@pytest.mark.asyncio
async def test_execute_success_captures_output_and_env(tmp_path):
    _install(
        tmp_path,
        WorkloadType.SETUP,
        'echo "region=$WORKLOAD_REGION"\necho ""\necho "warn" 1>&2\npwd',
    )
    executor = ProcessWorkloadExecutor(_settings(tmp_path))

    result = await executor.execute(WorkloadType.SETUP, {"region": "eu"})

    assert result.success is True
    assert result.exit_code == 0
    assert result.stdout_lines[0] == "region=eu"
    # Empty lines are dropped; working directory is the executables directory
    assert len(result.stdout_lines) == 2
    assert Path(result.stdout_lines[1]).resolve() == (tmp_path / "Executables").resolve()
    assert result.stderr_lines == ("warn",)
    assert result.execution_time_ms >= 0
    assert result.error_message is None


@posix_only
@pytest.mark.asyncio
async def test_execute_non_zero_exit_carries_result(tmp_path):
    _install(tmp_path, WorkloadType.GENERA_CONTRATTI, 'echo "partial"\necho "boom" 1>&2\nexit 3')
    executor = ProcessWorkloadExecutor(_settings(tmp_path))

    with pytest.raises(NonZeroExitError) as exc_info:
        await executor.execute(WorkloadType.GENERA_CONTRATTI)

    error = exc_info.value
    assert error.exit_code == 3
    assert "exited with code 3" in str(error)
    assert error.result.exit_code == 3
    assert error.result.success is False
    assert error.result.stdout_lines == ("partial",)
    assert error.result.stderr_lines == ("boom",)


@posix_only
@pytest.mark.asyncio
async def test_execute_timeout_kills_process_tree(tmp_path):
    marker = tmp_path / "survived"
    _install(
        tmp_path,
        WorkloadType.CONTRATTI_CLEANUP,
        f'echo "started"\n(sleep 2; touch "{marker}") &\nsleep 30',
    )
    # 0.01 minutes = 0.6 seconds
    executor = ProcessWorkloadExecutor(_settings(tmp_path, timeout_minutes=0.01))

    started = time.monotonic()
    with pytest.raises(ExecutionTimeoutError) as exc_info:
        await executor.execute(WorkloadType.CONTRATTI_CLEANUP)
    elapsed = time.monotonic() - started

    assert elapsed < 10
    assert "timed out" in str(exc_info.value)
    assert exc_info.value.result is not None
    assert exc_info.value.result.success is False
    assert exc_info.value.result.stdout_lines == ("started",)
    assert 600 <= exc_info.value.result.execution_time_ms < 30000

    # The background grandchild was killed together with the script
    time.sleep(3)
    assert not marker.exists()


@posix_only
@pytest.mark.asyncio
async def test_execute_does_not_touch_caller_environment(tmp_path):
    _install(tmp_path, WorkloadType.SETUP, 'echo "region=$WORKLOAD_REGION"')
    executor = ProcessWorkloadExecutor(_settings(tmp_path))
    before = dict(os.environ)

    result = await executor.execute(WorkloadType.SETUP, {"region": "eu"})

    assert result.stdout_lines == ("region=eu",)
    assert dict(os.environ) == before
    assert "WORKLOAD_REGION" not in os.environ


@posix_only
@pytest.mark.asyncio
async def test_execute_reads_lines_longer_than_stream_limit(tmp_path):
    _install(
        tmp_path,
        WorkloadType.SETUP,
        "head -c 100000 /dev/zero | tr '\\0' 'x'\necho\necho done",
    )
    executor = ProcessWorkloadExecutor(_settings(tmp_path))

    result = await executor.execute(WorkloadType.SETUP)

    assert result.success is True
    assert len(result.stdout_lines) == 2
    assert result.stdout_lines[0] == "x" * 100000
    assert result.stdout_lines[1] == "done"


@posix_only
@pytest.mark.asyncio
async def test_execute_monitoring_failure_kills_process_tree(tmp_path, monkeypatch):
    marker = tmp_path / "survived"
    _install(
        tmp_path,
        WorkloadType.GENERA_CONTRATTI,
        f'(sleep 2; touch "{marker}") &\nsleep 30',
    )

    async def broken_reader(stream, sink, workload, is_error):
        raise RuntimeError("reader broke")

    monkeypatch.setattr(process_executor_module, "_drain_lines", broken_reader)
    executor = ProcessWorkloadExecutor(_settings(tmp_path))

    started = time.monotonic()
    with pytest.raises(ExecutionFailureError) as exc_info:
        await executor.execute(WorkloadType.GENERA_CONTRATTI)

    assert time.monotonic() - started < 10
    error = exc_info.value
    assert error.workload_type == WorkloadType.GENERA_CONTRATTI
    assert "GeneraContratti" in str(error)
    assert "reader broke" in str(error)
    assert error.result.success is False

    time.sleep(3)
    assert not marker.exists()


@posix_only
@pytest.mark.asyncio
async def test_cancelled_execute_kills_process_tree(tmp_path):
    marker = tmp_path / "survived"
    _install(
        tmp_path,
        WorkloadType.CONTRATTI_CLEANUP,
        f'(sleep 2; touch "{marker}") &\nsleep 30',
    )
    executor = ProcessWorkloadExecutor(_settings(tmp_path))

    task = asyncio.create_task(executor.execute(WorkloadType.CONTRATTI_CLEANUP))
    await asyncio.sleep(0.5)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    time.sleep(3)
    assert not marker.exists()
