"""
Process Executor.

Runs one workload executable to completion as a child process:
- parameters are passed only as WORKLOAD_<KEY> environment variables
- stdout/stderr are drained line by line while the process runs
- a hard timeout kills the whole process tree
"""
import asyncio
import os
import signal
import subprocess
import sys
import time
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Union

from core.application.interfaces import IWorkloadExecutor
from core.domain.enums import WorkloadType
from core.domain.exceptions import (
    ExecutableNotFoundError,
    ExecutionFailureError,
    ExecutionTimeoutError,
    NonZeroExitError,
    UnsupportedWorkloadError,
    WorkloadExecutionError,
)
from core.domain.value_objects import ExecutionResult
from core.infrastructure.logging import get_logger
from core.settings import WorkloadExecutionSettings

logger = get_logger(__name__)

ENV_PREFIX = "WORKLOAD_"
READ_CHUNK_SIZE = 64 * 1024

EXECUTABLE_NAMES: Mapping[WorkloadType, str] = MappingProxyType({
    WorkloadType.SETUP: "Executors.SetupWorkload",
    WorkloadType.PREPARAZIONE_GENERAZIONE_CONTRATTI: "Executors.PreparazioneGenerazioneContrattiWorkload",
    WorkloadType.GENERA_CONTRATTI: "Executors.GeneraContrattiWorkload",
    WorkloadType.INIZIO_FIRMA_MASSIVA: "Executors.InizioFirmaMassivaWorkload",
    WorkloadType.FINALIZZAZIONE_FIRMA_MASSIVA: "Executors.FinalizzazioneFirmaMassivaWorkload",
    WorkloadType.PREPARAZIONE_FIRMA_VOLONTARI: "Executors.PreparazioneFirmaVolontariWorkload",
    WorkloadType.INIZIO_FIRMA_VOLONTARI: "Executors.InizioFirmaVolontariWorkload",
    WorkloadType.FINALIZZAZIONE_FIRMA_VOLONTARI: "Executors.FinalizzazioneFirmaVolontariWorkload",
    WorkloadType.CHIUSURA_FASE_DI_FIRMA_DIGITALE: "Executors.ChiusuraFaseDiFirmaDigitale",
    WorkloadType.PREPARAZIONE_FIRMA_ENTE: "Executors.PreparazioneFirmaEnteWorkload",
    WorkloadType.INIZIO_FIRMA_ENTI: "Executors.InizioFirmaEnteWorkload",
    WorkloadType.FINALIZZAZIONE_FIRMA_ENTI: "Executors.FinalizzazioneFirmaEnteWorkload",
    WorkloadType.FINALIZZAZIONE_WORKFLOW: "Executors.FinalizzazioneWorkflowWorkload",
    WorkloadType.CONTRATTI_CLEANUP: "Executors.ContrattiCleanupWorkload",
})


def to_workload_type(value: Union[WorkloadType, str]) -> WorkloadType:
    """Coerce a raw value to a WorkloadType, failing with UnsupportedWorkloadError."""
    if isinstance(value, WorkloadType):
        return value
    try:
        return WorkloadType(value)
    except ValueError:
        raise UnsupportedWorkloadError(value) from None


def build_workload_environment(
    parameters: Optional[Mapping[str, Any]],
    base_env: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """
    Build the child environment: a copy of base_env plus one
    WORKLOAD_<UPPERCASED_KEY> variable per parameter (None becomes "").
    """
    env = dict(os.environ if base_env is None else base_env)
    for key, value in (parameters or {}).items():
        env[f"{ENV_PREFIX}{str(key).upper()}"] = "" if value is None else str(value)
    return env


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


class ProcessWorkloadExecutor(IWorkloadExecutor):
    """Executes workloads as external child processes."""

    def __init__(self, settings: WorkloadExecutionSettings):
        """
        Initialize executor.

        Args:
            settings: Executables location and timeout configuration
        """
        self._settings = settings

    @property
    def timeout_seconds(self) -> float:
        return self._settings.timeout_seconds

    def resolve_path(self, workload_type: Union[WorkloadType, str]) -> Path:
        workload = to_workload_type(workload_type)
        executable_name = EXECUTABLE_NAMES.get(workload)
        if executable_name is None:
            raise UnsupportedWorkloadError(workload)
        return self._settings.executables_dir / f"{executable_name}{self._settings.executable_suffix}"

    def is_available(self, workload_type: Union[WorkloadType, str]) -> bool:
        try:
            return self.resolve_path(workload_type).is_file()
        except Exception:
            return False

    async def execute(
        self,
        workload_type: Union[WorkloadType, str],
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> ExecutionResult:
        """
        Run the workload executable and wait for it to finish.

        Args:
            workload_type: Workload to run
            parameters: Values exported to the child as WORKLOAD_<KEY>

        Returns:
            ExecutionResult of a successful (exit code 0) run

        Raises:
            UnsupportedWorkloadError: Unknown workload type
            ExecutableNotFoundError: Executable missing on disk
            ExecutionTimeoutError: Timeout elapsed; process tree was killed
            NonZeroExitError: Process exited with a non-zero code
            ExecutionFailureError: Launch or monitoring failed
        """
        workload = to_workload_type(workload_type)
        executable_path = self.resolve_path(workload)

        if not executable_path.is_file():
            logger.error(f"Executable not found for workload {workload}: {executable_path}")
            raise ExecutableNotFoundError(workload, executable_path)

        timeout = self.timeout_seconds
        stdout_lines: List[str] = []
        stderr_lines: List[str] = []
        process: Optional[asyncio.subprocess.Process] = None
        drain_tasks: List[asyncio.Future] = []
        started = time.perf_counter()

        try:
            logger.info(f"Starting execution of {workload} at {executable_path}")

            env = build_workload_environment(parameters)
            for key in parameters or {}:
                logger.debug(f"Added environment variable: {ENV_PREFIX}{str(key).upper()}")

            process = await asyncio.create_subprocess_exec(
                str(executable_path),
                cwd=str(executable_path.parent),
                env=env,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                **_process_group_kwargs(),
            )

            drain_tasks = [
                asyncio.ensure_future(_drain_lines(process.stdout, stdout_lines, workload, is_error=False)),
                asyncio.ensure_future(_drain_lines(process.stderr, stderr_lines, workload, is_error=True)),
            ]

            try:
                await asyncio.wait_for(
                    asyncio.gather(process.wait(), *drain_tasks),
                    timeout=timeout,
                )
            except asyncio.TimeoutError:
                logger.warning(
                    f"Process {workload} timed out after {timeout:g}s. Killing process tree."
                )
                await _kill_process_tree(process)
                elapsed = _elapsed_ms(started)
                result = ExecutionResult(
                    exit_code=process.returncode,
                    execution_time_ms=elapsed,
                    stdout_lines=stdout_lines,
                    stderr_lines=stderr_lines,
                    error_message=f"Process {workload} timed out after {timeout:g}s",
                )
                raise ExecutionTimeoutError(workload, timeout, result=result)

            elapsed = _elapsed_ms(started)
            exit_code = process.returncode

            if exit_code != 0:
                error_message = f"Process {workload} exited with code {exit_code}"
                logger.error(error_message)
                result = ExecutionResult(
                    exit_code=exit_code,
                    execution_time_ms=elapsed,
                    stdout_lines=stdout_lines,
                    stderr_lines=stderr_lines,
                    error_message=error_message,
                )
                raise NonZeroExitError(workload, exit_code, result=result)

            logger.info(f"Successfully completed {workload} in {elapsed}ms")
            return ExecutionResult(
                exit_code=exit_code,
                execution_time_ms=elapsed,
                stdout_lines=stdout_lines,
                stderr_lines=stderr_lines,
            )

        except WorkloadExecutionError as e:
            logger.error(
                f"Failed to execute workload {workload} after {_elapsed_ms(started)}ms: {e}"
            )
            raise
        except Exception as e:
            elapsed = _elapsed_ms(started)
            logger.error(
                f"Failed to execute workload {workload} after {elapsed}ms: {e}",
                exc_info=True,
            )
            result = ExecutionResult(
                exit_code=process.returncode if process is not None else None,
                execution_time_ms=elapsed,
                stdout_lines=stdout_lines,
                stderr_lines=stderr_lines,
                error_message=str(e),
            )
            raise ExecutionFailureError(workload, str(e), result=result) from e
        finally:
            # Never leave the child running or the readers pending, whatever the exit path
            await _release(process, drain_tasks, workload)


async def _release(
    process: Optional[asyncio.subprocess.Process],
    drain_tasks: List[asyncio.Future],
    workload: WorkloadType,
) -> None:
    """Kill the process tree if it is still alive, then cancel and reap the drain tasks."""
    if process is not None and process.returncode is None:
        logger.warning(f"Process {workload} still running after monitoring ended. Killing process tree.")
        await _kill_process_tree(process)

    pending = [task for task in drain_tasks if not task.done()]
    for task in pending:
        task.cancel()
    if drain_tasks:
        await asyncio.gather(*drain_tasks, return_exceptions=True)


async def _drain_lines(
    stream: Optional[asyncio.StreamReader],
    sink: List[str],
    workload: WorkloadType,
    is_error: bool,
) -> None:
    """
    Append every non-empty line of stream to sink, logging each one.

    Reads fixed-size chunks and splits lines itself, so line length is not
    bounded by the stream reader's buffer limit.
    """
    if stream is None:
        return

    pending = b""
    while True:
        chunk = await stream.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        *complete, pending = (pending + chunk).split(b"\n")
        for raw in complete:
            _emit_line(raw, sink, workload, is_error)

    if pending:
        _emit_line(pending, sink, workload, is_error)


def _emit_line(raw: bytes, sink: List[str], workload: WorkloadType, is_error: bool) -> None:
    line = raw.decode("utf-8", errors="replace").rstrip("\r")
    if not line:
        return
    sink.append(line)
    if is_error:
        logger.error(f"[{workload}] {line}")
    else:
        logger.info(f"[{workload}] {line}")


def _process_group_kwargs() -> Dict[str, Any]:
    """Start the child in its own process group so the whole tree can be killed."""
    if sys.platform == "win32":
        return {"creationflags": subprocess.CREATE_NEW_PROCESS_GROUP}
    return {"start_new_session": True}


async def _kill_process_tree(process: asyncio.subprocess.Process) -> None:
    """Forcefully terminate process and all of its descendants, then reap it."""
    if process.returncode is None:
        if sys.platform == "win32":
            killer = await asyncio.create_subprocess_exec(
                "taskkill", "/F", "/T", "/PID", str(process.pid),
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
            await killer.wait()
        else:
            try:
                os.killpg(process.pid, signal.SIGKILL)
            except ProcessLookupError:
                pass
    else:
        # Leader already gone; descendants may still hold the group
        if sys.platform != "win32":
            try:
                os.killpg(process.pid, signal.SIGKILL)
            except (ProcessLookupError, PermissionError):
                pass
    await process.wait()
