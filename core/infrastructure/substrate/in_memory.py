"""
In-Memory Job Substrate (Infrastructure Layer).

Process-local implementation of the job substrate contract.

Features:
- Immediate, scheduled and recurring jobs
- Continuations that run only after their parent succeeded
- Newest-first state history per job
- Concurrent execution with worker_count slots per queue
- Optional background worker draining the queue

Jobs are lost on restart and never retried.
"""
import asyncio
import itertools
import logging
import os
import threading
from collections import defaultdict, deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional, Set

from core.application.dtos import JobCall, JobDetails, StateHistoryEntry
from core.application.interfaces import IJobSubstrate
from core.domain.enums import JobState

logger = logging.getLogger(__name__)

JobHandler = Callable[..., Awaitable[Any]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass
class _JobRecord:
    job_id: str
    call: JobCall
    created_at: datetime
    history: List[StateHistoryEntry] = field(default_factory=list)
    scheduled_at: Optional[datetime] = None
    parent_id: Optional[str] = None
    result: Any = None

    @property
    def state(self) -> JobState:
        return JobState(self.history[0].state_name)


@dataclass
class RecurringJob:
    """A registered recurring job. The cron expression is stored, not evaluated."""

    recurring_id: str
    call: JobCall
    cron_expression: str
    created_at: datetime
    last_job_id: Optional[str] = None


class InMemoryJobSubstrate(IJobSubstrate):
    """
    In-memory job queue and scheduler.

    Submissions are thread-safe. Jobs run when run_pending() is awaited,
    either directly or from the background worker started with start_worker().
    """

    def __init__(
        self,
        clock: Optional[Callable[[], datetime]] = None,
        worker_count: Optional[int] = None,
    ):
        """
        Initialize substrate.

        Args:
            clock: Returns the current UTC time (defaults to datetime.now)
            worker_count: Concurrent jobs per queue (defaults to twice the CPU count)
        """
        if worker_count is not None and worker_count < 1:
            raise ValueError("worker_count must be at least 1")
        self._clock = clock or _utcnow
        self._worker_count = worker_count or (os.cpu_count() or 1) * 2
        self._ids = itertools.count(1)
        self._lock = threading.RLock()
        self._jobs: Dict[str, _JobRecord] = {}
        self._queue: Deque[str] = deque()
        self._continuations: Dict[str, List[str]] = defaultdict(list)
        self._recurring: Dict[str, RecurringJob] = {}
        self._handlers: Dict[str, JobHandler] = {}
        self._worker_task: Optional[asyncio.Task] = None

    # =========================================================================
    # HANDLERS
    # =========================================================================

    def register_handler(self, method: str, handler: JobHandler) -> None:
        """
        Register the coroutine function that runs jobs for a JobCall method.

        Handlers receive the call kwargs plus job_id.
        """
        self._handlers[method] = handler
        logger.info(f"Registered job handler: {method}")

    def register_handlers(self, handlers: Dict[str, JobHandler]) -> None:
        for method, handler in handlers.items():
            self.register_handler(method, handler)

    # =========================================================================
    # SUBMISSION
    # =========================================================================

    def enqueue(self, call: JobCall) -> str:
        with self._lock:
            record = self._create(call)
            self._enqueue_record(record)
        return record.job_id

    def schedule_at(self, call: JobCall, when: datetime) -> str:
        with self._lock:
            record = self._create(call)
            record.scheduled_at = _as_utc(when)
            self._transition(record, JobState.SCHEDULED)
        return record.job_id

    def add_or_update_recurring(self, recurring_id: str, call: JobCall, cron_expression: str) -> None:
        with self._lock:
            existing = self._recurring.get(recurring_id)
            self._recurring[recurring_id] = RecurringJob(
                recurring_id=recurring_id,
                call=call,
                cron_expression=cron_expression,
                created_at=existing.created_at if existing else self._clock(),
                last_job_id=existing.last_job_id if existing else None,
            )

    def continue_with(self, parent_job_id: str, call: JobCall) -> str:
        with self._lock:
            parent = self._jobs.get(parent_job_id)
            if parent is None:
                raise KeyError(f"Parent job {parent_job_id} not found")

            record = self._create(call)
            record.parent_id = parent_job_id

            if parent.state == JobState.SUCCEEDED:
                self._enqueue_record(record)
            else:
                self._transition(record, JobState.AWAITING)
                self._continuations[parent_job_id].append(record.job_id)
        return record.job_id

    # =========================================================================
    # MANAGEMENT / QUERIES
    # =========================================================================

    def delete(self, job_id: str) -> bool:
        with self._lock:
            record = self._jobs.get(job_id)
            if record is None or record.state == JobState.DELETED:
                return False

            if job_id in self._queue:
                self._queue.remove(job_id)
            self._transition(record, JobState.DELETED)
            return True

    def remove_recurring(self, recurring_id: str) -> None:
        with self._lock:
            self._recurring.pop(recurring_id, None)

    def recurring_job(self, recurring_id: str) -> Optional[RecurringJob]:
        with self._lock:
            return self._recurring.get(recurring_id)

    def trigger_recurring(self, recurring_id: str) -> str:
        """
        Fire a recurring job now.

        Returns:
            Id of the enqueued job

        Raises:
            KeyError: Unknown recurring id
        """
        with self._lock:
            recurring = self._recurring.get(recurring_id)
            if recurring is None:
                raise KeyError(f"Recurring job {recurring_id} not found")

            record = self._create(recurring.call)
            self._enqueue_record(record)
            recurring.last_job_id = record.job_id

        logger.info(f"Triggered recurring job {recurring_id} as job {record.job_id}")
        return record.job_id

    def job_details(self, job_id: str) -> Optional[JobDetails]:
        with self._lock:
            record = self._jobs.get(job_id)
            if record is None:
                return None
            return JobDetails(
                job_id=record.job_id,
                created_at=record.created_at,
                history=list(record.history),
                call=record.call,
                result=record.result,
            )

    def statistics(self) -> Dict[str, int]:
        with self._lock:
            counts = {state.value.lower(): 0 for state in JobState}
            for record in self._jobs.values():
                counts[record.state.value.lower()] += 1
            counts["recurring"] = len(self._recurring)
        return counts

    # =========================================================================
    # PROCESSING
    # =========================================================================

    async def run_pending(self, now: Optional[datetime] = None, poll_interval: float = 0.5) -> int:
        """
        Promote due scheduled jobs, then run enqueued jobs until the queue is idle.

        Every job runs as its own task. Each queue gets worker_count slots,
        so delay jobs never hold a slot of the default queue.

        Args:
            now: Time used to decide which scheduled jobs are due
            poll_interval: Seconds between queue checks while jobs are running

        Returns:
            Number of jobs executed
        """
        slots: Dict[str, asyncio.Semaphore] = defaultdict(lambda: asyncio.Semaphore(self._worker_count))
        running: Set[asyncio.Task] = set()
        executed = 0

        try:
            while True:
                self._promote_due(_as_utc(now) if now else self._clock())
                for job_id in self._dequeue_all():
                    running.add(asyncio.create_task(self._run_in_slot(job_id, slots)))

                if not running:
                    break

                done, running = await asyncio.wait(
                    running, timeout=poll_interval, return_when=asyncio.FIRST_COMPLETED
                )
                for task in done:
                    if task.exception() is not None:
                        logger.error(f"Job task crashed: {task.exception()}")
                    elif task.result():
                        executed += 1
        finally:
            for task in running:
                task.cancel()
            if running:
                await asyncio.gather(*running, return_exceptions=True)

        return executed

    async def start_worker(self, poll_interval: float = 1.0) -> None:
        """Start a background task that calls run_pending() periodically."""
        if self._worker_task is not None:
            return
        self._worker_task = asyncio.create_task(self._worker_loop(poll_interval))
        logger.info(f"Job worker started ({self._worker_count} slots per queue)")

    async def stop_worker(self) -> None:
        if self._worker_task is None:
            return
        self._worker_task.cancel()
        try:
            await self._worker_task
        except asyncio.CancelledError:
            pass
        self._worker_task = None
        logger.info("Job worker stopped")

    async def _worker_loop(self, poll_interval: float) -> None:
        while True:
            try:
                await self.run_pending(poll_interval=poll_interval)
            except Exception as e:
                logger.error(f"Job worker iteration failed: {e}", exc_info=True)
            await asyncio.sleep(poll_interval)

    def _dequeue_all(self) -> List[str]:
        with self._lock:
            job_ids = list(self._queue)
            self._queue.clear()
        return job_ids

    async def _run_in_slot(self, job_id: str, slots: Dict[str, asyncio.Semaphore]) -> bool:
        with self._lock:
            queue = self._jobs[job_id].call.queue
        async with slots[queue]:
            return await self._perform(job_id)

    async def _perform(self, job_id: str) -> bool:
        """Run one dequeued job. Returns False if it was no longer enqueued."""
        with self._lock:
            record = self._jobs[job_id]
            if record.state != JobState.ENQUEUED:
                return False
            self._transition(record, JobState.PROCESSING)
            call = record.call

        handler = self._handlers.get(call.method)

        try:
            if handler is None:
                raise LookupError(f"No handler registered for method '{call.method}'")
            result = await handler(**call.kwargs, job_id=job_id)
        except asyncio.CancelledError:
            logger.warning(f"Job {job_id} ({call.method}) cancelled")
            with self._lock:
                if record.state == JobState.PROCESSING:
                    self._transition(record, JobState.FAILED, reason="Job cancelled")
            raise
        except Exception as e:
            logger.error(f"Job {job_id} ({call.method}) failed: {e}")
            with self._lock:
                if record.state == JobState.PROCESSING:
                    self._transition(record, JobState.FAILED, reason=str(e) or type(e).__name__)
            return True

        with self._lock:
            # Deleted while running: keep the Deleted state
            if record.state != JobState.PROCESSING:
                return True
            record.result = result
            self._transition(record, JobState.SUCCEEDED)

            for child_id in self._continuations.pop(job_id, []):
                child = self._jobs[child_id]
                if child.state == JobState.AWAITING:
                    self._enqueue_record(child)

        return True

    def _promote_due(self, now: datetime) -> None:
        with self._lock:
            due = [
                record
                for record in self._jobs.values()
                if record.state == JobState.SCHEDULED and record.scheduled_at <= now
            ]
            for record in sorted(due, key=lambda r: r.scheduled_at):
                self._enqueue_record(record)

    # =========================================================================
    # HELPERS (caller holds the lock)
    # =========================================================================

    def _create(self, call: JobCall) -> _JobRecord:
        record = _JobRecord(job_id=str(next(self._ids)), call=call, created_at=self._clock())
        self._jobs[record.job_id] = record
        return record

    def _enqueue_record(self, record: _JobRecord) -> None:
        self._transition(record, JobState.ENQUEUED)
        self._queue.append(record.job_id)

    def _transition(self, record: _JobRecord, state: JobState, reason: Optional[str] = None) -> None:
        record.history.insert(
            0, StateHistoryEntry(state_name=state.value, created_at=self._clock(), reason=reason)
        )
