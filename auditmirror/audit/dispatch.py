"""Bounded, drop-on-overflow dispatch queue with a fixed worker pool.

Submission never waits: a full queue drops the task, logs a warning and
counts the drop. Workers process tasks one at a time and survive any
task failure. Delivery is best-effort with no ordering guarantee and no
retry.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from auditmirror.audit.models import AuditTask
from auditmirror.observability.logging import get_logger
from auditmirror.observability.metrics import (
    QUEUE_DEPTH,
    TASK_LATENCY,
    TASKS_DROPPED,
    TASKS_PROCESSED,
    TASKS_SUBMITTED,
)

logger = get_logger(__name__)

TaskHandler = Callable[[AuditTask], Awaitable[None]]


@dataclass
class DispatchStats:
    """In-process counters mirroring the Prometheus metrics."""

    submitted: int = 0
    accepted: int = 0
    dropped: int = 0
    processed: int = 0
    failed: int = 0


class AuditDispatcher:
    """Fixed pool of worker coroutines fed by one bounded queue.

    Usage:
        dispatcher = AuditDispatcher(service.process, workers=4, queue_size=1000)
        await dispatcher.start()
        dispatcher.submit(task)
        ...
        await dispatcher.close(timeout=10)
    """

    def __init__(
        self,
        handler: TaskHandler,
        *,
        workers: int = 4,
        queue_size: int = 1000,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            handler: Coroutine run for every task
            workers: Number of worker coroutines
            queue_size: Queue capacity; tasks beyond it are dropped

        Raises:
            ValueError: If workers or queue_size is not positive
        """
        if workers < 1:
            raise ValueError(f"workers must be positive, got {workers}")
        if queue_size < 1:
            raise ValueError(f"queue_size must be positive, got {queue_size}")

        self._handler = handler
        self._worker_count = workers
        self._queue_size = queue_size
        self._queue: asyncio.Queue[AuditTask] = asyncio.Queue(maxsize=queue_size)
        self._workers: list[asyncio.Task[None]] = []
        self._loop: asyncio.AbstractEventLoop | None = None
        self._closed = False
        self.stats = DispatchStats()

    @property
    def is_running(self) -> bool:
        return bool(self._workers)

    @property
    def pending(self) -> int:
        """Number of tasks waiting in the queue."""
        return self._queue.qsize()

    async def start(self) -> None:
        """Launch the worker coroutines on the running loop."""
        if self._workers:
            logger.warning("audit_dispatcher_already_running")
            return

        self._loop = asyncio.get_running_loop()
        self._closed = False
        self._workers = [
            asyncio.create_task(self._worker(i), name=f"audit-worker-{i}")
            for i in range(self._worker_count)
        ]
        logger.info(
            "audit_dispatcher_started",
            workers=self._worker_count,
            queue_size=self._queue_size,
        )

    def submit(self, task: AuditTask) -> bool:
        """Enqueue a task without blocking.

        Returns:
            True if the task was queued, False if it was dropped
        """
        self.stats.submitted += 1
        TASKS_SUBMITTED.labels(table=task.table_name).inc()

        if self._closed:
            return self._drop(task, "closed")

        try:
            self._queue.put_nowait(task)
        except asyncio.QueueFull:
            return self._drop(task, "queue_full")

        self.stats.accepted += 1
        QUEUE_DEPTH.set(self._queue.qsize())
        return True

    def submit_threadsafe(self, task: AuditTask) -> None:
        """Submit from a thread other than the dispatcher's event loop.

        The outcome is not reported back; drops are still logged and counted.
        A dispatcher that was never started, or whose loop is closed, drops
        the task.
        """
        loop = self._loop
        if loop is not None and not loop.is_closed():
            try:
                loop.call_soon_threadsafe(self.submit, task)
                return
            except RuntimeError:
                # Loop closed after the check
                pass

        self.stats.submitted += 1
        TASKS_SUBMITTED.labels(table=task.table_name).inc()
        self._drop(task, "not_running")

    def _drop(self, task: AuditTask, reason: str) -> bool:
        self.stats.dropped += 1
        TASKS_DROPPED.labels(table=task.table_name, reason=reason).inc()
        logger.warning(
            "audit_task_dropped",
            reason=reason,
            table=task.table_name,
            action=task.action,
            queue_size=self._queue_size,
        )
        return False

    async def _worker(self, worker_id: int) -> None:
        while True:
            task = await self._queue.get()
            try:
                await self._run(task, worker_id)
            finally:
                self._queue.task_done()
                QUEUE_DEPTH.set(self._queue.qsize())

    async def _run(self, task: AuditTask, worker_id: int) -> None:
        started = time.perf_counter()
        try:
            await self._handler(task)
        except Exception as e:
            self.stats.failed += 1
            TASKS_PROCESSED.labels(table=task.table_name, outcome="failed").inc()
            logger.error(
                "audit_task_failed",
                worker=worker_id,
                table=task.table_name,
                record_id=str(task.record_id),
                action=task.action,
                error=str(e),
                error_type=type(e).__name__,
            )
            return

        self.stats.processed += 1
        TASKS_PROCESSED.labels(table=task.table_name, outcome="written").inc()
        TASK_LATENCY.labels(table=task.table_name).observe(time.perf_counter() - started)

    async def close(self, timeout: float | None = None) -> None:
        """Stop accepting tasks, drain the queue, then stop the workers.

        Args:
            timeout: Seconds to wait for queued tasks; tasks still queued
                after it are discarded
        """
        self._closed = True
        if not self._workers:
            return

        try:
            await asyncio.wait_for(self._queue.join(), timeout)
        except TimeoutError:
            logger.warning("audit_dispatcher_drain_timeout", discarded=self._queue.qsize())

        for worker in self._workers:
            worker.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []

        logger.info(
            "audit_dispatcher_stopped",
            processed=self.stats.processed,
            failed=self.stats.failed,
            dropped=self.stats.dropped,
        )
