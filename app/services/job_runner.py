"""
Job Runner - Bounded background execution for merge jobs.

Jobs are started as asyncio tasks and return control to the request handler
immediately. A semaphore caps how many run at once; the rest wait their turn.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class JobRunner:
    """
    Launches job coroutines on the running event loop.

    Keeps a reference to every task until it finishes so tasks are not
    garbage collected mid-flight, and exposes running/pending counts.
    """

    def __init__(self, max_concurrent_jobs: int):
        if max_concurrent_jobs < 1:
            raise ValueError("max_concurrent_jobs must be at least 1")
        self.max_concurrent_jobs = max_concurrent_jobs
        self._semaphore: Optional[asyncio.Semaphore] = None
        self._tasks: set[asyncio.Task] = set()
        self._running = 0

    def _get_semaphore(self) -> asyncio.Semaphore:
        """Get or create the job semaphore (bound to the running loop)."""
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.max_concurrent_jobs)
        return self._semaphore

    @property
    def running(self) -> int:
        return self._running

    @property
    def pending(self) -> int:
        return len(self._tasks) - self._running

    def submit(self, job_id: str, job_fn: Callable[[], Awaitable[object]]) -> asyncio.Task:
        """
        Schedule ``job_fn`` without waiting for it.

        Must be called from within the event loop.
        """
        task = asyncio.get_running_loop().create_task(
            self._run(job_id, job_fn), name=f"job-{job_id}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.debug(f"Job {job_id} queued ({self.running} running, {self.pending} pending)")
        return task

    async def _run(self, job_id: str, job_fn: Callable[[], Awaitable[object]]) -> None:
        async with self._get_semaphore():
            self._running += 1
            try:
                await job_fn()
            except Exception as e:
                logger.exception(f"Unhandled error in job {job_id}: {e}")
            finally:
                self._running -= 1

    async def join(self) -> None:
        """Wait for every submitted job to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel outstanding jobs and wait for them to unwind."""
        if not self._tasks:
            return
        logger.info(f"Cancelling {len(self._tasks)} outstanding job(s)")
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
