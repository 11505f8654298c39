"""
Unit tests for the bounded job runner.
"""

import asyncio

import pytest

from app.services.job_runner import JobRunner


def test_rejects_zero_concurrency():
    with pytest.raises(ValueError):
        JobRunner(0)


def test_submit_does_not_wait_for_job():
    async def main():
        runner = JobRunner(max_concurrent_jobs=2)
        release = asyncio.Event()
        finished = []

        async def job():
            await release.wait()
            finished.append(True)

        runner.submit("job-1", job)
        await asyncio.sleep(0)
        assert finished == []
        assert runner.running == 1

        release.set()
        await runner.join()
        assert finished == [True]
        assert runner.running == 0

    asyncio.run(main())


def test_concurrency_is_capped():
    async def main():
        runner = JobRunner(max_concurrent_jobs=2)
        active = 0
        peak = 0

        async def job():
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1

        for i in range(6):
            runner.submit(f"job-{i}", job)
        await asyncio.sleep(0)
        assert runner.running == 2
        assert runner.pending == 4

        await runner.join()
        return peak

    assert asyncio.run(main()) == 2


def test_job_exception_does_not_escape():
    async def main():
        runner = JobRunner(max_concurrent_jobs=1)
        ran_after = []

        async def broken():
            raise RuntimeError("boom")

        async def healthy():
            ran_after.append(True)

        runner.submit("broken", broken)
        runner.submit("healthy", healthy)
        await runner.join()
        return ran_after

    assert asyncio.run(main()) == [True]


def test_shutdown_cancels_outstanding_jobs():
    async def main():
        runner = JobRunner(max_concurrent_jobs=1)

        async def forever():
            await asyncio.sleep(3600)

        task = runner.submit("slow", forever)
        await asyncio.sleep(0)
        await runner.shutdown()
        return task

    task = asyncio.run(main())
    assert task.cancelled()
