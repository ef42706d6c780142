"""
Unit tests for the retrying, single-flight job runner and its scheduling
"""
import asyncio

import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from app.jobs.runner import JobRunner, JobStatusStore
from app.jobs.scheduler import AGGREGATION_JOB_ID, EXPIRY_JOB_ID, schedule_daily


class FlakyCheck:
    """Async check that fails a fixed number of times before succeeding."""

    def __init__(self, failures: int):
        self.failures = failures
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise RuntimeError(f"database unavailable (call {self.calls})")


class TestExecute:

    @pytest.mark.unit
    def test_success_records_run(self):
        check = FlakyCheck(failures=0)
        runner = JobRunner(check, retries=2, backoff_ms=0)

        status = asyncio.run(runner.execute())

        assert check.calls == 1
        assert status.running is False
        assert status.last_error is None
        assert status.last_run is not None
        assert status.last_duration_ms >= 0

    @pytest.mark.unit
    def test_two_failures_then_success(self):
        check = FlakyCheck(failures=2)
        runner = JobRunner(check, retries=2, backoff_ms=0)

        status = asyncio.run(runner.execute())

        assert check.calls == 3
        assert status.last_error is None
        assert status.running is False
        assert status.last_run is not None

    @pytest.mark.unit
    def test_always_failing_propagates(self):
        check = FlakyCheck(failures=10)
        status = JobStatusStore()
        runner = JobRunner(check, status, retries=2, backoff_ms=0)

        with pytest.raises(RuntimeError, match="call 3"):
            asyncio.run(runner.execute())

        assert check.calls == 3
        assert status.running is False
        assert status.last_error == "database unavailable (call 3)"
        assert status.last_run is None

    @pytest.mark.unit
    def test_zero_retries_single_attempt(self):
        check = FlakyCheck(failures=1)
        runner = JobRunner(check, retries=0, backoff_ms=0)

        with pytest.raises(RuntimeError):
            asyncio.run(runner.execute())

        assert check.calls == 1

    @pytest.mark.unit
    def test_fixed_backoff_between_attempts(self, monkeypatch):
        sleeps = []

        async def fake_sleep(seconds):
            sleeps.append(seconds)

        monkeypatch.setattr("app.jobs.runner.asyncio.sleep", fake_sleep)
        runner = JobRunner(FlakyCheck(failures=2), retries=2, backoff_ms=2000)

        asyncio.run(runner.execute())

        assert sleeps == [2.0, 2.0]

    @pytest.mark.unit
    def test_single_flight_while_running(self):
        release = None
        calls = 0

        async def slow_check():
            nonlocal calls
            calls += 1
            await release.wait()

        async def scenario():
            nonlocal release
            release = asyncio.Event()
            runner = JobRunner(slow_check, retries=2, backoff_ms=0)

            first = asyncio.create_task(runner.execute())
            await asyncio.sleep(0)
            assert runner.status.running is True

            second = await runner.execute()
            assert second is runner.status
            assert second.running is True

            release.set()
            await first
            return runner.status

        status = asyncio.run(scenario())

        assert calls == 1
        assert status.running is False

    @pytest.mark.unit
    def test_error_cleared_on_next_success(self):
        check = FlakyCheck(failures=1)
        runner = JobRunner(check, retries=0, backoff_ms=0)

        with pytest.raises(RuntimeError):
            asyncio.run(runner.execute())
        assert runner.status.last_error is not None

        asyncio.run(runner.execute())
        assert runner.status.last_error is None

    @pytest.mark.unit
    def test_rejects_negative_retries(self):
        with pytest.raises(ValueError):
            JobRunner(FlakyCheck(0), retries=-1)


class TestScheduleDaily:

    @staticmethod
    def _field(job, name):
        trigger = job.trigger
        return str(trigger.fields[trigger.FIELD_NAMES.index(name)])

    @pytest.mark.unit
    def test_registers_two_independent_jobs(self):
        scheduler = AsyncIOScheduler(timezone="UTC")
        runner = JobRunner(FlakyCheck(0), backoff_ms=0)

        async def aggregation():
            return None

        schedule_daily(scheduler, runner, aggregation)

        jobs = {job.id: job for job in scheduler.get_jobs()}
        assert set(jobs) == {EXPIRY_JOB_ID, AGGREGATION_JOB_ID}
        assert (self._field(jobs[EXPIRY_JOB_ID], "hour"), self._field(jobs[EXPIRY_JOB_ID], "minute")) == ("2", "0")
        assert (self._field(jobs[AGGREGATION_JOB_ID], "hour"), self._field(jobs[AGGREGATION_JOB_ID], "minute")) == ("3", "0")
        assert jobs[EXPIRY_JOB_ID].args == (runner,)

    @pytest.mark.unit
    def test_custom_cron_expressions(self):
        scheduler = AsyncIOScheduler(timezone="UTC")

        async def aggregation():
            return None

        schedule_daily(scheduler, JobRunner(FlakyCheck(0)), aggregation, cron="30 1 * * *", secondary_cron="15 4 * * 1")

        expiry = scheduler.get_job(EXPIRY_JOB_ID)
        aggregation_job = scheduler.get_job(AGGREGATION_JOB_ID)
        assert self._field(expiry, "hour") == "1"
        assert self._field(expiry, "minute") == "30"
        assert self._field(aggregation_job, "hour") == "4"
        assert self._field(aggregation_job, "minute") == "15"

    @pytest.mark.unit
    def test_fired_job_logs_failures_instead_of_raising(self):
        from app.jobs.scheduler import _fire_aggregation, _fire_expiry

        async def broken():
            raise RuntimeError("boom")

        runner = JobRunner(broken, retries=0, backoff_ms=0)

        asyncio.run(_fire_expiry(runner))
        asyncio.run(_fire_aggregation(broken))

        assert runner.status.last_error == "boom"
        assert runner.status.running is False
