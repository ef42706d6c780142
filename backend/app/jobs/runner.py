"""
Job runner with retry and single-flight semantics

Usage:
    status = JobStatusStore()
    runner = JobRunner(expiry_check, status, retries=2, backoff_ms=2000)
    await runner.execute()

A call made while a run is in flight returns the current status without
doing any work. The guard is per runner object and per process; it is not
a cross-process lock.
"""
import asyncio
import time
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Optional

from app.logging_config import get_logger

logger = get_logger(__name__)

Check = Callable[[], Awaitable[Any]]


class JobStatusStore:
    """In-memory record of the most recent run. Never persisted."""

    def __init__(self):
        self.last_run: Optional[datetime] = None
        self.last_duration_ms: Optional[int] = None
        self.last_error: Optional[str] = None
        self.running: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "last_run": self.last_run,
            "last_duration_ms": self.last_duration_ms,
            "last_error": self.last_error,
            "running": self.running,
        }

    def __repr__(self):
        return f"<JobStatusStore running={self.running} last_run={self.last_run} last_error={self.last_error!r}>"


class JobRunner:
    """
    Run an async check with bounded retries and a fixed backoff.

    Args:
        check: Coroutine function performing one attempt
        status: Shared status store (a new one is created if omitted)
        retries: Extra attempts after the first failure
        backoff_ms: Fixed wait between failed attempts
        name: Used in log messages
    """

    def __init__(
        self,
        check: Check,
        status: Optional[JobStatusStore] = None,
        retries: int = 2,
        backoff_ms: int = 2000,
        name: str = "job",
    ):
        if retries < 0:
            raise ValueError("retries cannot be negative")
        if backoff_ms < 0:
            raise ValueError("backoff_ms cannot be negative")
        self.check = check
        self.status = status if status is not None else JobStatusStore()
        self.retries = retries
        self.backoff_ms = backoff_ms
        self.name = name

    async def execute(self) -> JobStatusStore:
        """
        Run the check, retrying up to ``retries`` times.

        Returns the status store on success. When every attempt fails the
        last error propagates and ``status.last_error`` keeps its message.
        """
        status = self.status
        if status.running:
            logger.info(f"{self.name}: already running, skipping")
            return status

        status.running = True
        status.last_error = None
        started = time.monotonic()
        attempts = self.retries + 1

        try:
            for attempt in range(1, attempts + 1):
                try:
                    await self.check()
                except Exception as e:
                    status.last_error = str(e) or e.__class__.__name__
                    if attempt == attempts:
                        logger.error(
                            f"{self.name}: failed after {attempts} attempts: {status.last_error}",
                            extra={"job": self.name, "attempts": attempts},
                        )
                        raise
                    logger.warning(
                        f"{self.name}: attempt {attempt}/{attempts} failed: {status.last_error}, "
                        f"retrying in {self.backoff_ms}ms"
                    )
                    await asyncio.sleep(self.backoff_ms / 1000)
                    continue

                status.last_run = datetime.utcnow()
                status.last_duration_ms = int((time.monotonic() - started) * 1000)
                status.last_error = None
                logger.info(
                    f"{self.name}: completed in {status.last_duration_ms}ms",
                    extra={"job": self.name, "attempt": attempt},
                )
                return status
        finally:
            status.running = False

        return status  # pragma: no cover
