"""
Scheduled job bodies

The services they call are synchronous; each body runs in the threadpool
with its own session so the event loop is never blocked.
"""
from datetime import date
from typing import Optional

from sqlalchemy.exc import OperationalError
from starlette.concurrency import run_in_threadpool

from app.exceptions import TransientInfrastructureError
from app.logging_config import get_logger
from app.services.analytics_snapshot import generate_daily_snapshot
from app.services.expiry_service import run_expiry_check

logger = get_logger(__name__)


def _expiry_check_sync() -> int:
    from app.db.session import SessionLocal

    db = SessionLocal()
    try:
        return run_expiry_check(db)
    except OperationalError as e:
        raise TransientInfrastructureError(
            "Database unavailable during expiry check", service="database"
        ) from e
    finally:
        db.close()


def _daily_snapshot_sync(day: Optional[date] = None) -> None:
    from app.db.session import SessionLocal

    db = SessionLocal()
    try:
        generate_daily_snapshot(db, day)
    finally:
        db.close()


async def expiry_check() -> int:
    return await run_in_threadpool(_expiry_check_sync)


async def daily_aggregation(day: Optional[date] = None) -> None:
    await run_in_threadpool(_daily_snapshot_sync, day)
