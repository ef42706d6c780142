"""
Daily analytics pre-aggregation

Summarises one calendar day of the stock movement ledger into a
DailyAnalytics row. Re-running for the same day overwrites the row.
"""
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Optional, Union

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.logging_config import get_logger
from app.models.daily_analytics import DailyAnalytics
from app.models.stock_movement import StockMovement

logger = get_logger(__name__)

STOCK_ADDED_TYPES = ("godown_in", "store_in")


def day_range(day: Union[date, datetime]):
    """[start, end) datetimes covering the calendar day."""
    if isinstance(day, datetime):
        day = day.date()
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def generate_daily_snapshot(db: Session, day: Optional[Union[date, datetime]] = None) -> DailyAnalytics:
    """
    Upsert the snapshot for ``day`` (default: yesterday, UTC).
    """
    if day is None:
        day = datetime.utcnow().date() - timedelta(days=1)
    start, end = day_range(day)
    value = func.coalesce(func.sum(StockMovement.quantity * StockMovement.unit_price), 0)

    added_qty, added_cost, added_count = (
        db.query(
            func.coalesce(func.sum(StockMovement.quantity), 0),
            value,
            func.count(StockMovement.id),
        )
        .filter(
            StockMovement.movement_type.in_(STOCK_ADDED_TYPES),
            StockMovement.created_at >= start,
            StockMovement.created_at < end,
        )
        .one()
    )

    rows = (
        db.query(
            StockMovement.movement_type,
            func.count(StockMovement.id),
            func.coalesce(func.sum(StockMovement.quantity), 0),
            value,
        )
        .filter(StockMovement.created_at >= start, StockMovement.created_at < end)
        .group_by(StockMovement.movement_type)
        .order_by(StockMovement.movement_type)
        .all()
    )
    movements = [
        {
            "type": movement_type,
            "count": count,
            "total_qty": int(total_qty),
            "total_value": str(Decimal(str(total_value))),
        }
        for movement_type, count, total_qty, total_value in rows
    ]

    snapshot = db.query(DailyAnalytics).filter(DailyAnalytics.date == start.date()).first()
    if snapshot is None:
        snapshot = DailyAnalytics(date=start.date())
        db.add(snapshot)

    snapshot.stock_added_qty = int(added_qty)
    snapshot.stock_added_cost = Decimal(str(added_cost))
    snapshot.stock_added_count = added_count
    snapshot.movements = movements
    snapshot.last_updated = datetime.utcnow()

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(snapshot)

    logger.info(
        f"Daily snapshot for {start.date()}: {added_count} stock additions, {len(movements)} movement types"
    )
    return snapshot
