"""
Daily Analytics snapshot - one row per calendar day, written by the
nightly aggregation job so dashboards don't rescan the movement ledger
"""
from sqlalchemy import Column, Integer, Numeric, DateTime, Date, JSON
from datetime import datetime

from app.db.base import Base


class DailyAnalytics(Base):
    __tablename__ = "daily_analytics"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, unique=True, nullable=False, index=True)

    # Stock received into the shop that day
    stock_added_qty = Column(Integer, default=0, nullable=False)
    stock_added_cost = Column(Numeric(18, 4), default=0, nullable=False)
    stock_added_count = Column(Integer, default=0, nullable=False)

    # [{"type": "store_out", "count": 3, "total_qty": 12, "total_value": "48.00"}, ...]
    movements = Column(JSON, nullable=False, default=list)

    last_updated = Column(DateTime, default=datetime.utcnow, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<DailyAnalytics {self.date}>"
