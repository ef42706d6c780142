"""
Activity Log Model

Audit trail of user-visible actions (PO created, items received, supplier
updated, stock migrated, ...). Rows are written in the same transaction as
the change they describe.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from datetime import datetime

from app.db.base import Base


class ActivityLog(Base):
    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, index=True)

    # CREATE_PURCHASE_ORDER, RECEIVE_PURCHASE_ORDER, CANCEL_PURCHASE_ORDER, STOCK_MIGRATION, ...
    action = Column(String(50), nullable=False, index=True)
    user = Column(String(100), nullable=True)
    shop_id = Column(Integer, ForeignKey("shops.id", ondelete="SET NULL"), nullable=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True)

    message = Column(String(500), nullable=False)
    details = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<ActivityLog {self.action}: {self.message}>"
