"""
Product Batch model - a received lot of a product with its own expiry date

Batches are consumed First-Expired-First-Out; listing helpers order by
expiry_date for that reason.
"""
import math
from datetime import datetime
from typing import Optional

from sqlalchemy import Column, Integer, String, Numeric, DateTime, Text, ForeignKey, event
from sqlalchemy.orm import relationship

from app.core.config import settings
from app.db.base import Base

BATCH_STATUSES = ("active", "near_expiry", "expired", "sold_out")


class ProductBatch(Base):
    __tablename__ = "product_batches"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    shop_id = Column(Integer, ForeignKey("shops.id"), nullable=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True)

    batch_number = Column(String(100), default="", nullable=False)
    purchase_price = Column(Numeric(18, 4), default=0, nullable=False)
    selling_price = Column(Numeric(18, 4), default=0, nullable=False)

    # Quantities (total_qty is always godown_qty + store_qty)
    godown_qty = Column(Integer, default=0, nullable=False)
    store_qty = Column(Integer, default=0, nullable=False)
    total_qty = Column(Integer, default=0, nullable=False)
    original_qty = Column(Integer, default=0, nullable=False)

    expiry_date = Column(DateTime, nullable=True, index=True)
    manufacturing_date = Column(DateTime, nullable=True)

    supplier_name = Column(String(200), default="", nullable=False)
    invoice_number = Column(String(100), default="", nullable=False)
    status = Column(String(20), default="active", nullable=False, index=True)
    notes = Column(Text, default="", nullable=False)

    created_by = Column(String(100), nullable=True)
    updated_by = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    product = relationship("Product", back_populates="batches")

    def days_until_expiry(self, now: Optional[datetime] = None) -> Optional[int]:
        if not self.expiry_date:
            return None
        now = now or datetime.utcnow()
        return math.ceil((self.expiry_date - now).total_seconds() / 86400)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if not self.expiry_date:
            return False
        return (now or datetime.utcnow()) >= self.expiry_date

    def is_near_expiry(self, days: Optional[int] = None, now: Optional[datetime] = None) -> bool:
        if days is None:
            days = settings.NEAR_EXPIRY_DAYS
        remaining = self.days_until_expiry(now)
        return remaining is not None and 0 < remaining <= days

    def recalculate(self, now: Optional[datetime] = None) -> None:
        """Derive total_qty and status from the location quantities and expiry date."""
        self.total_qty = (self.godown_qty or 0) + (self.store_qty or 0)
        # Expired wins over sold_out so written-off lots stay visible as expired,
        # including lots the expiry check wrote off against a later clock
        written_off = self.status == "expired" and self.total_qty == 0
        if written_off or self.is_expired(now):
            self.status = "expired"
        elif self.total_qty == 0:
            self.status = "sold_out"
        elif self.is_near_expiry(now=now):
            self.status = "near_expiry"
        else:
            self.status = "active"

    def __repr__(self):
        return f"<ProductBatch {self.batch_number}: {self.total_qty} ({self.status})>"


@event.listens_for(ProductBatch, "before_insert")
@event.listens_for(ProductBatch, "before_update")
def _recalculate_batch(mapper, connection, target: ProductBatch):
    target.recalculate()
