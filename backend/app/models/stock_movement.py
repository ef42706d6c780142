"""
Stock Movement model - ledger of every quantity change between locations
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime

from app.db.base import Base

MOVEMENT_TYPES = (
    "godown_to_store",
    "store_to_godown",
    "godown_in",
    "godown_out",
    "store_in",
    "store_out",
    "adjustment",
    "expired",
    "damaged",
    "returned",
)
LOCATIONS = ("godown", "store", "external", "supplier", "customer")


class StockMovement(Base):
    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    batch_id = Column(Integer, ForeignKey("product_batches.id", ondelete="SET NULL"), nullable=True)

    movement_type = Column(String(30), nullable=False, index=True)
    from_location = Column(String(20), nullable=False)
    to_location = Column(String(20), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(18, 4), default=0, nullable=False)

    # Snapshot of product stock around the movement
    previous_godown = Column(Integer, default=0, nullable=False)
    previous_store = Column(Integer, default=0, nullable=False)
    previous_total = Column(Integer, default=0, nullable=False)
    new_godown = Column(Integer, default=0, nullable=False)
    new_store = Column(Integer, default=0, nullable=False)
    new_total = Column(Integer, default=0, nullable=False)

    reason = Column(Text, nullable=True)
    reference = Column(String(100), nullable=True)  # e.g. PO number
    performed_by = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    product = relationship("Product")
    batch = relationship("ProductBatch")

    def __repr__(self):
        return f"<StockMovement {self.movement_type}: {self.quantity}>"
