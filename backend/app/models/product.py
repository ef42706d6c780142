"""
Product model - shop-scoped stock item

Stock is tracked twice for historical reasons:
- ``quantity``: legacy scalar count, still read by older clients
- ``stock_godown`` / ``stock_store`` / ``stock_total``: structured stock
  split between the warehouse (godown) and the shop floor (store)

Writers keep both in sync via ``sync_stock()``.
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Text, ForeignKey, Index
from sqlalchemy.orm import relationship
from datetime import datetime

from app.db.base import Base


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        Index("ix_products_shop_sku", "shop_id", "sku"),
    )

    id = Column(Integer, primary_key=True, index=True)
    shop_id = Column(Integer, ForeignKey("shops.id"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    sku = Column(String(100), nullable=True)  # barcode / QR code
    description = Column(Text, nullable=True)
    price = Column(Numeric(18, 4), default=0, nullable=False)

    # Legacy scalar stock
    quantity = Column(Integer, default=0, nullable=False, index=True)

    # Structured stock
    stock_godown = Column(Integer, default=0, nullable=False)
    stock_store = Column(Integer, default=0, nullable=False)
    stock_total = Column(Integer, default=0, nullable=False)

    low_stock_threshold = Column(Integer, default=10, nullable=False)

    created_by = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    batches = relationship("ProductBatch", back_populates="product", cascade="all, delete-orphan")

    @property
    def is_low_stock(self) -> bool:
        return (self.quantity or 0) <= (self.low_stock_threshold or 0)

    def sync_stock(self) -> None:
        """Recompute the structured total and mirror it onto the legacy field."""
        self.stock_total = (self.stock_godown or 0) + (self.stock_store or 0)
        self.quantity = self.stock_total

    def __repr__(self):
        return f"<Product {self.id}: {self.name} qty={self.quantity}>"
