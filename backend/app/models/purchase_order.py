"""
Purchase Order models for purchasing module

Status workflow: draft -> sent -> confirmed -> partially_received -> received
Also: cancelled (from any status before receiving starts)
"""
import math
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy import Column, Integer, String, DateTime, Text, Numeric, ForeignKey, Index
from sqlalchemy.orm import relationship

from app.db.base import Base

PO_STATUSES = ("draft", "sent", "confirmed", "partially_received", "received", "cancelled")


class PurchaseOrder(Base):
    """Purchase Order header model"""
    __tablename__ = "purchase_orders"
    __table_args__ = (
        Index("ix_purchase_orders_shop_status", "shop_id", "status"),
        Index("ix_purchase_orders_shop_created", "shop_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)

    # PO Number - PO-<year>-<6 digit shop sequence>, unique across all shops
    po_number = Column(String(50), unique=True, nullable=False, index=True)

    shop_id = Column(Integer, ForeignKey("shops.id"), nullable=False)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=False, index=True)

    status = Column(String(30), default="draft", nullable=False)

    # Financials (fixed at creation)
    subtotal = Column(Numeric(18, 4), default=0, nullable=False)
    tax = Column(Numeric(18, 4), default=0, nullable=False)
    shipping = Column(Numeric(18, 4), default=0, nullable=False)
    total = Column(Numeric(18, 4), default=0, nullable=False)

    # Dates
    expected_delivery_date = Column(DateTime, nullable=True)
    actual_delivery_date = Column(DateTime, nullable=True)
    sent_at = Column(DateTime, nullable=True)
    received_at = Column(DateTime, nullable=True)
    approved_at = Column(DateTime, nullable=True)

    terms = Column(String(100), default="Net 30", nullable=True)
    notes = Column(Text, nullable=True)

    # Audit
    created_by = Column(String(100), nullable=True)
    updated_by = Column(String(100), nullable=True)
    approved_by = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Optimistic concurrency: bumped on every flush of this row
    version = Column(Integer, nullable=False, default=1)

    # Relationships
    shop = relationship("Shop")
    supplier = relationship("Supplier")
    items = relationship(
        "PurchaseOrderItem",
        back_populates="purchase_order",
        cascade="all, delete-orphan",
        order_by="PurchaseOrderItem.position",
    )
    status_history = relationship(
        "PurchaseOrderStatusHistory",
        back_populates="purchase_order",
        cascade="all, delete-orphan",
        order_by="PurchaseOrderStatusHistory.id",
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def completion_percentage(self) -> int:
        """Percent of ordered units received, across all lines."""
        if not self.items:
            return 0
        ordered = sum(item.quantity or 0 for item in self.items)
        if ordered <= 0:
            return 0
        received = sum(item.received_quantity or 0 for item in self.items)
        pct = Decimal(100 * received) / Decimal(ordered)
        return int(pct.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    def days_overdue_at(self, now: datetime) -> int:
        if not self.expected_delivery_date or self.status in ("received", "cancelled"):
            return 0
        if now <= self.expected_delivery_date:
            return 0
        return math.ceil((now - self.expected_delivery_date).total_seconds() / 86400)

    @property
    def days_overdue(self) -> int:
        return self.days_overdue_at(datetime.utcnow())

    def item_for_product(self, product_id: int) -> Optional["PurchaseOrderItem"]:
        """First line ordering the given product, if any."""
        for item in self.items:
            if item.product_id == product_id:
                return item
        return None

    def __repr__(self):
        return f"<PurchaseOrder {self.po_number}: {self.status}>"


class PurchaseOrderItem(Base):
    """Purchase Order line item model"""
    __tablename__ = "purchase_order_items"

    id = Column(Integer, primary_key=True, index=True)
    purchase_order_id = Column(
        Integer, ForeignKey("purchase_orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)

    # Input order on the PO
    position = Column(Integer, nullable=False)

    quantity = Column(Integer, nullable=False)
    unit_cost = Column(Numeric(18, 4), nullable=False)
    total_cost = Column(Numeric(18, 4), nullable=False)  # quantity * unit_cost
    received_quantity = Column(Integer, default=0, nullable=False)

    notes = Column(Text, nullable=True)

    purchase_order = relationship("PurchaseOrder", back_populates="items")
    product = relationship("Product")

    @property
    def is_fully_received(self) -> bool:
        return (self.received_quantity or 0) >= self.quantity

    def __repr__(self):
        return f"<PurchaseOrderItem {self.position}: {self.received_quantity}/{self.quantity}>"


class PurchaseOrderStatusHistory(Base):
    """Append-only record of every status change on a purchase order"""
    __tablename__ = "purchase_order_status_history"

    id = Column(Integer, primary_key=True, index=True)
    purchase_order_id = Column(
        Integer, ForeignKey("purchase_orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status = Column(String(30), nullable=False)
    updated_by = Column(String(100), nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    notes = Column(Text, nullable=True)

    purchase_order = relationship("PurchaseOrder", back_populates="status_history")

    def __repr__(self):
        return f"<PurchaseOrderStatusHistory {self.status} by {self.updated_by}>"


class PurchaseOrderSequence(Base):
    """Per-shop counter issuing the numeric part of PO numbers"""
    __tablename__ = "purchase_order_sequences"

    shop_id = Column(Integer, ForeignKey("shops.id"), primary_key=True)
    last_value = Column(Integer, nullable=False, default=0)
