"""
Supplier model - shop-scoped vendor record referenced by purchase orders
"""
from sqlalchemy import (
    Column, Integer, String, DateTime, Text, Numeric, Boolean, ForeignKey, UniqueConstraint, Index
)
from sqlalchemy.orm import relationship
from datetime import datetime

from app.db.base import Base


PAYMENT_TERMS = ("net_15", "net_30", "net_60", "cash_on_delivery", "advance_payment")


class Supplier(Base):
    __tablename__ = "suppliers"
    __table_args__ = (
        UniqueConstraint("shop_id", "email", name="uq_suppliers_shop_email"),
        Index("ix_suppliers_shop_active", "shop_id", "is_active"),
        Index("ix_suppliers_shop_name", "shop_id", "name"),
    )

    id = Column(Integer, primary_key=True, index=True)
    shop_id = Column(Integer, ForeignKey("shops.id"), nullable=False)

    name = Column(String(200), nullable=False)
    company = Column(String(200), nullable=True)
    email = Column(String(200), nullable=False)
    phone = Column(String(50), nullable=False)

    # Address
    street = Column(String(200), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    postal_code = Column(String(20), nullable=True)
    country = Column(String(100), default="United States", nullable=True)

    # Primary contact
    contact_name = Column(String(100), nullable=True)
    contact_email = Column(String(200), nullable=True)
    contact_phone = Column(String(50), nullable=True)

    # Business info
    payment_terms = Column(String(30), default="net_30", nullable=False)
    currency = Column(String(10), default="USD", nullable=False)
    tax_id = Column(String(50), nullable=True)
    rating = Column(Integer, default=3, nullable=False)  # 1..5
    notes = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Informational aggregates, not a source of truth
    total_orders = Column(Integer, default=0, nullable=False)
    total_spent = Column(Numeric(18, 4), default=0, nullable=False)
    last_order_date = Column(DateTime, nullable=True)

    # Audit
    created_by = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    shop = relationship("Shop")

    @property
    def full_address(self) -> str:
        parts = [self.street, self.city, " ".join(p for p in (self.state, self.postal_code) if p), self.country]
        return ", ".join(p for p in parts if p)

    def __repr__(self):
        return f"<Supplier {self.id}: {self.name}>"
