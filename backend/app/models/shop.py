"""
Shop model - the tenant every supplier, product and purchase order belongs to
"""
from sqlalchemy import Column, Integer, String, DateTime, Boolean
from datetime import datetime

from app.db.base import Base


class Shop(Base):
    __tablename__ = "shops"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Shop {self.id}: {self.name}>"
