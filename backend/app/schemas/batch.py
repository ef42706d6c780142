"""
Product batch and expiry job schemas
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal

from app.schemas.common import to_naive_utc


class BatchCreate(BaseModel):
    product_id: int
    supplier_id: Optional[int] = None
    batch_number: str = Field("", max_length=100)
    purchase_price: Decimal = Field(Decimal("0"), ge=0)
    selling_price: Decimal = Field(Decimal("0"), ge=0)
    godown_qty: int = Field(0, ge=0)
    store_qty: int = Field(0, ge=0)
    expiry_date: Optional[datetime] = None
    manufacturing_date: Optional[datetime] = None
    supplier_name: str = Field("", max_length=200)
    invoice_number: str = Field("", max_length=100)
    notes: str = ""

    _normalize_dates = field_validator("expiry_date", "manufacturing_date")(to_naive_utc)


class BatchUpdate(BaseModel):
    batch_number: Optional[str] = Field(None, max_length=100)
    purchase_price: Optional[Decimal] = Field(None, ge=0)
    selling_price: Optional[Decimal] = Field(None, ge=0)
    godown_qty: Optional[int] = Field(None, ge=0)
    store_qty: Optional[int] = Field(None, ge=0)
    expiry_date: Optional[datetime] = None
    manufacturing_date: Optional[datetime] = None
    supplier_name: Optional[str] = Field(None, max_length=200)
    invoice_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None

    _normalize_dates = field_validator("expiry_date", "manufacturing_date")(to_naive_utc)


class BatchResponse(BaseModel):
    id: int
    product_id: int
    shop_id: Optional[int] = None
    supplier_id: Optional[int] = None
    batch_number: str
    purchase_price: Decimal
    selling_price: Decimal
    godown_qty: int
    store_qty: int
    total_qty: int
    original_qty: int
    expiry_date: Optional[datetime] = None
    manufacturing_date: Optional[datetime] = None
    supplier_name: str
    invoice_number: str
    status: str
    notes: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class JobStatusResponse(BaseModel):
    """In-memory status of the expiry job runner"""
    last_run: Optional[datetime] = None
    last_duration_ms: Optional[int] = None
    last_error: Optional[str] = None
    running: bool = False


class RunExpiryResponse(BaseModel):
    success: bool
    status: Optional[JobStatusResponse] = None
    error: Optional[str] = None
