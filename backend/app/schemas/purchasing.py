"""
Purchasing Pydantic Schemas

Covers:
- Suppliers
- Purchase Orders
- PO Items
- Status updates
- Receiving
"""
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from enum import Enum

from app.schemas.common import to_naive_utc


# ============================================================================
# Enums
# ============================================================================

class POStatus(str, Enum):
    """Purchase order status workflow"""
    DRAFT = "draft"
    SENT = "sent"
    CONFIRMED = "confirmed"
    PARTIALLY_RECEIVED = "partially_received"
    RECEIVED = "received"
    CANCELLED = "cancelled"


class PaymentTerms(str, Enum):
    NET_15 = "net_15"
    NET_30 = "net_30"
    NET_60 = "net_60"
    CASH_ON_DELIVERY = "cash_on_delivery"
    ADVANCE_PAYMENT = "advance_payment"


# ============================================================================
# Supplier Schemas
# ============================================================================

class SupplierBase(BaseModel):
    """Base supplier fields"""
    name: str = Field(..., min_length=1, max_length=200, description="Supplier name")
    company: Optional[str] = Field(None, max_length=200)
    email: EmailStr
    phone: str = Field(..., min_length=1, max_length=50)

    # Address
    street: Optional[str] = Field(None, max_length=200)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)
    country: Optional[str] = Field("United States", max_length=100)

    # Contact person
    contact_name: Optional[str] = Field(None, max_length=100)
    contact_email: Optional[str] = Field(None, max_length=200)
    contact_phone: Optional[str] = Field(None, max_length=50)

    # Business info
    payment_terms: PaymentTerms = PaymentTerms.NET_30
    currency: str = Field("USD", max_length=10)
    tax_id: Optional[str] = Field(None, max_length=50)
    rating: int = Field(3, ge=1, le=5)
    notes: Optional[str] = None


class SupplierCreate(SupplierBase):
    """Create a new supplier"""
    shop_id: int = Field(..., description="Owning shop")


class SupplierUpdate(BaseModel):
    """Update an existing supplier"""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    company: Optional[str] = Field(None, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, min_length=1, max_length=50)

    street: Optional[str] = Field(None, max_length=200)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)
    country: Optional[str] = Field(None, max_length=100)

    contact_name: Optional[str] = Field(None, max_length=100)
    contact_email: Optional[str] = Field(None, max_length=200)
    contact_phone: Optional[str] = Field(None, max_length=50)

    payment_terms: Optional[PaymentTerms] = None
    currency: Optional[str] = Field(None, max_length=10)
    tax_id: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None
    is_active: Optional[bool] = None


class SupplierRatingUpdate(BaseModel):
    rating: int = Field(..., ge=1, le=5)


class SupplierResponse(SupplierBase):
    """Full supplier details"""
    id: int
    shop_id: int
    email: str
    is_active: bool
    total_orders: int
    total_spent: Decimal
    last_order_date: Optional[datetime] = None
    full_address: str
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SupplierSummary(BaseModel):
    """Supplier fields embedded in PO responses"""
    id: int
    name: str
    company: Optional[str] = None
    email: str

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# Purchase Order Item Schemas
# ============================================================================

class POItemCreate(BaseModel):
    """A line on a new purchase order"""
    product_id: int = Field(..., description="Product ID")
    quantity: int = Field(..., ge=1, description="Units to order")
    unit_cost: Decimal = Field(..., ge=0, decimal_places=2, description="Cost per unit")
    notes: Optional[str] = None


class POItemResponse(BaseModel):
    """PO item response"""
    id: int
    position: int
    product_id: int
    product_name: Optional[str] = None
    product_sku: Optional[str] = None
    quantity: int
    unit_cost: Decimal
    total_cost: Decimal
    received_quantity: int
    notes: Optional[str] = None


class StatusHistoryResponse(BaseModel):
    status: str
    updated_by: Optional[str] = None
    updated_at: datetime
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# Purchase Order Schemas
# ============================================================================

class PurchaseOrderCreate(BaseModel):
    """Create a new PO"""
    shop_id: int
    supplier_id: int
    items: List[POItemCreate] = Field(..., min_length=1, description="At least one item is required")
    expected_delivery_date: Optional[datetime] = None
    terms: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None

    @field_validator("expected_delivery_date")
    @classmethod
    def normalize_delivery_date(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Stored timestamps are naive UTC"""
        return to_naive_utc(v)


class PurchaseOrderListResponse(BaseModel):
    """PO list summary"""
    id: int
    po_number: str
    shop_id: int
    supplier_id: int
    supplier_name: Optional[str] = None
    status: str
    total: Decimal
    item_count: int = 0
    completion_percentage: int
    days_overdue: int
    expected_delivery_date: Optional[datetime] = None
    created_by: Optional[str] = None
    created_at: datetime


class PurchaseOrderResponse(BaseModel):
    """Full PO details"""
    id: int
    po_number: str
    shop_id: int
    supplier: Optional[SupplierSummary] = None
    status: str

    subtotal: Decimal
    tax: Decimal
    shipping: Decimal
    total: Decimal

    expected_delivery_date: Optional[datetime] = None
    actual_delivery_date: Optional[datetime] = None
    sent_at: Optional[datetime] = None
    received_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None

    terms: Optional[str] = None
    notes: Optional[str] = None

    created_by: Optional[str] = None
    updated_by: Optional[str] = None
    approved_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    completion_percentage: int
    days_overdue: int

    items: List[POItemResponse] = []
    status_history: List[StatusHistoryResponse] = []


# ============================================================================
# Status Update
# ============================================================================

class POStatusUpdate(BaseModel):
    """Update PO status (administrative override)"""
    status: POStatus
    notes: Optional[str] = None


# ============================================================================
# Receiving
# ============================================================================

class ReceiveItem(BaseModel):
    """New cumulative received quantity for one product on the PO"""
    product_id: int
    received_quantity: int = Field(..., ge=0)


class ReceivePORequest(BaseModel):
    """Receive items from a PO"""
    items: List[ReceiveItem] = Field(..., min_length=1, description="Items to receive are required")


class StockIncrement(BaseModel):
    product_id: int
    quantity: int


class ReceivePOResponse(BaseModel):
    """Result of receiving"""
    purchase_order: PurchaseOrderResponse
    skipped_items: List[int] = Field(default_factory=list, description="Product IDs not on this PO")
    stock_increments: List[StockIncrement] = []
