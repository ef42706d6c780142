"""
Test data factories for StockPilot.

Provides functions to create test entities with sensible defaults.

Usage:
    from tests.factories import create_test_shop, create_test_product

    def test_something(db_session):
        shop = create_test_shop(db_session)
        product = create_test_product(db_session, shop=shop, quantity=5)
"""
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.models import (
    Product,
    ProductBatch,
    PurchaseOrder,
    PurchaseOrderItem,
    Shop,
    Supplier,
)


# =============================================================================
# SEQUENCE MANAGEMENT
# =============================================================================

_sequences: Dict[str, int] = {}


def reset_sequences():
    """Reset all sequences. Call between tests for predictable names."""
    global _sequences
    _sequences = {}


def _next(name: str) -> int:
    """Get next sequence number for a given entity type."""
    _sequences[name] = _sequences.get(name, 0) + 1
    return _sequences[name]


# =============================================================================
# FACTORIES
# =============================================================================

def create_test_shop(db: Session, name: Optional[str] = None, **overrides) -> Shop:
    seq = _next("shop")
    shop = Shop(name=name or f"Test Shop {seq}", **overrides)
    db.add(shop)
    db.flush()
    return shop


def create_test_supplier(
    db: Session,
    shop: Optional[Shop] = None,
    name: Optional[str] = None,
    email: Optional[str] = None,
    **overrides
) -> Supplier:
    """Create a supplier; creates a shop too when none is given."""
    seq = _next("supplier")
    shop = shop or create_test_shop(db)
    supplier = Supplier(
        shop_id=shop.id,
        name=name or f"Supplier {seq}",
        email=email or f"supplier{seq}@example.com",
        phone=overrides.pop("phone", "555-0100"),
        **overrides
    )
    db.add(supplier)
    db.flush()
    return supplier


def create_test_product(
    db: Session,
    shop: Optional[Shop] = None,
    name: Optional[str] = None,
    quantity: int = 0,
    godown: int = 0,
    store: int = 0,
    price: Decimal = Decimal("10.00"),
    **overrides
) -> Product:
    """
    Create a product.

    ``quantity`` sets only the legacy scalar; ``godown``/``store`` set the
    structured stock (and ``stock_total``). Pass both to model a product
    whose two representations already agree.
    """
    seq = _next("product")
    product = Product(
        shop_id=shop.id if shop else None,
        name=name or f"Product {seq}",
        sku=overrides.pop("sku", f"SKU-{seq:04d}"),
        price=price,
        quantity=quantity,
        stock_godown=godown,
        stock_store=store,
        stock_total=overrides.pop("stock_total", godown + store),
        **overrides
    )
    db.add(product)
    db.flush()
    return product


def create_test_batch(
    db: Session,
    product: Product,
    godown_qty: int = 0,
    store_qty: int = 0,
    expiry_date: Optional[datetime] = None,
    **overrides
) -> ProductBatch:
    seq = _next("batch")
    batch = ProductBatch(
        product_id=product.id,
        shop_id=product.shop_id,
        batch_number=overrides.pop("batch_number", f"B-{seq:04d}"),
        godown_qty=godown_qty,
        store_qty=store_qty,
        original_qty=godown_qty + store_qty,
        expiry_date=expiry_date,
        purchase_price=overrides.pop("purchase_price", Decimal("2.00")),
        **overrides
    )
    db.add(batch)
    db.flush()
    return batch


def create_test_purchase_order(
    db: Session,
    supplier: Supplier,
    lines: List[Tuple[Product, int, Decimal]],
    status: str = "draft",
    po_number: Optional[str] = None,
    expected_delivery_date: Optional[datetime] = None,
    **overrides
) -> PurchaseOrder:
    """
    Insert a PO directly (bypassing the service) in any status.

    ``lines`` is a list of (product, quantity, unit_cost); received
    quantities can be set via ``received={product_id: qty}``.
    """
    seq = _next("purchase_order")
    received = overrides.pop("received", {})
    subtotal = sum((Decimal(qty) * cost for _, qty, cost in lines), Decimal("0"))
    po = PurchaseOrder(
        po_number=po_number or f"PO-TEST-{seq:06d}",
        shop_id=supplier.shop_id,
        supplier_id=supplier.id,
        status=status,
        subtotal=subtotal,
        tax=Decimal("0"),
        shipping=Decimal("0"),
        total=subtotal,
        expected_delivery_date=expected_delivery_date,
        **overrides
    )
    po.items = [
        PurchaseOrderItem(
            position=i,
            product_id=product.id,
            quantity=qty,
            unit_cost=cost,
            total_cost=Decimal(qty) * cost,
            received_quantity=received.get(product.id, 0),
        )
        for i, (product, qty, cost) in enumerate(lines, start=1)
    ]
    db.add(po)
    db.flush()
    return po


def days_from_now(days: float) -> datetime:
    return datetime.utcnow() + timedelta(days=days)
