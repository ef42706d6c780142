"""
Purchase Order Lifecycle Service

Owns the purchase order state machine and the receiving reconciliation:

    draft -> sent -> confirmed -> partially_received -> received
    cancelled: reachable until any receiving has happened, terminal

Usage:
    from app.services import purchase_order_service as po_service

    po = po_service.create_purchase_order(
        db, shop_id=1, supplier_id=3,
        items=[POItemCreate(product_id=7, quantity=10, unit_cost=Decimal("2.50"))],
        created_by="42",
    )
    result = po_service.receive_items(db, po.id, [ReceiveItem(product_id=7, received_quantity=4)])

Every mutating function runs as one transaction: it commits on success and
rolls back everything (PO lines, status, history, product stock, activity
log) on failure. Rows are locked with SELECT ... FOR UPDATE where the
database supports it, and the PO carries a version column so a concurrent
writer that slips through gets a ConcurrencyError instead of a lost update.
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import func, asc, desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload
from sqlalchemy.orm.exc import StaleDataError

from app.core.config import settings
from app.exceptions import ConcurrencyError, InvalidStateError, NotFoundError, ValidationError
from app.logging_config import get_logger
from app.models.product import Product
from app.models.purchase_order import (
    PO_STATUSES,
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderSequence,
)
from app.models.stock_movement import StockMovement
from app.models.supplier import Supplier
from app.schemas.purchasing import POItemCreate, ReceiveItem
from app.services.event_service import record_activity, record_status_change

logger = get_logger(__name__)

# Position along the forward path; cancelled sits outside it
STATUS_RANK: Dict[str, int] = {
    "draft": 0,
    "sent": 1,
    "confirmed": 2,
    "partially_received": 3,
    "received": 4,
}
NON_CANCELLABLE_STATUSES = ("received", "partially_received")
PO_NUMBER_MAX_RETRIES = 3
MONEY_QUANT = Decimal("0.0001")


@dataclass
class ReceiveResult:
    """Outcome of a receive call"""
    purchase_order: PurchaseOrder
    skipped_items: List[int] = field(default_factory=list)
    stock_increments: List[Tuple[int, int]] = field(default_factory=list)  # (product_id, delta)


# ============================================================================
# Helpers
# ============================================================================

def _commit(db: Session, po: Optional[PurchaseOrder] = None) -> None:
    try:
        db.commit()
    except StaleDataError as e:
        db.rollback()
        ref = po.po_number if po is not None else "purchase order"
        raise ConcurrencyError(
            f"{ref} was modified by another request, reload and retry",
            details={"reason": str(e)},
        ) from e


def _load_for_update(db: Session, po_id: int) -> PurchaseOrder:
    po = (
        db.query(PurchaseOrder)
        .filter(PurchaseOrder.id == po_id)
        .with_for_update()
        .first()
    )
    if not po:
        raise NotFoundError("Purchase order", po_id)
    return po


def is_forward_transition(current: str, target: str) -> bool:
    """True when target lies ahead of current on the documented path."""
    if target == "cancelled":
        return current not in NON_CANCELLABLE_STATUSES and current != "cancelled"
    if current == "cancelled":
        return False
    return STATUS_RANK[target] > STATUS_RANK[current]


def derive_receiving_status(po: PurchaseOrder) -> str:
    """
    Aggregate status implied by the received quantities.

    received if every line is fully received, partially_received if any
    line has something received, otherwise the current status. Never moves
    the PO backwards along the path.
    """
    items = po.items
    if items and all(item.is_fully_received for item in items):
        derived = "received"
    elif any((item.received_quantity or 0) > 0 for item in items):
        derived = "partially_received"
    else:
        return po.status

    if po.status in STATUS_RANK and STATUS_RANK[po.status] > STATUS_RANK[derived]:
        return po.status
    return derived


def _stamp_timestamps(po: PurchaseOrder, status: str, now: datetime) -> None:
    """First entry into sent/received stamps the matching timestamps, once."""
    if status == "sent" and not po.sent_at:
        po.sent_at = now
    elif status == "received" and not po.received_at:
        po.received_at = now
        po.actual_delivery_date = now


def _next_po_number(db: Session, shop_id: int, now: datetime) -> str:
    """
    Issue the next PO number for a shop: PO-<year>-<6 digit sequence>.

    The per-shop counter row is locked for the rest of the transaction so
    concurrent creates for the same shop serialize on it. The counter
    starts at the shop's existing PO count; numbers already taken (by
    another shop, or by legacy data) are skipped so the global unique
    constraint holds.
    """
    seq = (
        db.query(PurchaseOrderSequence)
        .filter(PurchaseOrderSequence.shop_id == shop_id)
        .with_for_update()
        .first()
    )
    if seq is None:
        existing = (
            db.query(func.count(PurchaseOrder.id))
            .filter(PurchaseOrder.shop_id == shop_id)
            .scalar()
        )
        seq = PurchaseOrderSequence(shop_id=shop_id, last_value=existing or 0)
        db.add(seq)
        db.flush()

    value = seq.last_value
    while True:
        value += 1
        candidate = f"PO-{now.year}-{value:06d}"
        taken = db.query(PurchaseOrder.id).filter(PurchaseOrder.po_number == candidate).first()
        if not taken:
            break
    seq.last_value = value
    return candidate


def _validate_items(items: Sequence[POItemCreate]) -> None:
    if not items:
        raise ValidationError("At least one item is required", field="items")
    for idx, item in enumerate(items):
        if not isinstance(item.quantity, int) or item.quantity < 1:
            raise ValidationError(
                "Quantity must be a whole number of at least 1",
                field=f"items.{idx}.quantity",
                value=item.quantity,
            )
        if item.unit_cost is None or Decimal(item.unit_cost) < 0:
            raise ValidationError(
                "Unit cost must be zero or greater",
                field=f"items.{idx}.unit_cost",
                value=item.unit_cost,
            )


# ============================================================================
# Queries
# ============================================================================

SORTABLE_FIELDS = {
    "created_at": PurchaseOrder.created_at,
    "po_number": PurchaseOrder.po_number,
    "total": PurchaseOrder.total,
    "status": PurchaseOrder.status,
    "expected_delivery_date": PurchaseOrder.expected_delivery_date,
}


def get_purchase_order(db: Session, po_id: int) -> PurchaseOrder:
    """Fetch a PO with supplier, items (with products) and history loaded."""
    po = (
        db.query(PurchaseOrder)
        .options(
            joinedload(PurchaseOrder.supplier),
            selectinload(PurchaseOrder.items).joinedload(PurchaseOrderItem.product),
            selectinload(PurchaseOrder.status_history),
        )
        .filter(PurchaseOrder.id == po_id)
        .first()
    )
    if not po:
        raise NotFoundError("Purchase order", po_id)
    return po


def list_purchase_orders(
    db: Session,
    shop_id: int,
    *,
    status: Optional[str] = None,
    supplier_id: Optional[int] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    search: Optional[str] = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
    offset: int = 0,
    limit: int = 20,
) -> Tuple[List[PurchaseOrder], int]:
    """Shop-scoped, filtered, paginated PO list. Returns (page, total)."""
    if status and status not in PO_STATUSES:
        raise ValidationError(f"Unknown status '{status}'", field="status", value=status)
    if sort_by not in SORTABLE_FIELDS:
        raise ValidationError(
            f"Cannot sort by '{sort_by}'",
            field="sort_by",
            details={"allowed": sorted(SORTABLE_FIELDS)},
        )

    query = db.query(PurchaseOrder).filter(PurchaseOrder.shop_id == shop_id)
    if status:
        query = query.filter(PurchaseOrder.status == status)
    if supplier_id:
        query = query.filter(PurchaseOrder.supplier_id == supplier_id)
    if start_date:
        query = query.filter(PurchaseOrder.created_at >= start_date)
    if end_date:
        query = query.filter(PurchaseOrder.created_at <= end_date)
    if search:
        query = query.filter(PurchaseOrder.po_number.ilike(f"%{search}%"))

    total = query.count()

    column = SORTABLE_FIELDS[sort_by]
    ordering = asc(column) if sort_order == "asc" else desc(column)
    pos = (
        query.options(joinedload(PurchaseOrder.supplier), selectinload(PurchaseOrder.items))
        .order_by(ordering, desc(PurchaseOrder.id))
        .offset(offset)
        .limit(limit)
        .all()
    )
    return pos, total


# ============================================================================
# Create
# ============================================================================

def create_purchase_order(
    db: Session,
    *,
    shop_id: int,
    supplier_id: int,
    items: Sequence[POItemCreate],
    expected_delivery_date: Optional[datetime] = None,
    terms: Optional[str] = None,
    notes: Optional[str] = None,
    created_by: Optional[str] = None,
) -> PurchaseOrder:
    """
    Create a draft purchase order.

    Totals are fixed here: subtotal = sum(quantity * unit_cost),
    tax = subtotal * PO_TAX_RATE, shipping = 0, total = subtotal + tax + shipping.

    Raises:
        ValidationError: empty items or an item outside its constraints
        NotFoundError: supplier missing / in another shop, or a product missing
    """
    _validate_items(items)

    for attempt in range(PO_NUMBER_MAX_RETRIES):
        try:
            po = _build_purchase_order(
                db,
                shop_id=shop_id,
                supplier_id=supplier_id,
                items=items,
                expected_delivery_date=expected_delivery_date,
                terms=terms,
                notes=notes,
                created_by=created_by,
            )
            db.commit()
        except IntegrityError as e:
            db.rollback()
            logger.warning(
                f"PO number allocation attempt {attempt + 1}/{PO_NUMBER_MAX_RETRIES} "
                f"for shop {shop_id} collided: {e.orig}"
            )
            if attempt == PO_NUMBER_MAX_RETRIES - 1:
                raise ConcurrencyError(
                    "Could not allocate a unique purchase order number, please retry",
                    details={"shop_id": shop_id},
                ) from e
            continue
        except Exception:
            db.rollback()
            raise

        logger.info(
            f"Created PO {po.po_number}",
            extra={"po_number": po.po_number, "shop_id": shop_id, "total": str(po.total)},
        )
        return get_purchase_order(db, po.id)

    raise AssertionError("unreachable")  # pragma: no cover


def _build_purchase_order(
    db: Session,
    *,
    shop_id: int,
    supplier_id: int,
    items: Sequence[POItemCreate],
    expected_delivery_date: Optional[datetime],
    terms: Optional[str],
    notes: Optional[str],
    created_by: Optional[str],
) -> PurchaseOrder:
    supplier = (
        db.query(Supplier)
        .filter(Supplier.id == supplier_id, Supplier.shop_id == shop_id)
        .first()
    )
    if not supplier:
        raise NotFoundError("Supplier", supplier_id)

    now = datetime.utcnow()
    subtotal = Decimal("0")
    lines: List[PurchaseOrderItem] = []
    for position, item in enumerate(items, start=1):
        product = db.query(Product).filter(Product.id == item.product_id).first()
        if not product:
            raise NotFoundError("Product", item.product_id)

        unit_cost = Decimal(item.unit_cost)
        total_cost = Decimal(item.quantity) * unit_cost
        subtotal += total_cost
        lines.append(PurchaseOrderItem(
            position=position,
            product_id=item.product_id,
            quantity=item.quantity,
            unit_cost=unit_cost,
            total_cost=total_cost,
            received_quantity=0,
            notes=item.notes,
        ))

    tax = (subtotal * settings.PO_TAX_RATE).quantize(MONEY_QUANT)
    shipping = Decimal("0")
    total = subtotal + tax + shipping

    po = PurchaseOrder(
        po_number=_next_po_number(db, shop_id, now),
        shop_id=shop_id,
        supplier_id=supplier.id,
        status="draft",
        subtotal=subtotal,
        tax=tax,
        shipping=shipping,
        total=total,
        expected_delivery_date=expected_delivery_date,
        terms=terms or settings.PO_DEFAULT_TERMS,
        notes=notes,
        created_by=created_by,
        created_at=now,
        updated_at=now,
    )
    po.items = lines
    db.add(po)
    record_status_change(db, po, "draft", user=created_by, notes="Purchase order created", at=now)

    supplier.total_orders = (supplier.total_orders or 0) + 1
    supplier.total_spent = (supplier.total_spent or Decimal("0")) + total
    supplier.last_order_date = now

    db.flush()
    record_activity(
        db,
        action="CREATE_PURCHASE_ORDER",
        message=f"Created purchase order {po.po_number} for {supplier.name}",
        user=created_by,
        shop_id=shop_id,
        details={"purchase_order_id": po.id, "total": str(total)},
    )
    return po


# ============================================================================
# Status Management
# ============================================================================

def update_status(
    db: Session,
    po_id: int,
    new_status: str,
    *,
    notes: Optional[str] = None,
    updated_by: Optional[str] = None,
) -> PurchaseOrder:
    """
    Set a PO's status (administrative override).

    Any status may be set from any other; transitions off the forward path
    are allowed but logged as warnings. Exactly one history entry is
    appended per call.
    """
    if new_status not in PO_STATUSES:
        raise ValidationError("Valid status required", field="status", value=new_status)

    try:
        po = _load_for_update(db, po_id)
        old_status = po.status
        now = datetime.utcnow()

        if old_status != new_status and not is_forward_transition(old_status, new_status):
            logger.warning(
                f"Administrative status override on PO {po.po_number}: {old_status} -> {new_status}",
                extra={"po_number": po.po_number, "old_status": old_status, "new_status": new_status},
            )

        po.status = new_status
        po.updated_by = updated_by
        po.updated_at = now
        _stamp_timestamps(po, new_status, now)
        record_status_change(
            db, po, new_status, user=updated_by,
            notes=notes or f"Status updated to {new_status}", at=now,
        )
        record_activity(
            db,
            action="UPDATE_PURCHASE_ORDER",
            message=f"Updated PO {po.po_number} status to {new_status}",
            user=updated_by,
            shop_id=po.shop_id,
            details={"purchase_order_id": po.id, "old_status": old_status, "new_status": new_status},
        )
        _commit(db, po)
    except Exception:
        db.rollback()
        raise

    logger.info(f"PO {po.po_number} status: {old_status} -> {new_status}")
    return get_purchase_order(db, po_id)


def cancel_purchase_order(
    db: Session,
    po_id: int,
    *,
    cancelled_by: Optional[str] = None,
    notes: Optional[str] = None,
) -> PurchaseOrder:
    """
    Cancel a PO that has not started receiving.

    Cancelling an already-cancelled PO is a no-op.

    Raises:
        NotFoundError: PO does not exist
        InvalidStateError: PO is received or partially received
    """
    try:
        po = _load_for_update(db, po_id)
        if po.status in NON_CANCELLABLE_STATUSES:
            raise InvalidStateError(
                "Cannot cancel a purchase order that has been received",
                current_state=po.status,
                allowed_states=[s for s in PO_STATUSES if s not in NON_CANCELLABLE_STATUSES],
            )
        if po.status == "cancelled":
            db.rollback()
            return get_purchase_order(db, po_id)

        now = datetime.utcnow()
        old_status = po.status
        po.status = "cancelled"
        po.updated_by = cancelled_by
        po.updated_at = now
        record_status_change(
            db, po, "cancelled", user=cancelled_by,
            notes=notes or "Purchase order cancelled", at=now,
        )
        record_activity(
            db,
            action="CANCEL_PURCHASE_ORDER",
            message=f"Cancelled PO {po.po_number}",
            user=cancelled_by,
            shop_id=po.shop_id,
            details={"purchase_order_id": po.id, "old_status": old_status},
        )
        _commit(db, po)
    except Exception:
        db.rollback()
        raise

    logger.info(f"PO {po.po_number} cancelled (was {old_status})")
    return get_purchase_order(db, po_id)


# ============================================================================
# Receiving
# ============================================================================

def receive_items(
    db: Session,
    po_id: int,
    items: Sequence[ReceiveItem],
    *,
    received_by: Optional[str] = None,
) -> ReceiveResult:
    """
    Apply new cumulative received quantities to a PO.

    For each input (in order) the first PO line for that product is
    updated; inputs for products not on the PO are reported in
    ``skipped_items``. Quantities are cumulative and may not decrease.
    A positive delta adds stock to the product's godown. The aggregate
    status is then re-derived and one "Items received" history entry is
    appended. All of it commits together or not at all.

    Raises:
        NotFoundError: PO or a referenced product does not exist
        InvalidStateError: PO is cancelled
        ValidationError: a received quantity is negative or below what was already received
    """
    if not items:
        raise ValidationError("Items to receive are required", field="items")

    result: Optional[ReceiveResult] = None
    try:
        po = _load_for_update(db, po_id)
        if po.status == "cancelled":
            raise InvalidStateError(
                "Cannot receive items on a cancelled purchase order",
                current_state=po.status,
            )

        now = datetime.utcnow()
        result = ReceiveResult(purchase_order=po)

        for idx, incoming in enumerate(items):
            line = po.item_for_product(incoming.product_id)
            if line is None:
                result.skipped_items.append(incoming.product_id)
                continue

            new_received = incoming.received_quantity
            previous = line.received_quantity or 0
            if new_received < 0:
                raise ValidationError(
                    "Received quantity cannot be negative",
                    field=f"items.{idx}.received_quantity",
                    value=new_received,
                )
            if new_received < previous:
                raise ValidationError(
                    f"Received quantity for product {incoming.product_id} cannot go below "
                    f"the {previous} already received",
                    field=f"items.{idx}.received_quantity",
                    value=new_received,
                )
            if new_received > line.quantity:
                logger.warning(
                    f"Over-receipt on PO {po.po_number}: product {line.product_id} "
                    f"received {new_received} of {line.quantity} ordered"
                )

            delta = new_received - previous
            line.received_quantity = new_received
            if delta > 0:
                _add_received_stock(db, po, line, delta, received_by, now)
                result.stock_increments.append((line.product_id, delta))

        old_status = po.status
        new_status = derive_receiving_status(po)
        po.status = new_status
        po.updated_by = received_by
        po.updated_at = now
        if new_status == "received":
            _stamp_timestamps(po, "received", now)

        record_status_change(db, po, new_status, user=received_by, notes="Items received", at=now)
        record_activity(
            db,
            action="RECEIVE_PURCHASE_ORDER",
            message=f"Received items for PO {po.po_number}",
            user=received_by,
            shop_id=po.shop_id,
            details={
                "purchase_order_id": po.id,
                "old_status": old_status,
                "new_status": new_status,
                "increments": [{"product_id": p, "quantity": q} for p, q in result.stock_increments],
                "skipped": result.skipped_items,
            },
        )
        _commit(db, po)
    except Exception:
        db.rollback()
        raise

    if result.skipped_items:
        logger.warning(
            f"PO {po.po_number}: skipped products not on the order: {result.skipped_items}"
        )
    logger.info(
        f"Received items for PO {po.po_number}: {old_status} -> {new_status}",
        extra={"po_number": po.po_number, "increments": len(result.stock_increments)},
    )
    result.purchase_order = get_purchase_order(db, po_id)
    return result


def _add_received_stock(
    db: Session,
    po: PurchaseOrder,
    line: PurchaseOrderItem,
    delta: int,
    received_by: Optional[str],
    now: datetime,
) -> None:
    """Increment product stock for received goods and record the movement."""
    product = (
        db.query(Product)
        .filter(Product.id == line.product_id)
        .with_for_update()
        .first()
    )
    if not product:
        raise NotFoundError("Product", line.product_id)

    previous = (product.stock_godown or 0, product.stock_store or 0, product.stock_total or 0)
    product.quantity = (product.quantity or 0) + delta
    product.stock_godown = previous[0] + delta
    product.stock_total = previous[2] + delta
    product.updated_at = now

    db.add(StockMovement(
        product_id=product.id,
        movement_type="godown_in",
        from_location="supplier",
        to_location="godown",
        quantity=delta,
        unit_price=line.unit_cost,
        previous_godown=previous[0],
        previous_store=previous[1],
        previous_total=previous[2],
        new_godown=product.stock_godown,
        new_store=product.stock_store or 0,
        new_total=product.stock_total,
        reason="Purchase order receipt",
        reference=po.po_number,
        performed_by=received_by,
        created_at=now,
    ))
