"""
Purchase Orders API Endpoints
"""
from fastapi import APIRouter, Depends, Query
from typing import Optional
from datetime import datetime
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.logging_config import get_logger
from app.models.purchase_order import PurchaseOrder
from app.api.v1.deps import get_current_actor, get_page_params
from app.schemas.purchasing import (
    POItemResponse,
    POStatus,
    POStatusUpdate,
    PurchaseOrderCreate,
    PurchaseOrderListResponse,
    PurchaseOrderResponse,
    ReceivePORequest,
    ReceivePOResponse,
    StatusHistoryResponse,
    StockIncrement,
    SupplierSummary,
)
from app.schemas.common import PageMeta, PageParams, PageResponse, to_naive_utc
from app.services import purchase_order_service as po_service

router = APIRouter()
logger = get_logger(__name__)


def build_po_response(po: PurchaseOrder) -> PurchaseOrderResponse:
    """Full PO representation with product details and derived values."""
    items = []
    for item in po.items:
        items.append(POItemResponse(
            id=item.id,
            position=item.position,
            product_id=item.product_id,
            product_name=item.product.name if item.product else None,
            product_sku=item.product.sku if item.product else None,
            quantity=item.quantity,
            unit_cost=item.unit_cost,
            total_cost=item.total_cost,
            received_quantity=item.received_quantity,
            notes=item.notes,
        ))

    return PurchaseOrderResponse(
        id=po.id,
        po_number=po.po_number,
        shop_id=po.shop_id,
        supplier=SupplierSummary.model_validate(po.supplier) if po.supplier else None,
        status=po.status,
        subtotal=po.subtotal,
        tax=po.tax,
        shipping=po.shipping,
        total=po.total,
        expected_delivery_date=po.expected_delivery_date,
        actual_delivery_date=po.actual_delivery_date,
        sent_at=po.sent_at,
        received_at=po.received_at,
        approved_at=po.approved_at,
        terms=po.terms,
        notes=po.notes,
        created_by=po.created_by,
        updated_by=po.updated_by,
        approved_by=po.approved_by,
        created_at=po.created_at,
        updated_at=po.updated_at,
        completion_percentage=po.completion_percentage,
        days_overdue=po.days_overdue,
        items=items,
        status_history=[StatusHistoryResponse.model_validate(h) for h in po.status_history],
    )


# ============================================================================
# Queries
# ============================================================================

@router.get("/list", response_model=PageResponse[PurchaseOrderListResponse])
async def list_purchase_orders(
    shop_id: int = Query(..., description="Shop whose purchase orders to list"),
    status: Optional[POStatus] = Query(None, description="Filter by status"),
    supplier_id: Optional[int] = Query(None, description="Filter by supplier ID"),
    start_date: Optional[datetime] = Query(None, description="Created on or after"),
    end_date: Optional[datetime] = Query(None, description="Created on or before"),
    search: Optional[str] = Query(None, description="Search by PO number"),
    sort_by: str = Query("created_at", description="created_at, po_number, total, status or expected_delivery_date"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    page: PageParams = Depends(get_page_params),
    db: Session = Depends(get_db),
):
    """
    List a shop's purchase orders

    - **status**: draft, sent, confirmed, partially_received, received, cancelled
    - **supplier_id**: Filter by supplier
    - **start_date** / **end_date**: Creation date range
    - **search**: Case-insensitive match on PO number
    - **page** / **limit**: Page number (1-based) and page size (max 200)
    """
    pos, total = po_service.list_purchase_orders(
        db,
        shop_id,
        status=status.value if status else None,
        supplier_id=supplier_id,
        start_date=to_naive_utc(start_date),
        end_date=to_naive_utc(end_date),
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        offset=page.offset,
        limit=page.limit,
    )

    result = []
    for po in pos:
        result.append(PurchaseOrderListResponse(
            id=po.id,
            po_number=po.po_number,
            shop_id=po.shop_id,
            supplier_id=po.supplier_id,
            supplier_name=po.supplier.name if po.supplier else None,
            status=po.status,
            total=po.total,
            item_count=len(po.items),
            completion_percentage=po.completion_percentage,
            days_overdue=po.days_overdue,
            expected_delivery_date=po.expected_delivery_date,
            created_by=po.created_by,
            created_at=po.created_at,
        ))

    return PageResponse(items=result, pagination=PageMeta.build(page, total))


# ============================================================================
# Lifecycle
# ============================================================================

@router.post("/create", response_model=PurchaseOrderResponse, status_code=201)
async def create_purchase_order(
    request: PurchaseOrderCreate,
    actor: Optional[str] = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """Create a draft purchase order"""
    po = po_service.create_purchase_order(
        db,
        shop_id=request.shop_id,
        supplier_id=request.supplier_id,
        items=request.items,
        expected_delivery_date=request.expected_delivery_date,
        terms=request.terms,
        notes=request.notes,
        created_by=actor,
    )
    return build_po_response(po)


@router.get("/{po_id}", response_model=PurchaseOrderResponse)
async def get_purchase_order(
    po_id: int,
    db: Session = Depends(get_db),
):
    """Get purchase order details by ID"""
    return build_po_response(po_service.get_purchase_order(db, po_id))


@router.put("/{po_id}/status", response_model=PurchaseOrderResponse)
async def update_po_status(
    po_id: int,
    request: POStatusUpdate,
    actor: Optional[str] = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """
    Set purchase order status (administrative override)

    Any status can be set; moves off the normal draft -> sent -> confirmed ->
    partially_received -> received path are logged.
    """
    po = po_service.update_status(
        db, po_id, request.status.value, notes=request.notes, updated_by=actor,
    )
    return build_po_response(po)


@router.post("/{po_id}/receive", response_model=ReceivePOResponse)
async def receive_purchase_order(
    po_id: int,
    request: ReceivePORequest,
    actor: Optional[str] = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """
    Receive items on a purchase order

    Quantities are cumulative per product. Products that are not on the PO
    are returned in **skipped_items**.
    """
    result = po_service.receive_items(db, po_id, request.items, received_by=actor)
    return ReceivePOResponse(
        purchase_order=build_po_response(result.purchase_order),
        skipped_items=result.skipped_items,
        stock_increments=[
            StockIncrement(product_id=product_id, quantity=qty)
            for product_id, qty in result.stock_increments
        ],
    )


@router.delete("/{po_id}", response_model=PurchaseOrderResponse)
async def cancel_purchase_order(
    po_id: int,
    actor: Optional[str] = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """Cancel a purchase order. Only allowed before any items are received."""
    po = po_service.cancel_purchase_order(db, po_id, cancelled_by=actor)
    return build_po_response(po)
