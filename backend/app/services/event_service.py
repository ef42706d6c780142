"""
Event Service

Centralized helper functions for recording audit events across the application.
Provides consistent creation of activity log rows and purchase order status history.

Neither helper commits - the calling function owns the transaction.
"""
from datetime import datetime
from typing import Any, Dict, Optional
from sqlalchemy.orm import Session

from app.models.activity_log import ActivityLog
from app.models.purchase_order import PurchaseOrder, PurchaseOrderStatusHistory


def record_activity(
    db: Session,
    action: str,
    message: str,
    user: Optional[str] = None,
    shop_id: Optional[int] = None,
    product_id: Optional[int] = None,
    details: Optional[Dict[str, Any]] = None,
) -> ActivityLog:
    """
    Record an activity log entry.

    Args:
        db: Database session
        action: Machine-readable action (CREATE_PURCHASE_ORDER, STOCK_MIGRATION, ...)
        message: Human-readable summary
        user: Actor who triggered the action
        shop_id: Shop the action belongs to
        product_id: Product affected, if any
        details: Structured context (JSON)

    Returns:
        The created ActivityLog instance
    """
    entry = ActivityLog(
        action=action,
        message=message[:500],
        user=user,
        shop_id=shop_id,
        product_id=product_id,
        details=details,
    )
    db.add(entry)
    return entry


def record_status_change(
    db: Session,
    po: PurchaseOrder,
    status: str,
    user: Optional[str] = None,
    notes: Optional[str] = None,
    at: Optional[datetime] = None,
) -> PurchaseOrderStatusHistory:
    """
    Append one status history entry to a purchase order.

    Args:
        db: Database session
        po: Purchase order the entry belongs to
        status: Status recorded by this entry
        user: Actor who made the change
        notes: Free-text note shown in the timeline
        at: Timestamp (defaults to now)

    Returns:
        The created PurchaseOrderStatusHistory instance
    """
    entry = PurchaseOrderStatusHistory(
        status=status,
        updated_by=user,
        updated_at=at or datetime.utcnow(),
        notes=notes,
    )
    po.status_history.append(entry)
    db.add(entry)
    return entry
