"""
Expiry check

Writes off every batch whose expiry date has passed while it still holds
stock: an ``expired`` stock movement is recorded, the product's stock is
reduced (store first, then godown) and the batch is zeroed.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.logging_config import get_logger
from app.models.product import Product
from app.models.product_batch import ProductBatch
from app.models.stock_movement import StockMovement

logger = get_logger(__name__)


def _write_off(db: Session, batch: ProductBatch, now: datetime) -> None:
    remaining = batch.total_qty
    product = (
        db.query(Product)
        .filter(Product.id == batch.product_id)
        .with_for_update()
        .first()
    )

    if product is not None:
        before = (product.stock_godown or 0, product.stock_store or 0, product.stock_total or 0)
        from_store = min(before[1], remaining)
        from_godown = min(before[0], remaining - from_store)
        product.stock_store = before[1] - from_store
        product.stock_godown = before[0] - from_godown
        product.sync_stock()
        product.updated_at = now
        after = (product.stock_godown, product.stock_store, product.stock_total)
    else:
        logger.warning(f"Batch {batch.id} references missing product {batch.product_id}")
        before = (batch.godown_qty, batch.store_qty, batch.total_qty)
        after = (0, 0, 0)

    db.add(StockMovement(
        product_id=batch.product_id,
        batch_id=batch.id,
        movement_type="expired",
        from_location="store",
        to_location="external",
        quantity=remaining,
        unit_price=batch.purchase_price or 0,
        previous_godown=before[0],
        previous_store=before[1],
        previous_total=before[2],
        new_godown=after[0],
        new_store=after[1],
        new_total=after[2],
        reason="Expired",
        reference=batch.batch_number or None,
        created_at=now,
    ))

    batch.godown_qty = 0
    batch.store_qty = 0
    batch.total_qty = 0
    batch.status = "expired"
    batch.updated_at = now


def run_expiry_check(db: Session, now: Optional[datetime] = None) -> int:
    """
    Write off expired stock in one transaction.

    Returns:
        Number of batches written off
    """
    now = now or datetime.utcnow()
    batches = (
        db.query(ProductBatch)
        .filter(
            ProductBatch.expiry_date.isnot(None),
            ProductBatch.expiry_date <= now,
            ProductBatch.total_qty > 0,
        )
        .order_by(ProductBatch.expiry_date, ProductBatch.id)
        .with_for_update()
        .all()
    )

    try:
        for batch in batches:
            _write_off(db, batch, now)
        db.commit()
    except Exception:
        db.rollback()
        raise

    if batches:
        logger.info(
            f"Expiry check wrote off {len(batches)} batches",
            extra={"expired_batches": len(batches)},
        )
    return len(batches)
