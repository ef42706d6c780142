"""
Product batch management

A batch is a received lot of one product with its own expiry date.
Quantities and status are derived on save (see ProductBatch.recalculate);
listing is FEFO ordered, nearest expiry first, undated batches last.
"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from app.exceptions import NotFoundError, ValidationError
from app.logging_config import get_logger
from app.models.product import Product
from app.models.product_batch import ProductBatch
from app.models.supplier import Supplier
from app.schemas.batch import BatchCreate, BatchUpdate

logger = get_logger(__name__)


def get_batch(db: Session, batch_id: int) -> ProductBatch:
    batch = db.query(ProductBatch).filter(ProductBatch.id == batch_id).first()
    if not batch:
        raise NotFoundError("Batch", batch_id)
    return batch


def list_product_batches(db: Session, product_id: int) -> List[ProductBatch]:
    return (
        db.query(ProductBatch)
        .filter(ProductBatch.product_id == product_id)
        .order_by(
            ProductBatch.expiry_date.is_(None),
            ProductBatch.expiry_date.asc(),
            ProductBatch.id.asc(),
        )
        .all()
    )


def create_batch(db: Session, data: BatchCreate, created_by: Optional[str] = None) -> ProductBatch:
    product = db.query(Product).filter(Product.id == data.product_id).first()
    if not product:
        raise NotFoundError("Product", data.product_id)

    supplier_name = data.supplier_name
    if data.supplier_id is not None:
        supplier = db.query(Supplier).filter(Supplier.id == data.supplier_id).first()
        if not supplier:
            raise NotFoundError("Supplier", data.supplier_id)
        supplier_name = supplier_name or supplier.name

    if data.manufacturing_date and data.expiry_date and data.manufacturing_date > data.expiry_date:
        raise ValidationError(
            "Manufacturing date cannot be after the expiry date",
            field="manufacturing_date",
        )

    now = datetime.utcnow()
    batch = ProductBatch(
        **data.model_dump(exclude={"supplier_name"}),
        shop_id=product.shop_id,
        supplier_name=supplier_name,
        original_qty=data.godown_qty + data.store_qty,
        created_by=created_by,
        created_at=now,
        updated_at=now,
    )
    batch.recalculate(now)
    db.add(batch)
    db.commit()
    db.refresh(batch)

    logger.info(
        f"Created batch {batch.id} for product {product.id}: {batch.total_qty} units ({batch.status})"
    )
    return batch


def update_batch(
    db: Session,
    batch_id: int,
    data: BatchUpdate,
    updated_by: Optional[str] = None,
) -> ProductBatch:
    batch = get_batch(db, batch_id)

    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(batch, field, value)
    batch.updated_by = updated_by
    batch.updated_at = datetime.utcnow()
    batch.recalculate()

    db.commit()
    db.refresh(batch)
    return batch


def delete_batch(db: Session, batch_id: int) -> None:
    batch = get_batch(db, batch_id)
    db.delete(batch)
    db.commit()
    logger.info(f"Deleted batch {batch_id}")
