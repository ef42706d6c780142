"""
Supplier Service

Shop-scoped supplier management. Email addresses are unique per shop;
deletes are soft (is_active = False) because purchase orders keep
referencing the supplier.
"""
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.exceptions import DuplicateError, NotFoundError
from app.logging_config import get_logger
from app.models.supplier import Supplier
from app.schemas.purchasing import SupplierCreate, SupplierUpdate
from app.services.event_service import record_activity

logger = get_logger(__name__)


def _email_taken(db: Session, shop_id: int, email: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(Supplier.id).filter(
        Supplier.shop_id == shop_id,
        Supplier.email == email.lower(),
    )
    if exclude_id is not None:
        query = query.filter(Supplier.id != exclude_id)
    return query.first() is not None


def get_supplier(db: Session, supplier_id: int) -> Supplier:
    supplier = db.query(Supplier).filter(Supplier.id == supplier_id).first()
    if not supplier:
        raise NotFoundError("Supplier", supplier_id)
    return supplier


def list_suppliers(
    db: Session,
    shop_id: int,
    *,
    search: Optional[str] = None,
    active_only: bool = True,
    offset: int = 0,
    limit: int = 20,
) -> Tuple[List[Supplier], int]:
    """
    List a shop's suppliers by name

    - **search**: matches name, company or email
    - **active_only**: hide soft-deleted suppliers
    """
    query = db.query(Supplier).filter(Supplier.shop_id == shop_id)
    if active_only:
        query = query.filter(Supplier.is_active.is_(True))
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            Supplier.name.ilike(pattern),
            Supplier.company.ilike(pattern),
            Supplier.email.ilike(pattern),
        ))

    total = query.count()
    suppliers = query.order_by(Supplier.name, Supplier.id).offset(offset).limit(limit).all()
    return suppliers, total


def create_supplier(db: Session, data: SupplierCreate, created_by: Optional[str] = None) -> Supplier:
    email = str(data.email).lower()
    if _email_taken(db, data.shop_id, email):
        raise DuplicateError("Supplier", field="email", value=email)

    now = datetime.utcnow()
    fields = data.model_dump(exclude={"email", "payment_terms"})
    supplier = Supplier(
        **fields,
        email=email,
        payment_terms=data.payment_terms.value,
        created_by=created_by,
        created_at=now,
        updated_at=now,
    )
    db.add(supplier)
    db.flush()
    record_activity(
        db,
        action="CREATE_SUPPLIER",
        message=f"Created supplier {supplier.name}",
        user=created_by,
        shop_id=supplier.shop_id,
        details={"supplier_id": supplier.id},
    )
    db.commit()
    db.refresh(supplier)

    logger.info(f"Created supplier {supplier.id}: {supplier.name}")
    return supplier


def update_supplier(
    db: Session,
    supplier_id: int,
    data: SupplierUpdate,
    updated_by: Optional[str] = None,
) -> Supplier:
    supplier = get_supplier(db, supplier_id)

    update_data = data.model_dump(exclude_unset=True)
    if update_data.get("email"):
        email = str(update_data["email"]).lower()
        if _email_taken(db, supplier.shop_id, email, exclude_id=supplier.id):
            raise DuplicateError("Supplier", field="email", value=email)
        update_data["email"] = email
    if update_data.get("payment_terms") is not None:
        update_data["payment_terms"] = data.payment_terms.value

    for field, value in update_data.items():
        setattr(supplier, field, value)
    supplier.updated_at = datetime.utcnow()

    record_activity(
        db,
        action="UPDATE_SUPPLIER",
        message=f"Updated supplier {supplier.name}",
        user=updated_by,
        shop_id=supplier.shop_id,
        details={"supplier_id": supplier.id, "fields": sorted(update_data)},
    )
    db.commit()
    db.refresh(supplier)

    logger.info(f"Updated supplier {supplier.id}")
    return supplier


def update_rating(db: Session, supplier_id: int, rating: int, updated_by: Optional[str] = None) -> Supplier:
    supplier = get_supplier(db, supplier_id)
    old_rating = supplier.rating
    supplier.rating = rating
    supplier.updated_at = datetime.utcnow()

    record_activity(
        db,
        action="RATE_SUPPLIER",
        message=f"Rated supplier {supplier.name} {rating}/5",
        user=updated_by,
        shop_id=supplier.shop_id,
        details={"supplier_id": supplier.id, "old_rating": old_rating, "new_rating": rating},
    )
    db.commit()
    db.refresh(supplier)
    return supplier


def deactivate_supplier(db: Session, supplier_id: int, deleted_by: Optional[str] = None) -> Supplier:
    """Soft delete: the row stays so existing purchase orders still resolve it."""
    supplier = get_supplier(db, supplier_id)
    supplier.is_active = False
    supplier.updated_at = datetime.utcnow()

    record_activity(
        db,
        action="DELETE_SUPPLIER",
        message=f"Deactivated supplier {supplier.name}",
        user=deleted_by,
        shop_id=supplier.shop_id,
        details={"supplier_id": supplier.id},
    )
    db.commit()
    db.refresh(supplier)

    logger.info(f"Deactivated supplier {supplier.id}: {supplier.name}")
    return supplier
