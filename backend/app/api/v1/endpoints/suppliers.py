"""
Suppliers API Endpoints
"""
from fastapi import APIRouter, Depends, Query
from typing import Optional
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.logging_config import get_logger
from app.api.v1.deps import get_current_actor, get_page_params
from app.schemas.purchasing import (
    SupplierCreate,
    SupplierRatingUpdate,
    SupplierResponse,
    SupplierUpdate,
)
from app.schemas.common import PageMeta, PageParams, PageResponse
from app.services import supplier_service

router = APIRouter()
logger = get_logger(__name__)


@router.get("/list", response_model=PageResponse[SupplierResponse])
async def list_suppliers(
    shop_id: int = Query(..., description="Shop whose suppliers to list"),
    search: Optional[str] = Query(None, description="Search name, company or email"),
    active_only: bool = True,
    page: PageParams = Depends(get_page_params),
    db: Session = Depends(get_db),
):
    """
    List a shop's suppliers

    - **search**: Search by name, company, or email
    - **active_only**: Hide deactivated suppliers
    """
    suppliers, total = supplier_service.list_suppliers(
        db,
        shop_id,
        search=search,
        active_only=active_only,
        offset=page.offset,
        limit=page.limit,
    )
    return PageResponse(
        items=[SupplierResponse.model_validate(s) for s in suppliers],
        pagination=PageMeta.build(page, total),
    )


@router.post("/create", response_model=SupplierResponse, status_code=201)
async def create_supplier(
    request: SupplierCreate,
    actor: Optional[str] = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """Create a new supplier"""
    return supplier_service.create_supplier(db, request, created_by=actor)


@router.get("/{supplier_id}", response_model=SupplierResponse)
async def get_supplier(
    supplier_id: int,
    db: Session = Depends(get_db),
):
    """Get supplier details by ID"""
    return supplier_service.get_supplier(db, supplier_id)


@router.put("/{supplier_id}", response_model=SupplierResponse)
async def update_supplier(
    supplier_id: int,
    request: SupplierUpdate,
    actor: Optional[str] = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """Update a supplier"""
    return supplier_service.update_supplier(db, supplier_id, request, updated_by=actor)


@router.put("/{supplier_id}/rating", response_model=SupplierResponse)
async def rate_supplier(
    supplier_id: int,
    request: SupplierRatingUpdate,
    actor: Optional[str] = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """Set a supplier's 1-5 rating"""
    return supplier_service.update_rating(db, supplier_id, request.rating, updated_by=actor)


@router.delete("/{supplier_id}", response_model=SupplierResponse)
async def delete_supplier(
    supplier_id: int,
    actor: Optional[str] = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """
    Deactivate a supplier

    Suppliers are never physically deleted; purchase orders keep pointing at them.
    """
    return supplier_service.deactivate_supplier(db, supplier_id, deleted_by=actor)
