"""
Product Batches API Endpoints

Also exposes the manual trigger and status of the expiry job.
"""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from typing import List, Optional
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.logging_config import get_logger
from app.jobs.runner import JobRunner
from app.api.v1.deps import get_current_actor, get_expiry_runner
from app.schemas.batch import (
    BatchCreate,
    BatchResponse,
    BatchUpdate,
    JobStatusResponse,
    RunExpiryResponse,
)
from app.schemas.common import MessageResponse
from app.services import batch_service

router = APIRouter()
logger = get_logger(__name__)


# ============================================================================
# Expiry job
# ============================================================================

@router.post("/_run-expiry", response_model=RunExpiryResponse)
async def run_expiry(runner: JobRunner = Depends(get_expiry_runner)):
    """
    Run the expiry check now

    Returns immediately with the current status if a run is already in progress.
    """
    try:
        status = await runner.execute()
    except Exception as e:
        logger.error(f"Manual expiry run failed: {e}")
        return JSONResponse(
            status_code=500,
            content=RunExpiryResponse(success=False, error=str(e)).model_dump(mode="json"),
        )
    return RunExpiryResponse(success=True, status=JobStatusResponse(**status.to_dict()))


@router.get("/_expiry-status", response_model=JobStatusResponse)
async def expiry_status(runner: JobRunner = Depends(get_expiry_runner)):
    """Status of the most recent expiry run"""
    return JobStatusResponse(**runner.status.to_dict())


# ============================================================================
# Batch CRUD
# ============================================================================

@router.post("/", response_model=BatchResponse, status_code=201)
async def create_batch(
    request: BatchCreate,
    actor: Optional[str] = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """Create a batch for a product"""
    return batch_service.create_batch(db, request, created_by=actor)


@router.get("/product/{product_id}", response_model=List[BatchResponse])
async def list_product_batches(
    product_id: int,
    db: Session = Depends(get_db),
):
    """List a product's batches, nearest expiry first"""
    return batch_service.list_product_batches(db, product_id)


@router.put("/{batch_id}", response_model=BatchResponse)
async def update_batch(
    batch_id: int,
    request: BatchUpdate,
    actor: Optional[str] = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """Update a batch"""
    return batch_service.update_batch(db, batch_id, request, updated_by=actor)


@router.delete("/{batch_id}", response_model=MessageResponse)
async def delete_batch(
    batch_id: int,
    db: Session = Depends(get_db),
):
    """Delete a batch"""
    batch_service.delete_batch(db, batch_id)
    return MessageResponse(message=f"Batch {batch_id} deleted")
