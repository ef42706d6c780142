"""
API v1 Router - StockPilot
"""
from fastapi import APIRouter
from app.api.v1.endpoints import (
    purchase_orders,
    suppliers,
    batches,
)

router = APIRouter()

# Purchase Orders
router.include_router(
    purchase_orders.router,
    prefix="/purchase-orders",
    tags=["purchase-orders"]
)

# Suppliers
router.include_router(
    suppliers.router,
    prefix="/suppliers",
    tags=["suppliers"]
)

# Product batches and the expiry job
router.include_router(
    batches.router,
    prefix="/batches",
    tags=["batches"]
)
