"""Database models"""
from app.models.shop import Shop
from app.models.supplier import Supplier
from app.models.product import Product
from app.models.product_batch import ProductBatch
from app.models.stock_movement import StockMovement
from app.models.purchase_order import (
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatusHistory,
    PurchaseOrderSequence,
)
from app.models.activity_log import ActivityLog
from app.models.daily_analytics import DailyAnalytics

__all__ = [
    # Tenancy
    "Shop",
    # Purchasing
    "Supplier",
    "PurchaseOrder",
    "PurchaseOrderItem",
    "PurchaseOrderStatusHistory",
    "PurchaseOrderSequence",
    # Stock
    "Product",
    "ProductBatch",
    "StockMovement",
    # Audit & analytics
    "ActivityLog",
    "DailyAnalytics",
]
