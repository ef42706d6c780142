"""
Common API Response Schemas

Provides standardized error responses and pagination models for consistent API behavior.
"""
import math
from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Optional, TypeVar
from pydantic import BaseModel, ConfigDict, Field


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an offset-aware datetime to naive UTC; naive values are taken as UTC already."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


# ============================================================================
# Error Response Models
# ============================================================================

class ErrorResponse(BaseModel):
    """
    Standardized error response for all API errors.

    Error Codes:
        - VALIDATION_ERROR: Request validation failed (400/422)
        - INVALID_STATE: Operation not allowed in the current state (400)
        - DUPLICATE_ERROR: Duplicate resource (400)
        - NOT_FOUND: Resource not found (404)
        - CONFLICT / CONCURRENCY_ERROR: Concurrent modification detected (409)
        - DATABASE_ERROR: Database operation failed (500)
        - INTERNAL_ERROR: Unexpected internal error (500)
        - SERVICE_UNAVAILABLE: Backing service temporarily unavailable (503)

    ``error_detail`` carries the underlying exception text and is omitted
    in production.
    """
    error: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(
        None,
        description="Additional error context for debugging"
    )
    error_detail: Optional[str] = Field(None, description="Diagnostic detail (non-production only)")
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the error occurred (UTC)"
    )

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "error": "NOT_FOUND",
            "message": "Purchase order with ID 123 not found",
            "details": {
                "resource": "Purchase order",
                "resource_id": "123"
            },
            "timestamp": "2025-12-23T10:30:00Z"
        }
    })


# ============================================================================
# Pagination Models
# ============================================================================

class PageParams(BaseModel):
    """Page-number pagination used by the list endpoints."""
    page: int = Field(default=1, ge=1, description="1-based page number")
    limit: int = Field(default=20, ge=1, le=200, description="Items per page (1-200)")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class PageMeta(BaseModel):
    """
    Pagination metadata included in list responses.
    """
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int

    @classmethod
    def build(cls, params: PageParams, total: int) -> "PageMeta":
        return cls(
            current_page=params.page,
            total_pages=math.ceil(total / params.limit) if total else 0,
            total_items=total,
            items_per_page=params.limit,
        )


T = TypeVar('T')


class PageResponse(BaseModel, Generic[T]):
    """
    Standardized list response wrapper with pagination.

    Example:
        {
            "items": [...],
            "pagination": {
                "current_page": 1,
                "total_pages": 3,
                "total_items": 45,
                "items_per_page": 20
            }
        }
    """
    items: List[T] = Field(..., description="List of items")
    pagination: PageMeta = Field(..., description="Pagination metadata")


class MessageResponse(BaseModel):
    """
    Simple message response for operations that don't return data.

    Used for operations like delete, cancel, etc. where only a
    confirmation message is needed.
    """
    message: str = Field(..., description="Operation result message")
