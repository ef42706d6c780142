"""
API Dependencies

Common request-scoped dependencies: the acting user, page parameters and
the shared expiry job runner.
"""
from typing import Optional

from fastapi import Header, Query, Request

from app.jobs.runner import JobRunner
from app.schemas.common import PageParams


def get_current_actor(
    x_user_id: Optional[str] = Header(
        default=None,
        max_length=100,
        description="Acting user, recorded in audit fields and history",
    ),
) -> Optional[str]:
    """
    Identify the caller for audit purposes.

    Authentication happens in front of this service; it forwards the
    user id in the X-User-Id header. Missing header means an anonymous
    (system) actor.
    """
    if x_user_id is None:
        return None
    return x_user_id.strip() or None


def get_page_params(
    page: int = Query(default=1, ge=1, description="1-based page number"),
    limit: int = Query(default=20, ge=1, le=200, description="Items per page (1-200)"),
) -> PageParams:
    """
    Dependency for standardized page-number pagination.

    Example:
        @router.get("/list")
        async def list_things(page: PageParams = Depends(get_page_params), ...):
            rows = query.offset(page.offset).limit(page.limit).all()
            return PageResponse(items=rows, pagination=PageMeta.build(page, total))
    """
    return PageParams(page=page, limit=limit)


def get_expiry_runner(request: Request) -> JobRunner:
    """The process-wide expiry job runner created at application startup."""
    return request.app.state.expiry_runner
