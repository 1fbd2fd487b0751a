"""
API router for tree yield history endpoints.
"""
from datetime import datetime
from typing import Annotated, Optional

from fastapi import APIRouter, HTTPException, Path, Query, Request

from app.api.dependencies import YieldHistoryServiceDep
from app.api.v1.models.responses import (
    PeriodInfo,
    TimePeriodsResponse,
    YieldHistoryResponse,
)
from app.infrastructure.activity_log_client import LogStoreError
from app.middleware.rate_limit import DEFAULT_RATE_LIMIT, limiter
from app.services.domain.yield_analytics import get_time_periods


router = APIRouter(
    prefix="/trees",
    tags=["trees"],
)


@router.get(
    "/yield-periods",
    response_model=TimePeriodsResponse,
    summary="List period presets",
    description="Named date windows ending now, usable as the `period` query parameter.",
)
async def list_yield_periods() -> TimePeriodsResponse:
    """
    List the period presets resolved at call time.

    Returns:
        TimePeriodsResponse with every preset
    """
    return TimePeriodsResponse(periods=list(get_time_periods().values()))


@router.get(
    "/{tree_id}/yield-history",
    response_model=YieldHistoryResponse,
    summary="Get tree yield history",
    description="""
    Reconstruct the yield history of a tree from its activity log.

    This endpoint:
    1. Fetches the tree's activity logs from the log store
    2. Extracts yield change events from `yield_update` logs
    3. Builds a bucketed trend of the yield level over the window
    4. Optionally summarises the window (totals, averages, min/max, growth)

    The window is either `start_date` + `end_date`, or a `period` preset
    (`7days`, `30days`, `90days`, `1year`, `all`). Buckets are daily for
    windows up to 31 days, weekly up to 180 days and monthly beyond.
    """,
    responses={
        200: {
            "description": "Yield history for the requested window",
        },
        400: {
            "description": "Invalid date range",
        },
        404: {
            "description": "Tree not found in the log store",
        },
        429: {
            "description": "Rate limit exceeded",
        },
        502: {
            "description": "Log store failure",
        },
    }
)
@limiter.limit(DEFAULT_RATE_LIMIT)
async def get_yield_history(
    request: Request,
    tree_id: Annotated[str, Path(description="Unique identifier for the tree")],
    yield_service: YieldHistoryServiceDep,
    period: Annotated[str, Query(description="Period preset key")] = "30days",
    start_date: Annotated[Optional[datetime], Query(description="Window start (with end_date)")] = None,
    end_date: Annotated[Optional[datetime], Query(description="Window end (with start_date)")] = None,
    analytics: Annotated[bool, Query(description="Include summary statistics")] = False,
) -> YieldHistoryResponse:
    """
    Get the yield history of a tree.

    Args:
        request: Incoming request (used by the rate limiter)
        tree_id: Unique identifier for the tree
        yield_service: Yield history service (injected dependency)
        period: Period preset key
        start_date: Explicit window start
        end_date: Explicit window end
        analytics: Whether to include the analytics summary

    Returns:
        YieldHistoryResponse for the window

    Raises:
        HTTPException: If the tree is unknown or the log store fails
        ValueError: If the date range is invalid (mapped to 400 by the middleware)
    """
    try:
        # Delegate to service layer (no business logic here)
        history = await yield_service.get_yield_history(
            tree_id,
            period=period,
            start_date=start_date,
            end_date=end_date,
            include_analytics=analytics,
        )

    except LogStoreError as e:
        if e.status_code == 404:
            raise HTTPException(
                status_code=404,
                detail=f"Tree with ID '{tree_id}' not found"
            )
        raise HTTPException(
            status_code=502,
            detail=f"Failed to fetch activity logs: {e.message}"
        )

    # Transform to response model
    return YieldHistoryResponse(
        tree_id=history.tree_id,
        period=PeriodInfo(
            key=history.period.key,
            label=history.period.label,
            start_date=history.period.start_date,
            end_date=history.period.end_date,
            granularity=history.granularity.value,
        ),
        events=history.events,
        trend=history.trend,
        analytics=history.analytics,
    )
