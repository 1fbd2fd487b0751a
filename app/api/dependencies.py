"""
Dependency injection for FastAPI.
"""
from typing import Annotated
from fastapi import Depends, Request

from app.infrastructure.activity_log_client import ActivityLogClient
from app.services.application.yield_history_service import YieldHistoryService
from app.services.domain.yield_analytics import TrendConfig


def get_log_client(request: Request) -> ActivityLogClient:
    """
    Dependency factory for the activity log client.

    The client is opened once in the application lifespan and kept on
    app.state.

    Returns:
        ActivityLogClient instance
    """
    return request.app.state.log_client


def get_trend_config() -> TrendConfig:
    """
    Dependency factory for TrendConfig.

    Returns:
        TrendConfig built from settings
    """
    return TrendConfig.from_settings()


def get_yield_history_service(
    log_client: Annotated[ActivityLogClient, Depends(get_log_client)],
    trend_config: Annotated[TrendConfig, Depends(get_trend_config)],
) -> YieldHistoryService:
    """
    Dependency factory for YieldHistoryService.

    Args:
        log_client: Activity log client (injected)
        trend_config: Trend bucketing configuration (injected)

    Returns:
        YieldHistoryService instance
    """
    return YieldHistoryService(log_client=log_client, trend_config=trend_config)


# Type aliases for cleaner route signatures
YieldHistoryServiceDep = Annotated[YieldHistoryService, Depends(get_yield_history_service)]
