"""
Application service: Orchestration layer for tree yield history.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from app.config import settings
from app.domain.models import AnalyticsSummary, TimePeriod, TrendPoint, YieldEvent
from app.infrastructure.activity_log_client import ActivityLogClient
from app.services.domain.yield_analytics import (
    TrendConfig,
    calculate_yield_analytics,
    filter_events_in_range,
    generate_yield_trend_data,
    get_time_periods,
)
from app.services.domain.yield_event_extractor import parse_yield_events
from app.utils.period_helpers import BucketGranularity, to_utc

logger = logging.getLogger(__name__)

CUSTOM_PERIOD_KEY = "custom"


@dataclass
class YieldHistory:
    """Yield history of one tree over one window."""
    tree_id: str
    period: TimePeriod
    granularity: BucketGranularity
    events: List[YieldEvent]
    trend: List[TrendPoint]
    analytics: Optional[AnalyticsSummary] = None


class YieldHistoryService:
    """
    Application service for tree yield history.

    Orchestrates data fetching and business logic execution.
    No business logic here, only coordination between the log store
    client and the yield domain functions.
    """

    def __init__(
        self,
        log_client: ActivityLogClient,
        trend_config: Optional[TrendConfig] = None,
    ):
        """
        Initialize the service with dependencies.

        Args:
            log_client: Activity log store client for data fetching
            trend_config: Trend bucketing configuration
        """
        self.log_client = log_client
        self.trend_config = trend_config or TrendConfig.from_settings()

    def resolve_period(
        self,
        period: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> TimePeriod:
        """
        Pick the date window for a request.

        An explicit start and end date win over the preset; an unknown
        preset falls back to the configured default.

        Raises:
            ValueError: If an explicit start date is after the end date
        """
        if start_date is not None and end_date is not None:
            start_date = to_utc(start_date)
            end_date = to_utc(end_date)
            if start_date > end_date:
                raise ValueError("start_date must not be after end_date")
            return TimePeriod(
                key=CUSTOM_PERIOD_KEY,
                label="กำหนดเอง",
                start_date=start_date,
                end_date=end_date,
            )

        presets = get_time_periods(now=now)
        key = period or settings.default_period
        if key not in presets:
            logger.warning(f"Unknown period '{key}', using '{settings.default_period}'")
            key = settings.default_period
        return presets[key]

    async def get_yield_history(
        self,
        tree_id: str,
        period: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        include_analytics: bool = False,
    ) -> YieldHistory:
        """
        Get the yield history of a tree.

        This method orchestrates:
        1. Resolving the date window
        2. Fetching the tree's activity logs
        3. Extracting yield events
        4. Building the trend series and, on request, the analytics

        Args:
            tree_id: Tree identifier
            period: Preset key such as '30days'
            start_date: Explicit window start (needs end_date)
            end_date: Explicit window end (needs start_date)
            include_analytics: Whether to compute the summary

        Returns:
            YieldHistory for the window

        Raises:
            LogStoreError: If log fetching fails
            ValueError: If the window is invalid
        """
        window = self.resolve_period(period, start_date, end_date)

        logs = await self.log_client.get_tree_logs(tree_id)
        events = parse_yield_events(logs)

        trend = generate_yield_trend_data(
            events, window.start_date, window.end_date, self.trend_config
        )
        analytics = None
        if include_analytics:
            analytics = calculate_yield_analytics(
                events, window.start_date, window.end_date
            )

        logger.info(f"Tree {tree_id}: {len(events)} yield events, "
                    f"{len(trend)} trend points for period '{window.key}'")

        return YieldHistory(
            tree_id=tree_id,
            period=window,
            granularity=self.trend_config.granularity_for(
                window.start_date, window.end_date
            ),
            events=filter_events_in_range(events, window.start_date, window.end_date),
            trend=trend,
            analytics=analytics,
        )
