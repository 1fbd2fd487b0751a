"""
Domain service: Yield trend series and summary analytics.

Given yield events and a date window, this module provides:
- A bucketed trend series of the cumulative yield level (for charting)
- Summary statistics (totals, averages, min/max level, velocity, growth)
- Named time period presets
"""
from typing import Callable, Optional, Sequence
from dataclasses import dataclass
from datetime import datetime
import numpy as np
import logging
from scipy import stats

from app.domain.models import (
    AnalyticsPeriod,
    AnalyticsSummary,
    TimePeriod,
    TrendPoint,
    YieldEvent,
)
from app.utils.period_helpers import (
    BucketGranularity,
    build_time_periods,
    choose_granularity,
    iter_buckets,
    span_in_days,
    to_utc,
    utcnow,
)
from app.config import settings

logger = logging.getLogger(__name__)


@dataclass
class TrendConfig:
    """Configuration for trend bucketing."""

    daily_max_days: int = 31
    """Windows up to this many days get one bucket per day"""

    weekly_max_days: int = 180
    """Windows up to this many days get one bucket per ISO week; longer ones per month"""

    granularity: Optional[BucketGranularity] = None
    """Force a bucket size instead of deriving it from the window span"""

    @classmethod
    def from_settings(cls) -> "TrendConfig":
        return cls(
            daily_max_days=settings.trend_daily_max_days,
            weekly_max_days=settings.trend_weekly_max_days,
        )

    def granularity_for(self, start_date: datetime, end_date: datetime) -> BucketGranularity:
        if self.granularity is not None:
            return self.granularity
        return choose_granularity(
            start_date, end_date, self.daily_max_days, self.weekly_max_days
        )


def filter_events_in_range(
    events: Sequence[YieldEvent],
    start_date: datetime,
    end_date: datetime,
) -> list[YieldEvent]:
    """Events with start_date <= date <= end_date, in input order."""
    start_date = to_utc(start_date)
    end_date = to_utc(end_date)
    return [event for event in events if start_date <= event.date <= end_date]


def generate_yield_trend_data(
    events: Sequence[YieldEvent],
    start_date: datetime,
    end_date: datetime,
    config: Optional[TrendConfig] = None,
) -> list[TrendPoint]:
    """
    Build the chart series of the yield level over a window.

    Each bucket reports the yield level (new yield of the latest event at or
    before the bucket end), carried forward through buckets without events.
    Events before the window only seed the level; with no prior event the
    level starts at 0. Events after the window are ignored.

    Args:
        events: Yield events, in any order
        start_date: Window start (inclusive)
        end_date: Window end (inclusive)
        config: Bucketing configuration

    Returns:
        One TrendPoint per bucket intersecting the window, in order

    Raises:
        ValueError: If start_date is after end_date
    """
    config = config or TrendConfig.from_settings()
    start_date = to_utc(start_date)
    end_date = to_utc(end_date)
    granularity = config.granularity_for(start_date, end_date)
    buckets = iter_buckets(start_date, end_date, granularity)

    ordered = sorted(events, key=lambda event: event.date)
    level = 0
    index = 0
    points = []

    for label, bucket_start, bucket_end in buckets:
        change = 0
        count = 0
        while index < len(ordered) and ordered[index].date <= bucket_end:
            event = ordered[index]
            index += 1
            level = event.new_yield
            if event.date >= start_date:
                change += event.change
                count += 1

        points.append(TrendPoint(
            label=label,
            start=bucket_start,
            end=bucket_end,
            yield_level=level,
            change=change,
            event_count=count,
        ))

    logger.debug(f"Generated {len(points)} {granularity.value} trend points "
                 f"from {len(ordered)} events")
    return points


def _growth_rate(events: list[YieldEvent], start_date: datetime) -> Optional[float]:
    if len(events) < 2:
        return None

    elapsed_days = np.array(
        [(event.date - start_date).total_seconds() / 86400 for event in events]
    )
    if np.ptp(elapsed_days) == 0:
        return None

    levels = np.array([event.new_yield for event in events], dtype=float)
    return float(stats.linregress(elapsed_days, levels).slope)


def calculate_yield_analytics(
    events: Sequence[YieldEvent],
    start_date: datetime,
    end_date: datetime,
) -> AnalyticsSummary:
    """
    Summarise the yield events inside a window.

    min_yield and max_yield are taken over new_yield (absolute levels) and
    are None when the window holds no events, so an empty window can be told
    apart from events that net out to zero.

    Args:
        events: Yield events, in any order
        start_date: Window start (inclusive)
        end_date: Window end (inclusive)

    Returns:
        AnalyticsSummary for the window
    """
    start_date = to_utc(start_date)
    end_date = to_utc(end_date)
    days = span_in_days(start_date, end_date)
    period = AnalyticsPeriod(start_date=start_date, end_date=end_date, days=days)

    period_events = sorted(
        filter_events_in_range(events, start_date, end_date),
        key=lambda event: event.date,
    )
    if not period_events:
        return AnalyticsSummary(period=period)

    changes = np.array([event.change for event in period_events], dtype=np.int64)
    levels = np.array([event.new_yield for event in period_events], dtype=np.int64)

    total_change = int(changes.sum())
    event_count = len(period_events)

    return AnalyticsSummary(
        total_change=total_change,
        total_increase=int(changes[changes > 0].sum()),
        total_decrease=int(-changes[changes < 0].sum()),
        event_count=event_count,
        increase_events=int((changes > 0).sum()),
        decrease_events=int((changes < 0).sum()),
        average_change=total_change / event_count,
        min_yield=int(levels.min()),
        max_yield=int(levels.max()),
        yield_velocity=total_change / days,
        growth_rate=_growth_rate(period_events, start_date),
        period=period,
    )


def get_time_periods(
    now: Optional[datetime] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> dict[str, TimePeriod]:
    """
    Resolve the named period presets at call time.

    Every preset ends at `now`; '7days', '30days', '90days' and '1year'
    start that long before it, 'all' starts on 2020-01-01.

    Args:
        now: Reference instant (defaults to the clock)
        clock: Source of the current instant (defaults to utcnow)

    Returns:
        Mapping of preset key to TimePeriod
    """
    reference = now if now is not None else (clock or utcnow)()
    return {
        key: TimePeriod(key=key, label=label, start_date=start, end_date=end)
        for key, (label, start, end) in build_time_periods(reference).items()
    }
