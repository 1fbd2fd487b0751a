"""
Date window and bucketing utilities for yield trend charts.

Provides utilities for:
- UTC normalisation of instants
- Choosing a bucket granularity from a window span
- Enumerating day/week/month buckets over a window
- Named period presets
"""
import math
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

import pandas as pd


class BucketGranularity(str, Enum):
    """Size of a trend bucket."""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


# Preset key -> (label, duration). None means "since ALL_PERIOD_START".
PERIOD_PRESETS: dict[str, tuple[str, Optional[timedelta]]] = {
    "7days": ("7 วันที่ผ่านมา", timedelta(days=7)),
    "30days": ("30 วันที่ผ่านมา", timedelta(days=30)),
    "90days": ("90 วันที่ผ่านมา", timedelta(days=90)),
    "1year": ("1 ปีที่ผ่านมา", timedelta(days=365)),
    "all": ("ทั้งหมด", None),
}

ALL_PERIOD_START = datetime(2020, 1, 1, tzinfo=timezone.utc)


def utcnow() -> datetime:
    """Current instant as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_utc(moment: datetime) -> datetime:
    """
    Normalise a datetime to aware UTC.

    Args:
        moment: Aware or naive datetime (naive is taken as UTC)

    Returns:
        Timezone-aware UTC datetime
    """
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def span_in_days(start: datetime, end: datetime) -> int:
    """
    Length of a window in whole days, rounded up, never below one.

    Args:
        start: Window start
        end: Window end

    Returns:
        Number of days
    """
    seconds = (to_utc(end) - to_utc(start)).total_seconds()
    return max(1, math.ceil(seconds / 86400))


def choose_granularity(
    start: datetime,
    end: datetime,
    daily_max_days: int,
    weekly_max_days: int,
) -> BucketGranularity:
    """
    Pick the bucket size for a window.

    Args:
        start: Window start
        end: Window end
        daily_max_days: Longest span still charted per day
        weekly_max_days: Longest span still charted per week

    Returns:
        DAY, WEEK or MONTH
    """
    days = span_in_days(start, end)
    if days <= daily_max_days:
        return BucketGranularity.DAY
    if days <= weekly_max_days:
        return BucketGranularity.WEEK
    return BucketGranularity.MONTH


# Period frequency per bucket size; weeks end on Sunday so they start on Monday
_PERIOD_FREQ = {
    BucketGranularity.DAY: "D",
    BucketGranularity.WEEK: "W-SUN",
    BucketGranularity.MONTH: "M",
}


def _naive_utc(moment: datetime) -> pd.Timestamp:
    return pd.Timestamp(to_utc(moment).replace(tzinfo=None))


def _aware_utc(stamp: pd.Timestamp) -> datetime:
    # Periods end on the last nanosecond; datetimes only hold microseconds
    return stamp.floor("us").tz_localize("UTC").to_pydatetime()


def bucket_label(period: pd.Period, granularity: BucketGranularity) -> str:
    """
    Chart key for a bucket.

    Days are 'YYYY-MM-DD', ISO weeks 'YYYY-Www' and months 'YYYY-MM'.
    """
    if granularity == BucketGranularity.WEEK:
        iso_year, iso_week, _ = period.start_time.isocalendar()
        return f"{iso_year}-W{iso_week:02d}"
    if granularity == BucketGranularity.DAY:
        return period.strftime("%Y-%m-%d")
    return period.strftime("%Y-%m")


def iter_buckets(
    start: datetime,
    end: datetime,
    granularity: BucketGranularity,
) -> list[tuple[str, datetime, datetime]]:
    """
    Enumerate every bucket intersecting [start, end].

    Bucket bounds are clamped to the window, so the first bucket starts at
    `start` and the last one ends at `end`.

    Args:
        start: Window start
        end: Window end (inclusive)
        granularity: Bucket size

    Returns:
        List of (label, bucket_start, bucket_end) tuples in order

    Raises:
        ValueError: If start is after end
    """
    start = to_utc(start)
    end = to_utc(end)
    if start > end:
        raise ValueError(f"Start date {start.isoformat()} is after end date {end.isoformat()}")

    periods = pd.period_range(
        start=_naive_utc(start),
        end=_naive_utc(end),
        freq=_PERIOD_FREQ[granularity],
    )

    return [
        (
            bucket_label(period, granularity),
            max(_aware_utc(period.start_time), start),
            min(_aware_utc(period.end_time), end),
        )
        for period in periods
    ]


def build_time_periods(now: datetime) -> dict[str, tuple[str, datetime, datetime]]:
    """
    Resolve every preset against a reference instant.

    Args:
        now: Reference instant, used as the end of every preset

    Returns:
        Mapping of preset key to (label, start, end)
    """
    now = to_utc(now)
    periods = {}
    for key, (label, duration) in PERIOD_PRESETS.items():
        start = ALL_PERIOD_START if duration is None else now - duration
        periods[key] = (label, min(start, now), now)
    return periods
