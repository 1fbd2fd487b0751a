"""
Unit tests for yield trend and analytics calculations.

Tests cover:
- Summary statistics and empty windows
- Trend bucketing, carry-forward and granularity
- Period presets with an injected clock
- Bucket helpers
"""
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from app.config import settings
from app.domain.models import YieldEvent
from app.services.domain.yield_analytics import (
    TrendConfig,
    calculate_yield_analytics,
    filter_events_in_range,
    generate_yield_trend_data,
    get_time_periods,
)
from app.services.domain.yield_event_extractor import parse_yield_events
from app.utils.period_helpers import (
    ALL_PERIOD_START,
    BucketGranularity,
    choose_granularity,
    iter_buckets,
    span_in_days,
)

from conftest import utc


def _event(event_id, when, previous, new) -> YieldEvent:
    return YieldEvent(
        id=event_id,
        date=when,
        activity_type="yield_update",
        previous_yield=previous,
        new_yield=new,
    )


# ============================================================
# Analytics Tests
# ============================================================

class TestYieldAnalytics:
    """Tests for the analytics summary."""

    def test_january_scenario(self, sample_logs):
        """Events 0->12 and 12->20 should total 20 over 2 events."""
        events = parse_yield_events(sample_logs)

        summary = calculate_yield_analytics(events, utc(2024, 1, 1), utc(2024, 1, 10))

        assert summary.total_change == 20
        assert summary.event_count == 2
        assert summary.average_change == 10
        assert summary.min_yield == 12
        assert summary.max_yield == 20

    def test_bounds_are_inclusive(self, sample_events):
        """Events exactly on start or end should count."""
        summary = calculate_yield_analytics(sample_events, utc(2024, 1, 10), utc(2024, 1, 10))

        assert summary.event_count == 1
        assert summary.total_change == 8

    def test_empty_event_list(self):
        """No events should give zeros and absent min/max."""
        summary = calculate_yield_analytics([], utc(2024, 2, 1), utc(2024, 2, 28))

        assert summary.total_change == 0
        assert summary.event_count == 0
        assert summary.average_change == 0
        assert summary.min_yield is None
        assert summary.max_yield is None
        assert summary.growth_rate is None
        assert summary.yield_velocity == 0

    def test_no_events_in_range(self, sample_events):
        """A window after every event should be empty, not an error."""
        summary = calculate_yield_analytics(sample_events, utc(2024, 2, 1), utc(2024, 2, 28))

        assert summary.event_count == 0
        assert summary.total_change == 0
        assert summary.min_yield is None
        assert summary.max_yield is None

    def test_increase_and_decrease_totals(self):
        """Increases and decreases should be tallied separately."""
        events = [
            _event("a", utc(2024, 3, 1), 0, 30),
            _event("b", utc(2024, 3, 5), 30, 18),
            _event("c", utc(2024, 3, 9), 18, 25),
            _event("d", utc(2024, 3, 12), 25, 25),
        ]

        summary = calculate_yield_analytics(events, utc(2024, 3, 1), utc(2024, 3, 31))

        assert summary.total_increase == 37
        assert summary.total_decrease == 12
        assert summary.total_change == 25
        assert summary.increase_events == 2
        assert summary.decrease_events == 1
        assert summary.event_count == 4
        assert summary.min_yield == 18
        assert summary.max_yield == 30

    def test_min_max_over_new_yield(self):
        """min/max are yield levels, not per-event changes."""
        events = [_event("a", utc(2024, 3, 1), 100, 90), _event("b", utc(2024, 3, 2), 90, 95)]

        summary = calculate_yield_analytics(events, utc(2024, 3, 1), utc(2024, 3, 2))

        assert (summary.min_yield, summary.max_yield) == (90, 95)

    def test_velocity_and_period(self, sample_events):
        """Velocity is net change per day of the window."""
        summary = calculate_yield_analytics(sample_events, utc(2024, 1, 1), utc(2024, 1, 11))

        assert summary.period.days == 10
        assert summary.yield_velocity == pytest.approx(2.0)

    def test_growth_rate_slope(self):
        """Growth rate is the least-squares slope of the level per day."""
        events = [
            _event("a", utc(2024, 4, 1), 0, 10),
            _event("b", utc(2024, 4, 3), 10, 14),
            _event("c", utc(2024, 4, 5), 14, 18),
        ]

        summary = calculate_yield_analytics(events, utc(2024, 4, 1), utc(2024, 4, 30))

        assert summary.growth_rate == pytest.approx(2.0)

    def test_growth_rate_needs_distinct_instants(self):
        """Two events at the same instant give no slope."""
        events = [_event("a", utc(2024, 4, 1), 0, 10), _event("b", utc(2024, 4, 1), 10, 12)]

        summary = calculate_yield_analytics(events, utc(2024, 4, 1), utc(2024, 4, 2))

        assert summary.growth_rate is None

    def test_garbled_counts_do_not_break_analytics(self):
        """Oversized counts in notes are dropped before aggregation."""
        logs = [
            {"id": "a", "logDate": "2024-03-01T00:00:00Z", "activityType": "yield_update",
             "notes": "จาก 0 ลูก เป็น 99999999999999999999 ลูก"},
            {"id": "b", "logDate": "2024-03-02T00:00:00Z", "activityType": "yield_update",
             "notes": "จาก 0 ลูก เป็น 7 ลูก"},
        ]

        summary = calculate_yield_analytics(parse_yield_events(logs), utc(2024, 3, 1), utc(2024, 3, 31))

        assert summary.event_count == 1
        assert summary.max_yield == 7

    def test_naive_bounds_are_utc(self, sample_events):

        """Naive window bounds should be read as UTC."""
        summary = calculate_yield_analytics(
            sample_events, datetime(2024, 1, 1), datetime(2024, 1, 10)
        )

        assert summary.event_count == 2


# ============================================================
# Trend Tests
# ============================================================

class TestYieldTrend:
    """Tests for the bucketed trend series."""

    def test_one_point_per_day(self, sample_events):
        """A 10-day window should have 10 daily points without gaps."""
        points = generate_yield_trend_data(sample_events, utc(2024, 1, 1), utc(2024, 1, 10))

        assert [p.label for p in points] == [f"2024-01-{day:02d}" for day in range(1, 11)]

    def test_cumulative_level_carried_forward(self, sample_events):
        """Buckets without events should carry the last level."""
        points = generate_yield_trend_data(sample_events, utc(2024, 1, 1), utc(2024, 1, 10))
        levels = [p.yield_level for p in points]

        assert levels == [12] * 9 + [20]
        assert points[0].change == 12
        assert points[-1].change == 8
        assert sum(p.event_count for p in points) == 2

    def test_february_carries_january_level(self, sample_events):
        """A window after all events should carry the last known level."""
        points = generate_yield_trend_data(sample_events, utc(2024, 2, 1), utc(2024, 2, 28))

        assert len(points) == 28
        assert all(p.yield_level == 20 for p in points)
        assert all(p.change == 0 and p.event_count == 0 for p in points)

    def test_zero_before_first_event(self, sample_events):
        """With no prior event the level starts at zero."""
        points = generate_yield_trend_data(sample_events, utc(2023, 12, 30), utc(2024, 1, 2))

        assert [p.yield_level for p in points] == [0, 0, 12, 12]

    def test_events_after_window_ignored(self, sample_events):
        """Later events should not leak into the window."""
        points = generate_yield_trend_data(sample_events, utc(2024, 1, 1), utc(2024, 1, 5))

        assert all(p.yield_level == 12 for p in points)

    def test_empty_events(self):
        """No events still gives a full series of zeros."""
        points = generate_yield_trend_data([], utc(2024, 1, 1), utc(2024, 1, 3))

        assert [p.yield_level for p in points] == [0, 0, 0]

    def test_unsorted_input(self, sample_events):
        """Event order in the input should not matter."""
        forward = generate_yield_trend_data(sample_events, utc(2024, 1, 1), utc(2024, 1, 10))
        backward = generate_yield_trend_data(sample_events[::-1], utc(2024, 1, 1), utc(2024, 1, 10))

        assert forward == backward

    def test_bucket_bounds_clamped_to_window(self):
        """First and last bucket bounds should match the window."""
        start = utc(2024, 1, 1, hour=6)
        end = utc(2024, 1, 3, hour=12)

        points = generate_yield_trend_data([], start, end)

        assert points[0].start == start
        assert points[-1].end == end

    def test_weekly_buckets(self):
        """A 90-day window should use ISO weeks."""
        start = utc(2024, 1, 1)  # a Monday
        events = [_event("a", utc(2024, 1, 17), 0, 5)]

        points = generate_yield_trend_data(events, start, start + timedelta(days=90))

        assert points[0].label == "2024-W01"
        assert points[2].label == "2024-W03"
        assert [p.yield_level for p in points[:4]] == [0, 0, 5, 5]
        labels = [p.label for p in points]
        assert len(labels) == len(set(labels))

    def test_monthly_buckets(self):
        """A one-year window should use months, crossing the year end."""
        points = generate_yield_trend_data([], utc(2023, 7, 15), utc(2024, 7, 14))

        assert points[0].label == "2023-07"
        assert points[-1].label == "2024-07"
        assert len(points) == 13
        assert "2024-01" in [p.label for p in points]

    def test_forced_granularity(self, sample_events):
        """Config can force a bucket size."""
        config = TrendConfig(granularity=BucketGranularity.MONTH)

        points = generate_yield_trend_data(sample_events, utc(2024, 1, 1), utc(2024, 1, 10), config)

        assert len(points) == 1
        assert points[0].label == "2024-01"
        assert points[0].yield_level == 20
        assert points[0].change == 20

    def test_default_config_follows_settings(self, monkeypatch):
        """Without a config the thresholds come from settings."""
        monkeypatch.setattr(settings, "trend_daily_max_days", 5)

        points = generate_yield_trend_data([], utc(2024, 1, 1), utc(2024, 1, 11))

        assert points[0].label == "2024-W01"
        assert len(points) == 2

    def test_start_after_end_rejected(self):

        """An inverted window is invalid."""
        with pytest.raises(ValueError):
            generate_yield_trend_data([], utc(2024, 2, 1), utc(2024, 1, 1))


# ============================================================
# Granularity Tests
# ============================================================

class TestGranularity:
    """Tests for deterministic bucket size selection."""

    @pytest.mark.parametrize("days,expected", [
        (1, BucketGranularity.DAY),
        (31, BucketGranularity.DAY),
        (32, BucketGranularity.WEEK),
        (180, BucketGranularity.WEEK),
        (181, BucketGranularity.MONTH),
    ])
    def test_thresholds(self, days, expected):
        start = utc(2024, 1, 1)

        assert choose_granularity(start, start + timedelta(days=days), 31, 180) == expected

    def test_span_rounds_up(self):
        assert span_in_days(utc(2024, 1, 1), utc(2024, 1, 1)) == 1
        assert span_in_days(utc(2024, 1, 1), utc(2024, 1, 2, hour=1)) == 2

    def test_iter_buckets_single_moment(self):
        """A zero-length window still has one bucket."""
        buckets = iter_buckets(utc(2024, 5, 5), utc(2024, 5, 5), BucketGranularity.DAY)

        assert buckets == [("2024-05-05", utc(2024, 5, 5), utc(2024, 5, 5))]


    def test_week_buckets_run_monday_to_sunday(self):
        """Weeks are ISO weeks; only the first one is clamped to the window."""
        buckets = iter_buckets(utc(2024, 1, 3), utc(2024, 1, 20), BucketGranularity.WEEK)

        assert [label for label, _, _ in buckets] == ["2024-W01", "2024-W02", "2024-W03"]
        assert buckets[0][1] == utc(2024, 1, 3)
        assert buckets[0][2] == datetime(2024, 1, 7, 23, 59, 59, 999999, tzinfo=timezone.utc)
        assert buckets[1][1] == utc(2024, 1, 8)
        assert buckets[-1][2] == utc(2024, 1, 20)

    def test_week_label_uses_iso_year(self):
        """A week spanning new year is labelled with its ISO year."""
        buckets = iter_buckets(utc(2024, 12, 31), utc(2025, 1, 2), BucketGranularity.WEEK)

        assert buckets == [("2025-W01", utc(2024, 12, 31), utc(2025, 1, 2))]

    def test_month_bucket_ends_on_last_instant(self):
        buckets = iter_buckets(utc(2024, 2, 10), utc(2024, 3, 5), BucketGranularity.MONTH)

        assert [label for label, _, _ in buckets] == ["2024-02", "2024-03"]
        assert buckets[0][2] == datetime(2024, 2, 29, 23, 59, 59, 999999, tzinfo=timezone.utc)
        assert buckets[1][1] == utc(2024, 3, 1)


# ============================================================
# Period Preset Tests
# ============================================================

class TestTimePeriods:
    """Tests for the named period presets."""

    NOW = datetime(2024, 6, 15, 12, 30, tzinfo=timezone.utc)

    def test_presets_end_now(self):
        periods = get_time_periods(now=self.NOW)

        assert set(periods) == {"7days", "30days", "90days", "1year", "all"}
        assert all(p.end_date == self.NOW for p in periods.values())

    def test_preset_durations(self):
        periods = get_time_periods(now=self.NOW)

        assert self.NOW - periods["7days"].start_date == timedelta(days=7)
        assert self.NOW - periods["30days"].start_date == timedelta(days=30)
        assert self.NOW - periods["90days"].start_date == timedelta(days=90)
        assert self.NOW - periods["1year"].start_date == timedelta(days=365)
        assert periods["all"].start_date == ALL_PERIOD_START

    def test_injected_clock(self):
        periods = get_time_periods(clock=lambda: self.NOW)

        assert periods["30days"].end_date == self.NOW

    def test_patched_clock(self):
        with patch("app.services.domain.yield_analytics.utcnow", return_value=self.NOW):
            periods = get_time_periods()

        assert periods["7days"].end_date == self.NOW

    def test_keys_match_preset(self):
        periods = get_time_periods(now=self.NOW)

        assert all(key == period.key for key, period in periods.items())

    def test_preset_labels(self):
        periods = get_time_periods(now=self.NOW)

        assert periods["7days"].label == "7 วันที่ผ่านมา"
        assert periods["1year"].label == "1 ปีที่ผ่านมา"
        assert periods["all"].label == "ทั้งหมด"



class TestFilterEvents:
    """Tests for window filtering."""

    def test_inclusive_filter(self, sample_events):
        assert filter_events_in_range(sample_events, utc(2024, 1, 1), utc(2024, 1, 1)) == sample_events[:1]
        assert filter_events_in_range(sample_events, utc(2024, 1, 2), utc(2024, 1, 9)) == []
