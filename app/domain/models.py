"""
Domain models for tree activity logs and yield history.

These models represent the core domain entities and should be independent
of any infrastructure concerns (API clients, databases, etc.).
"""
from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

# Largest fruit count accepted for one tree; larger values are garbled input
MAX_YIELD_COUNT = 1_000_000_000


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Naive timestamps from the log store are UTC
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ActivityLogRecord(BaseModel):
    """Single activity log entry for a tree, as stored by the log store."""
    id: str
    tree_id: Optional[str] = Field(default=None, alias="treeId")
    log_date: Optional[datetime] = Field(
        default=None,
        alias="logDate",
        description="Instant the activity happened"
    )
    activity_type: str = Field(
        default="",
        alias="activityType",
        description="Free-text activity label, e.g. 'fertilize' or 'yield_update'"
    )
    notes: Optional[str] = None
    previous_yield: Optional[int] = Field(default=None, alias="previousYield")
    new_yield: Optional[int] = Field(default=None, alias="newYield")

    @field_validator("id", "tree_id", mode="before")
    @classmethod
    def _coerce_identifier(cls, value):
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("log_date")
    @classmethod
    def _normalize_log_date(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class YieldEvent(BaseModel):
    """A change in a tree's fruit count reconstructed from one activity log."""
    id: str
    date: datetime
    activity_type: str
    previous_yield: int = Field(default=0, ge=0, le=MAX_YIELD_COUNT)
    new_yield: int = Field(ge=0, le=MAX_YIELD_COUNT)
    reason: str = ""
    notes: str = ""

    @computed_field
    @property
    def change(self) -> int:
        return self.new_yield - self.previous_yield

    @field_validator("date")
    @classmethod
    def _normalize_date(cls, value: datetime) -> datetime:
        return _as_utc(value)

    model_config = ConfigDict(frozen=True)


class TrendPoint(BaseModel):
    """Yield level for one chart bucket."""
    label: str = Field(description="Bucket key, e.g. '2024-01-05', '2024-W03' or '2024-01'")
    start: datetime
    end: datetime
    yield_level: int = Field(description="Yield level at the end of the bucket")
    change: int = Field(default=0, description="Net change from events inside the bucket")
    event_count: int = 0


class AnalyticsPeriod(BaseModel):
    """Window an analytics summary was computed over."""
    start_date: datetime
    end_date: datetime
    days: int


class AnalyticsSummary(BaseModel):
    """Aggregates over the yield events of one date window."""
    total_change: int = 0
    total_increase: int = 0
    total_decrease: int = 0
    event_count: int = 0
    increase_events: int = 0
    decrease_events: int = 0
    average_change: float = 0.0
    min_yield: Optional[int] = Field(
        default=None,
        description="Lowest new yield observed; absent when there are no events"
    )
    max_yield: Optional[int] = Field(
        default=None,
        description="Highest new yield observed; absent when there are no events"
    )
    yield_velocity: float = Field(
        default=0.0,
        description="Net change per day of the window"
    )
    growth_rate: Optional[float] = Field(
        default=None,
        description="Least-squares slope of the yield level, in fruit per day"
    )
    period: AnalyticsPeriod


class TimePeriod(BaseModel):
    """Named date window."""
    key: str
    label: str
    start_date: datetime
    end_date: datetime
