"""
API response models using Pydantic.
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from app.domain.models import AnalyticsSummary, TimePeriod, TrendPoint, YieldEvent


class PeriodInfo(BaseModel):
    """Date window a yield history covers."""
    key: str = Field(
        description="Preset key, or 'custom' for an explicit range",
        examples=["30days"]
    )
    label: str
    start_date: datetime
    end_date: datetime
    granularity: str = Field(
        description="Trend bucket size: day, week or month",
        examples=["day"]
    )


class YieldHistoryResponse(BaseModel):
    """Response model for the yield history endpoint."""
    tree_id: str = Field(
        description="Unique identifier for the tree"
    )
    period: PeriodInfo
    events: List[YieldEvent] = Field(
        description="Yield change events inside the window, oldest first"
    )
    trend: List[TrendPoint] = Field(
        description="Yield level per bucket, one point per bucket of the window"
    )
    analytics: Optional[AnalyticsSummary] = Field(
        default=None,
        description="Summary statistics, present when requested"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "tree_id": "tree_123",
                "period": {
                    "key": "custom",
                    "label": "กำหนดเอง",
                    "start_date": "2024-01-01T00:00:00Z",
                    "end_date": "2024-01-03T00:00:00Z",
                    "granularity": "day",
                },
                "events": [
                    {
                        "id": "log_1",
                        "date": "2024-01-02T08:00:00Z",
                        "activity_type": "yield_update",
                        "previous_yield": 0,
                        "new_yield": 12,
                        "change": 12,
                        "reason": "เพิ่มผลไม้",
                        "notes": "เพิ่มผลไม้: จาก 0 ลูก เป็น 12 ลูก (+12)",
                    }
                ],
                "trend": [
                    {"label": "2024-01-01", "start": "2024-01-01T00:00:00Z",
                     "end": "2024-01-01T23:59:59.999999Z", "yield_level": 0,
                     "change": 0, "event_count": 0},
                    {"label": "2024-01-02", "start": "2024-01-02T00:00:00Z",
                     "end": "2024-01-02T23:59:59.999999Z", "yield_level": 12,
                     "change": 12, "event_count": 1},
                    {"label": "2024-01-03", "start": "2024-01-03T00:00:00Z",
                     "end": "2024-01-03T00:00:00Z", "yield_level": 12,
                     "change": 0, "event_count": 0},
                ],
                "analytics": None,
            }
        }
    )


class TimePeriodsResponse(BaseModel):
    """Response model for the period presets endpoint."""
    periods: List[TimePeriod]
