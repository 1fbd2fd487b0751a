"""
Shared pytest fixtures for all tests.

This module provides common fixtures including:
- Sample activity logs
- Sample yield events
- Mock log store client
- FastAPI test client
"""
import pytest
from datetime import datetime, timezone
from typing import Iterator
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient

from app.main import app
from app.domain.models import ActivityLogRecord, YieldEvent
from app.infrastructure.activity_log_client import ActivityLogClient


def utc(year: int, month: int, day: int, hour: int = 0) -> datetime:
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


# ============================================================
# Sample Data Fixtures
# ============================================================

@pytest.fixture
def sample_logs() -> list[ActivityLogRecord]:
    """Three January logs: two yield updates around a fertilizing entry."""
    return [
        ActivityLogRecord(
            id="log-1",
            tree_id="tree-1",
            log_date=utc(2024, 1, 1),
            activity_type="yield_update",
            notes="จาก 0 ลูก เป็น 12 ลูก",
        ),
        ActivityLogRecord(
            id="log-2",
            tree_id="tree-1",
            log_date=utc(2024, 1, 5),
            activity_type="fertilize",
            notes="ใส่ปุ๋ย 2 กก.",
        ),
        ActivityLogRecord(
            id="log-3",
            tree_id="tree-1",
            log_date=utc(2024, 1, 10),
            activity_type="yield_update",
            previous_yield=12,
            new_yield=20,
        ),
    ]


@pytest.fixture
def raw_logs() -> list[dict]:
    """The same logs as the log store returns them (camelCase JSON)."""
    return [
        {
            "id": "log-1",
            "treeId": "tree-1",
            "logDate": "2024-01-01T00:00:00Z",
            "activityType": "yield_update",
            "notes": "จาก 0 ลูก เป็น 12 ลูก",
        },
        {
            "id": "log-2",
            "treeId": "tree-1",
            "logDate": "2024-01-05T00:00:00Z",
            "activityType": "fertilize",
            "notes": "ใส่ปุ๋ย 2 กก.",
        },
        {
            "id": "log-3",
            "treeId": "tree-1",
            "logDate": "2024-01-10T00:00:00Z",
            "activityType": "yield_update",
            "previousYield": 12,
            "newYield": 20,
        },
    ]


@pytest.fixture
def sample_events() -> list[YieldEvent]:
    """Yield events for January: 0 -> 12 -> 20."""
    return [
        YieldEvent(
            id="log-1",
            date=utc(2024, 1, 1),
            activity_type="yield_update",
            previous_yield=0,
            new_yield=12,
        ),
        YieldEvent(
            id="log-3",
            date=utc(2024, 1, 10),
            activity_type="yield_update",
            previous_yield=12,
            new_yield=20,
        ),
    ]


# ============================================================
# Mock Log Store Client Fixtures
# ============================================================

@pytest.fixture
def mock_log_client(raw_logs):
    """Create a mock activity log client."""
    mock_client = AsyncMock(spec=ActivityLogClient)
    mock_client.get_tree_logs.return_value = raw_logs
    return mock_client


# ============================================================
# FastAPI Test Client Fixtures
# ============================================================

@pytest.fixture
def test_client() -> Iterator[TestClient]:
    """Create a synchronous test client for FastAPI (runs the lifespan)."""
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
