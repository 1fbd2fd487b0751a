"""
Domain service: Reconstruct yield change events from tree activity logs.

Activity logs are free-form: a yield update may carry structured
previous/new counts, or only a note such as
"เพิ่มผลไม้: จาก 10 ลูก เป็น 15 ลูก (+5)" or "Thinning: from 40 to 32".
This module turns the matching logs into ordered YieldEvent values.
"""
import logging
import re
from collections.abc import Iterable, Mapping
from typing import Any, Optional

from pydantic import ValidationError

from app.config import settings
from app.domain.models import MAX_YIELD_COUNT, ActivityLogRecord, YieldEvent

logger = logging.getLogger(__name__)


class InvalidLogInputError(ValueError):
    """Raised when the input is not a collection of log records."""
    pass


# "จาก 10 ลูก เป็น 15 ลูก (+5)" / "from 10 to 15"
_RANGE_PATTERNS = (
    re.compile(r"จาก\s*(\d+)\s*ลูก\s*เป็น\s*(\d+)\s*ลูก"),
    re.compile(r"\bfrom\s+(\d+)\s+(?:fruits?\s+)?to\s+(\d+)\b", re.IGNORECASE),
)

# "เป็น 15 ลูก" / "to 15 fruits"
_TARGET_PATTERNS = (
    re.compile(r"เป็น\s*(\d+)\s*ลูก"),
    re.compile(r"\bto\s+(\d+)\s+fruits?\b", re.IGNORECASE),
)

_REASON_KEYWORDS = (
    ("เพิ่ม", "เพิ่มผลไม้"),
    ("ลด", "ลดผลไม้"),
    ("เก็บ", "เก็บเกี่ยว"),
    ("ปรับแก้", "ปรับแก้"),
)


def parse_yield_change(notes: Optional[str]) -> Optional[tuple[int, int]]:
    """
    Recover (previous_yield, new_yield) from free-text notes.

    Args:
        notes: Log notes

    Returns:
        Tuple of (previous, new), or None if no yield is recoverable.
        When only the new count is stated, previous defaults to 0.
    """
    if not notes:
        return None

    for pattern in _RANGE_PATTERNS:
        match = pattern.search(notes)
        if match:
            return int(match.group(1)), int(match.group(2))

    for pattern in _TARGET_PATTERNS:
        match = pattern.search(notes)
        if match:
            return 0, int(match.group(1))

    return None


def extract_reason(notes: Optional[str], activity_type: str) -> str:
    """
    Extract a short reason for a yield change.

    Uses the text before the first colon, then known keywords, then the
    activity type itself.
    """
    if not notes:
        return activity_type

    prefix, colon, _ = notes.partition(":")
    if colon and prefix.strip():
        return prefix.strip()

    for keyword, reason in _REASON_KEYWORDS:
        if keyword in notes:
            return reason

    return activity_type or "อื่นๆ"


def _ensure_record_collection(logs: Any) -> list:
    if isinstance(logs, (str, bytes, Mapping)) or not isinstance(logs, Iterable):
        raise InvalidLogInputError(
            f"Expected a collection of activity log records, got {type(logs).__name__}"
        )
    return list(logs)


def _coerce_record(raw: Any) -> Optional[ActivityLogRecord]:
    if isinstance(raw, ActivityLogRecord):
        return raw
    if not isinstance(raw, Mapping):
        logger.debug(f"Skipping log entry of unsupported type {type(raw).__name__}")
        return None
    try:
        return ActivityLogRecord.model_validate(raw)
    except ValidationError as e:
        logger.debug(f"Skipping malformed log record {raw.get('id')!r}: {e.error_count()} errors")
        return None


def _build_event(record: ActivityLogRecord) -> Optional[YieldEvent]:
    if record.log_date is None:
        logger.debug(f"Skipping yield log {record.id}: missing date")
        return None

    if record.new_yield is not None:
        previous_yield = record.previous_yield or 0
        new_yield = record.new_yield
    else:
        parsed = parse_yield_change(record.notes)
        if parsed is None:
            logger.debug(f"Skipping yield log {record.id}: no recoverable yield in notes")
            return None
        previous_yield, new_yield = parsed

    if previous_yield < 0 or new_yield < 0:
        logger.debug(f"Skipping yield log {record.id}: negative yield")
        return None

    if max(previous_yield, new_yield) > MAX_YIELD_COUNT:
        logger.debug(f"Skipping yield log {record.id}: yield above {MAX_YIELD_COUNT}")
        return None

    return YieldEvent(
        id=record.id,
        date=record.log_date,
        activity_type=record.activity_type,
        previous_yield=previous_yield,
        new_yield=new_yield,
        reason=extract_reason(record.notes, record.activity_type),
        notes=record.notes or "",
    )


def parse_yield_events(
    logs: Iterable[Any],
    activity_type: Optional[str] = None,
) -> list[YieldEvent]:
    """
    Convert activity logs into yield change events.

    Only logs tagged with the yield-update activity type are considered;
    other logs and logs with no recoverable yield are skipped.

    Args:
        logs: ActivityLogRecord instances or raw mappings from the log store
        activity_type: Yield-update marker (defaults to the configured one)

    Returns:
        Events sorted by date ascending; equal dates keep input order

    Raises:
        InvalidLogInputError: If logs is not a collection of records
    """
    records = _ensure_record_collection(logs)
    marker = activity_type or settings.yield_activity_type

    events = []
    for raw in records:
        record = _coerce_record(raw)
        if record is None or record.activity_type != marker:
            continue
        event = _build_event(record)
        if event is not None:
            events.append(event)

    logger.debug(f"Extracted {len(events)} yield events from {len(records)} logs")

    # sorted() is stable, which keeps insertion order for equal timestamps
    return sorted(events, key=lambda event: event.date)
