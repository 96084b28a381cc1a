"""
Input validation utilities for the Marketplace API.

Reusable validators for query parameters that FastAPI's type coercion
alone doesn't cover.
"""
from datetime import date, datetime, time, timezone
from typing import Optional

from fastapi import Query

from domain.errors import ValidationError


def parse_date_bound(value: Optional[str], *, field: str, end_of_day: bool = False) -> Optional[datetime]:
    """
    Parse an ISO date or datetime query value into a naive UTC datetime.

    A bare date (YYYY-MM-DD) means the start of that day, or its last
    microsecond when `end_of_day` is set, so `endDate=2024-01-31` includes
    the whole of the 31st.

    Raises:
        ValidationError(400) if the value is not ISO 8601
    """
    if not value:
        return None
    try:
        if len(value) == 10:
            day = date.fromisoformat(value)
            return datetime.combine(day, time.max if end_of_day else time.min)
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"Invalid date: {value}", field=field)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def validate_date_range(start: Optional[datetime], end: Optional[datetime]) -> None:
    if start and end and start > end:
        raise ValidationError("startDate must not be after endDate", field="startDate")


def date_range_query(
    start_date: Optional[str] = Query(None, alias="startDate", description="ISO date or datetime"),
    end_date: Optional[str] = Query(None, alias="endDate", description="ISO date or datetime"),
) -> tuple[Optional[datetime], Optional[datetime]]:
    """FastAPI dependency for an optional [startDate, endDate] window."""
    start = parse_date_bound(start_date, field="startDate")
    end = parse_date_bound(end_date, field="endDate", end_of_day=True)
    validate_date_range(start, end)
    return start, end
