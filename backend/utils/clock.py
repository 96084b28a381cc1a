"""
Time helpers.

The database stores naive UTC timestamps; everything that writes a timestamp
goes through utcnow() so the convention lives in one place.
"""
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_gateway_time(value: str | None) -> datetime | None:
    """Parse a gateway timestamp such as '2024-05-01 10:15:00'; None if absent or malformed."""
    if not value:
        return None
    for fmt in ("%Y-%m-%d %H:%M:%S", "%Y-%m-%dT%H:%M:%S"):
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None
