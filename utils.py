"""
Utility helpers for timestamps and booking fields.
"""
from datetime import datetime
import pytz

UTC = pytz.UTC


def now_utc() -> datetime:
    """Current time as an aware UTC datetime"""
    return datetime.now(UTC)


def isoformat_utc(dt: datetime) -> str:
    """Render as ISO-8601 UTC with millisecond precision, e.g. 2026-01-05T09:00:00.000Z"""
    if dt.tzinfo is None:
        dt = UTC.localize(dt)
    dt = dt.astimezone(UTC)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def normalize_email(email: str) -> str:
    return email.lower()
