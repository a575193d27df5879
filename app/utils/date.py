"""Date formatting helpers for post metadata."""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Union

DateInput = Union[str, datetime]


@dataclass(frozen=True)
class TimeAgoLabels:
    """Caller-supplied suffixes; the count is prefixed to the unit labels."""
    just_now: str = "just now"
    minutes_ago: str = "m ago"
    hours_ago: str = "h ago"
    days_ago: str = "d ago"


def _parse(value: DateInput) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_date(value: DateInput) -> str:
    """Long form, e.g. 'January 5, 2024'."""
    parsed = _parse(value)
    return f"{parsed.strftime('%B')} {parsed.day}, {parsed.year}"


def format_date_short(value: DateInput) -> str:
    """Short form, e.g. 'Jan 5, 2024'."""
    parsed = _parse(value)
    return f"{parsed.strftime('%b')} {parsed.day}, {parsed.year}"


def get_time_ago(
    value: DateInput,
    now: Optional[datetime] = None,
    labels: Optional[TimeAgoLabels] = None,
) -> str:
    """Relative age for recent dates, falling back to format_date after a week."""
    labels = labels or TimeAgoLabels()
    now = _parse(now) if now is not None else datetime.now(timezone.utc)
    seconds = int((now - _parse(value)).total_seconds())

    if seconds < 60:
        return labels.just_now
    if seconds < 3600:
        return f"{seconds // 60}{labels.minutes_ago}"
    if seconds < 86400:
        return f"{seconds // 3600}{labels.hours_ago}"
    if seconds < 604800:
        return f"{seconds // 86400}{labels.days_ago}"
    return format_date(value)
