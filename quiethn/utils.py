from __future__ import annotations

import email.utils as email_utils
from datetime import datetime, timezone


def ensure_utc(dt: datetime) -> datetime:
    """
    Return a timezone aware datetime in UTC.

    The RSS specification recommends RFC 2822 dates in GMT.
    To keep things predictable we always normalise to UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_rfc2822(dt: datetime) -> str:
    """
    Format a datetime in RFC 2822 format for RSS pubDate / lastBuildDate.

    Example: Tue, 03 Jun 2003 09:39:21 GMT
    """
    dt_utc = ensure_utc(dt)
    # email.utils.format_datetime knows how to format in RFC 2822
    return email_utils.format_datetime(dt_utc)


def humanize_age(dt: datetime, now: datetime) -> str:
    """
    Describe how long ago `dt` was, the way the HN front page does.

    Example: "5 minutes ago", "1 hour ago", "3 days ago"
    """
    seconds = max(0, int((ensure_utc(now) - ensure_utc(dt)).total_seconds()))
    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= size:
            amount = seconds // size
            return f"{amount} {unit}{'s' if amount != 1 else ''} ago"
    return "just now"
