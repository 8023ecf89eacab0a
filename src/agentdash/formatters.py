"""
Pure formatting functions for display.

These convert timestamps, commit ids and counts into short human-readable
strings. No domain logic lives here.
"""

from datetime import datetime, timezone
from typing import Optional

from .session_index import parse_timestamp

COMMIT_ID_LENGTH = 7


def format_timestamp(value: Optional[str], now: Optional[datetime] = None) -> str:
    """Format an ISO-8601 timestamp as a relative age.

    Args:
        value: Timestamp string (a trailing "Z" is accepted)
        now: Reference time (defaults to the current UTC time)

    Returns:
        "just now", "5m ago", "3h ago", "2d ago", "1w ago", "4mo ago",
        or "unknown" when the value is missing or unparseable. Future
        timestamps clamp to "just now".
    """
    return format_age(parse_timestamp(value), now)


def format_age(millis: int, now: Optional[datetime] = None) -> str:
    """Same as format_timestamp() for an epoch-milliseconds value (0 = unknown)."""
    if not millis:
        return "unknown"
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    diff_minutes = max(int((now.timestamp() * 1000 - millis) // 60000), 0)
    if diff_minutes < 1:
        return "just now"
    if diff_minutes < 60:
        return f"{diff_minutes}m ago"
    diff_hours = diff_minutes // 60
    if diff_hours < 24:
        return f"{diff_hours}h ago"
    diff_days = diff_hours // 24
    if diff_days < 7:
        return f"{diff_days}d ago"
    diff_weeks = diff_days // 7
    if diff_weeks < 4:
        return f"{diff_weeks}w ago"
    # 28 and 29 days are four weeks but less than one 30-day month
    return f"{max(diff_days // 30, 1)}mo ago"


def format_commit_id(commit_id: Optional[str]) -> str:
    """Shorten a commit hash to its conventional 7-character prefix."""
    if not commit_id:
        return ""
    return commit_id.strip()[:COMMIT_ID_LENGTH]


def format_line_stats(additions: int, deletions: int) -> str:
    """Format added/removed line counts, e.g. "+12 -3"."""
    return f"+{additions} -{deletions}"


def pluralize(count: int, singular: str, plural: Optional[str] = None) -> str:
    """Return "1 file" / "3 files" style counts."""
    word = singular if count == 1 else (plural or f"{singular}s")
    return f"{count} {word}"


def truncate(text: str, width: int) -> str:
    """Collapse whitespace and cut text to width, ending with an ellipsis."""
    flat = " ".join((text or "").split())
    if width <= 0:
        return ""
    if len(flat) <= width:
        return flat
    if width == 1:
        return "…"
    return flat[: width - 1].rstrip() + "…"
