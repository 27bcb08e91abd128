"""Pure formatting functions for display output."""

from datetime import datetime


def format_relative_time(dt: datetime, now: datetime | None = None) -> str:
    """Format a naive local datetime as relative time.

    Returns:
        Formatted time string (e.g., "2h ago", "1w ago", "3mo ago", "1y ago").
    """
    now = now or datetime.now()
    time_diff = now - dt

    if time_diff.days < 0:
        return "in the future"
    if time_diff.days == 0:
        if time_diff.seconds < 60:
            return "just now"
        elif time_diff.seconds < 3600:
            return f"{time_diff.seconds // 60}m ago"
        else:
            return f"{time_diff.seconds // 3600}h ago"
    elif time_diff.days < 7:
        return f"{time_diff.days}d ago"
    elif time_diff.days < 30:
        return f"{time_diff.days // 7}w ago"
    elif time_diff.days < 365:
        return f"{time_diff.days // 30}mo ago"
    else:
        return f"{time_diff.days // 365}y ago"


def format_file_size(size_bytes: int) -> str:
    """Format file size in human-readable format (e.g., "1.5KB", "2.3MB")."""
    size = float(size_bytes)
    for unit in ["B", "KB", "MB", "GB"]:
        if size < 1024.0:
            return f"{size:.1f}{unit}"
        size /= 1024.0
    return f"{size:.1f}TB"


def format_time_range(start: datetime | None, end: datetime | None) -> str:
    """Format an entry's time range like "08:00–12:00".

    An end on a later day is shown with its date.
    """
    if start is None:
        return ""
    text = start.strftime("%H:%M")
    if end is None or end == start:
        return text
    if end.date() != start.date():
        return f"{text}–{end.strftime('%a %H:%M')}"
    return f"{text}–{end.strftime('%H:%M')}"


def format_reminder(minutes: int | None) -> str:
    """Format a reminder lead time like "15m" or "1h 30m"."""
    if not minutes:
        return ""
    hours, mins = divmod(minutes, 60)
    if hours and mins:
        return f"{hours}h {mins}m"
    if hours:
        return f"{hours}h"
    return f"{mins}m"
