# src/mdscope/utils/formatting.py
import re
from datetime import datetime, timezone
from typing import List, Optional, Union

_DIGITS = re.compile(r"(\d+)")


def natural_key(text: str) -> List[Union[int, str]]:
    """
    Sort key comparing digit runs numerically and the rest case-insensitively,
    so 'note2.md' sorts before 'note10.md'.
    """
    parts = _DIGITS.split(text.casefold())
    # Keep int/str positions aligned: split() always puts digit runs at odd indexes
    return [int(p) if i % 2 else p for i, p in enumerate(parts)]


def format_size(num_bytes: int) -> str:
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 ** 2:
        return f"{num_bytes / 1024:.1f} KB"
    if num_bytes < 1024 ** 3:
        return f"{num_bytes / 1024 ** 2:.1f} MB"
    return f"{num_bytes / 1024 ** 3:.1f} GB"


def format_time_ago(when: datetime, now: Optional[datetime] = None) -> str:
    """Human-friendly relative time, e.g. '3 mins ago' or 'last week'."""
    now = now or datetime.now(timezone.utc)
    seconds = int((now - when).total_seconds())

    if seconds < 60:
        return "just now"
    minutes = seconds // 60
    if minutes < 60:
        return "1 min ago" if minutes == 1 else f"{minutes} mins ago"
    hours = minutes // 60
    if hours < 24:
        return "1 hour ago" if hours == 1 else f"{hours} hours ago"
    days = hours // 24
    if days < 7:
        return "yesterday" if days == 1 else f"{days} days ago"
    weeks = days // 7
    if weeks < 4:
        return "last week" if weeks == 1 else f"{weeks} weeks ago"
    months = max(1, days // 30)
    if months < 12:
        return "last month" if months == 1 else f"{months} months ago"
    years = days // 365
    return "last year" if years == 1 else f"{years} years ago"
