"""
TIME FORMATTING UTILITY
=======================

Readable timestamps for the session browser, the diary view and the exported
diary file, plus the export file name. Stored timestamps are UTC; naive values
(SQLite drops the offset) are treated as UTC and shown in local time.
"""

import datetime
from typing import Optional


def to_local(value: datetime.datetime) -> datetime.datetime:
    """Convert a stored timestamp to local time."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=datetime.timezone.utc)
    return value.astimezone()


def _hour_12(value: datetime.datetime) -> int:
    return value.hour % 12 or 12


def format_session_date(value: datetime.datetime) -> str:
    """e.g. Oct 18, 2026"""
    local = to_local(value)
    return f"{local.strftime('%b')} {local.day}, {local.year}"


def format_diary_timestamp(value: datetime.datetime) -> str:
    """e.g. Sunday, October 18, 2026 at 09:05 AM"""
    local = to_local(value)
    return (
        f"{local.strftime('%A')}, {local.strftime('%B')} {local.day}, {local.year} "
        f"at {_hour_12(local):02d}:{local.strftime('%M')} {local.strftime('%p')}"
    )


def format_export_timestamp(value: datetime.datetime) -> str:
    """Date and time line of one exported entry, e.g. 10/18/2026 9:05:33 AM"""
    local = to_local(value)
    return (
        f"{local.month}/{local.day}/{local.year} "
        f"{_hour_12(local)}:{local.strftime('%M')}:{local.strftime('%S')} {local.strftime('%p')}"
    )


def export_filename(today: Optional[datetime.date] = None) -> str:
    """my_diary_<ISO date>.txt for today (UTC date, like an ISO timestamp's date part)."""
    today = today or datetime.datetime.now(datetime.timezone.utc).date()
    return f"my_diary_{today.isoformat()}.txt"
