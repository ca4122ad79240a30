"""Calendar-day helpers shared by the index and the matcher."""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import Optional

import pandas as pd


_ISO_DAY = re.compile(r"\d{4}-\d{2}-\d{2}")


def calendar_key(value: object) -> Optional[str]:
    """Return the ``YYYY-MM-DD`` key for a date-like value, or None if malformed.

    Strings are cut at the first ``T`` or space so time-of-day and zone
    suffixes never shift the calendar day.
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str):
        return None

    head = value.strip().split("T", 1)[0].split(" ", 1)[0]
    if not _ISO_DAY.fullmatch(head):
        return None
    try:
        return date.fromisoformat(head).isoformat()
    except ValueError:
        return None


def add_days(day: date, days: int) -> date:
    return day + timedelta(days=days)


def add_months(day: date, months: int) -> date:
    """Shift by whole months, clamping to the last day of shorter months."""
    return (pd.Timestamp(day) + pd.DateOffset(months=months)).date()


def horizon_end(today: date, leg_count: int, months: int) -> date:
    return add_days(add_months(today, months), leg_count)


def horizon_days(today: date, leg_count: int, months: int) -> list[date]:
    """Every calendar day from ``today`` through the horizon end, inclusive."""
    end = horizon_end(today, leg_count, months)
    stamps = pd.date_range(start=pd.Timestamp(today), end=pd.Timestamp(end), freq="D")
    return [stamp.date() for stamp in stamps]
