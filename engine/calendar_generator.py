"""Calendar generation: the raw date axis shared by every member."""

import calendar
from datetime import date, timedelta
from typing import Dict, List, Optional

from models.calendar import CalendarDay, DateRange
from config.defaults import CALENDAR_TYPES, WEEKEND_DAYS


def resolve_range(anchor: date, range_type: str) -> DateRange:
    """Window of days a calendar of the given type covers around anchor.

    "day" is the anchor itself, "week" the Monday-Sunday week containing it,
    "month" the full calendar month containing it.
    """
    if range_type not in CALENDAR_TYPES:
        raise ValueError(f"Unsupported calendar type: {range_type}. Use one of {CALENDAR_TYPES}.")

    if range_type == "day":
        return DateRange(anchor, anchor, "day")
    if range_type == "week":
        start = anchor - timedelta(days=anchor.weekday())
        return DateRange(start, start + timedelta(days=6), "week")

    last_day = calendar.monthrange(anchor.year, anchor.month)[1]
    return DateRange(
        anchor.replace(day=1),
        anchor.replace(day=last_day),
        "month",
    )


def format_day_label(day: date) -> str:
    return f"{day.strftime('%a')}, {day.strftime('%b')} {day.day}"


def build_calendar_day(day: date, today: date) -> CalendarDay:
    return CalendarDay(
        date=day,
        is_weekend=day.weekday() in WEEKEND_DAYS,
        is_today=day == today,
        display_label=format_day_label(day),
    )


def generate_calendar(
    anchor: date,
    range_type: str,
    today: Optional[date] = None,
) -> List[CalendarDay]:
    """Ordered calendar days for the window of range_type containing anchor.

    Weekend flags are the global Saturday/Sunday ones; per-member working days
    are applied by the capacity model on top of this list.
    """
    today = today or date.today()
    date_range = resolve_range(anchor, range_type)
    return [build_calendar_day(d, today) for d in date_range.days()]


def generate_range_calendar(date_range: DateRange, today: Optional[date] = None) -> List[CalendarDay]:
    """Calendar days for an arbitrary inclusive range."""
    today = today or date.today()
    return [build_calendar_day(d, today) for d in date_range.days()]


def group_by_month(days: List[CalendarDay]) -> List[Dict]:
    """Group calendar days into month buckets for timeline headers.

    Returns list of dicts with: month (e.g. "October 2026"), days.
    """
    groups: List[Dict] = []
    for day in days:
        month_label = day.date.strftime("%B %Y")
        if not groups or groups[-1]["month"] != month_label:
            groups.append({"month": month_label, "days": []})
        groups[-1]["days"].append(day)
    return groups


def today_index(days: List[CalendarDay]) -> Optional[int]:
    """Position of today in the sequence, or None if today is outside it."""
    for i, day in enumerate(days):
        if day.is_today:
            return i
    return None
