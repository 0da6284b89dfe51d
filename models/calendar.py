from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterator, Optional


@dataclass(frozen=True)
class DateRange:
    """Inclusive day-level range. range_type controls calendar granularity."""
    start: date
    end: date
    range_type: str = "day"  # "day", "week", "month"

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(f"DateRange start {self.start} is after end {self.end}")

    @property
    def num_days(self) -> int:
        return (self.end - self.start).days + 1

    def days(self) -> Iterator[date]:
        for offset in range(self.num_days):
            yield self.start + timedelta(days=offset)

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def intersection(self, other: "DateRange") -> Optional["DateRange"]:
        start = max(self.start, other.start)
        end = min(self.end, other.end)
        if start > end:
            return None
        return DateRange(start, end, "day")


@dataclass(frozen=True)
class CalendarDay:
    date: date
    is_weekend: bool
    is_today: bool
    display_label: str  # e.g. "Mon, Oct 19"
