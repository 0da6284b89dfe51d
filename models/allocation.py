from dataclasses import dataclass
from datetime import date
from typing import Optional, Tuple

from models.calendar import DateRange


@dataclass(frozen=True)
class Allocation:
    member_id: str
    project_id: str
    date: date
    allocated_hours: float      # planned commitment
    logged_hours: float = 0.0   # actual time recorded

    @property
    def key(self) -> Tuple[str, str, date]:
        return (self.member_id, self.project_id, self.date)

    @property
    def total_hours(self) -> float:
        return self.allocated_hours + self.logged_hours


@dataclass(frozen=True)
class Commitment:
    """A member's commitment to a project across an explicit date range."""
    member_id: str
    project_id: str
    start: date
    end: date
    hours_per_day: float

    @property
    def key(self) -> Tuple[str, str]:
        """One commitment per member and project; a new range replaces the old one."""
        return (self.member_id, self.project_id)

    @property
    def date_range(self) -> DateRange:
        return DateRange(self.start, self.end, "day")

    def overlap(self, other: "Commitment") -> Optional[DateRange]:
        """Intersecting days with another commitment, or None."""
        return self.date_range.intersection(other.date_range)
