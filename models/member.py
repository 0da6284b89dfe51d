from dataclasses import dataclass, field
from datetime import date
from typing import FrozenSet

from config.defaults import DEFAULT_WORKING_HOURS_PER_DAY, DEFAULT_WORKING_DAYS


@dataclass
class Member:
    member_id: str
    name: str
    working_hours_per_day: float = DEFAULT_WORKING_HOURS_PER_DAY
    working_days: FrozenSet[int] = field(default_factory=lambda: DEFAULT_WORKING_DAYS)  # date.weekday() numbers

    def __post_init__(self):
        self.working_days = frozenset(self.working_days)

    def works_on(self, day: date) -> bool:
        return day.weekday() in self.working_days
