from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional, Tuple


class ConflictKind(str, Enum):
    OVERALLOCATION = "overallocation"
    SCHEDULE_OVERLAP = "schedule-overlap"


class ConflictSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return {"low": 0, "medium": 1, "high": 2}[self.value]


@dataclass(frozen=True)
class Conflict:
    kind: ConflictKind
    member_id: str
    start: date
    end: date
    severity: ConflictSeverity
    message: str
    utilization_percent: Optional[float] = None
    project_ids: Tuple[str, ...] = ()

    @property
    def is_single_day(self) -> bool:
        return self.start == self.end
