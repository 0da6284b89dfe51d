from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List


class WorkloadStatus(str, Enum):
    AVAILABLE = "available"
    NORMAL = "normal"
    FULLY_ALLOCATED = "fully-allocated"
    OVERALLOCATED = "overallocated"

    @property
    def rank(self) -> int:
        """Band order, lowest load first."""
        return _STATUS_RANK[self]


_STATUS_RANK = {
    WorkloadStatus.AVAILABLE: 0,
    WorkloadStatus.NORMAL: 1,
    WorkloadStatus.FULLY_ALLOCATED: 2,
    WorkloadStatus.OVERALLOCATED: 3,
}


@dataclass(frozen=True)
class UtilizationResult:
    utilization_percent: float
    status: WorkloadStatus


@dataclass
class DayTotals:
    allocated: float = 0.0
    logged: float = 0.0


@dataclass
class DailyUtilization:
    member_id: str
    date: date
    capacity_hours: float
    allocated_hours: float
    logged_hours: float
    utilization_percent: float
    status: WorkloadStatus
    is_working_day: bool


@dataclass
class WorkloadSnapshot:
    member_id: str
    total_capacity_hours: float
    total_allocated_hours: float
    total_logged_hours: float
    utilization_percent: float
    status: WorkloadStatus
    project_count: int
    available_hours: float = 0.0   # capacity left after working-day commitments
    name: str = ""
    conflicts: List = field(default_factory=list)


@dataclass
class CapacityReport:
    total_members: int
    overallocated_count: int
    fully_allocated_count: int
    normal_count: int
    available_count: int
    average_utilization: float
    zero_capacity_count: int = 0
    total_capacity_hours: float = 0.0
    total_allocated_hours: float = 0.0
