from models.member import Member
from models.project import Project
from models.calendar import CalendarDay, DateRange
from models.allocation import Allocation, Commitment
from models.workload import (
    CapacityReport, DailyUtilization, DayTotals, UtilizationResult, WorkloadSnapshot, WorkloadStatus,
)
from models.conflict import Conflict, ConflictKind, ConflictSeverity
from models.rebalance import (
    AllocationDelta, MemberRebalanceSummary, RebalanceOptions, RebalancePlan, UnresolvedOverallocation,
)
from models.errors import (
    InvalidAllocation, InvalidCapacityConfig, RebalanceNonConvergence, SchedulingError,
)
