from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from config.defaults import (
    DEFAULT_REBALANCE_STRATEGY, DEFAULT_MAX_UTILIZATION, MAX_REBALANCE_ITERATIONS,
)
from models.errors import RebalanceNonConvergence
from models.workload import WorkloadStatus


@dataclass
class RebalanceOptions:
    strategy: str = DEFAULT_REBALANCE_STRATEGY   # "even", "skills", "priority"
    max_utilization: float = DEFAULT_MAX_UTILIZATION
    scope_member_ids: Optional[List[str]] = None  # None = every member
    max_iterations: int = MAX_REBALANCE_ITERATIONS


@dataclass(frozen=True)
class AllocationDelta:
    member_id: str
    project_id: str
    date: date
    before_hours: float
    after_hours: float

    @property
    def delta(self) -> float:
        return self.after_hours - self.before_hours


@dataclass
class MemberRebalanceSummary:
    member_id: str
    before_percent: float
    after_percent: float
    before_status: WorkloadStatus
    after_status: WorkloadStatus


@dataclass
class UnresolvedOverallocation:
    member_id: str
    date: date
    excess_hours: float
    reason: str  # "no_eligible_receiver", "iteration_cap"


@dataclass
class RebalancePlan:
    strategy: str
    max_utilization: float
    deltas: List[AllocationDelta] = field(default_factory=list)
    member_summaries: List[MemberRebalanceSummary] = field(default_factory=list)
    unresolved: List[UnresolvedOverallocation] = field(default_factory=list)
    moves: List[str] = field(default_factory=list)  # human-readable move log
    iterations: int = 0
    converged: bool = True
    non_convergence: Optional[RebalanceNonConvergence] = None

    @property
    def unresolved_overallocation(self) -> float:
        """Total hours still above the utilization limit."""
        return sum(u.excess_hours for u in self.unresolved)

    @property
    def is_empty(self) -> bool:
        return not self.deltas
