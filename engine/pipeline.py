"""Workload pipeline: calendar, snapshots, conflicts and report in one pass."""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

from models.calendar import CalendarDay, DateRange
from models.conflict import Conflict, ConflictKind
from models.rebalance import RebalanceOptions, RebalancePlan
from models.workload import CapacityReport, WorkloadSnapshot
from engine.calendar_generator import generate_range_calendar, group_by_month, resolve_range
from engine.conflicts import detect_ledger_conflicts, summarize_conflicts
from engine.explainer import explain_plan, explain_unresolved
from engine.ledger import AllocationLedger
from engine.rebalancer import commit_plan, rebalance
from engine.report import aggregate
from engine.workload import workload_snapshots
from config.defaults import DEFAULT_CALENDAR_TYPE

logger = logging.getLogger(__name__)


@dataclass
class WorkloadView:
    date_range: DateRange
    calendar: List[CalendarDay]
    months: List[Dict]
    snapshots: List[WorkloadSnapshot]
    conflicts: List[Conflict]
    conflict_summary: dict
    report: CapacityReport


@dataclass
class RebalanceOutcome:
    plan: RebalancePlan
    remaining_conflicts: List[Conflict] = field(default_factory=list)
    committed: bool = False

    @property
    def resolved(self) -> bool:
        """True when no overallocation conflict is left after the plan."""
        return not any(c.kind == ConflictKind.OVERALLOCATION for c in self.remaining_conflicts)

    def explain(self) -> List[str]:
        unresolved = [
            explain_unresolved(u.member_id, u.date, u.excess_hours, u.reason)
            for u in self.plan.unresolved
        ]
        return explain_plan(self.plan.moves, unresolved, self.plan.converged)


def run_workload_view(
    ledger: AllocationLedger,
    anchor: date,
    range_type: str = DEFAULT_CALENDAR_TYPE,
    today: Optional[date] = None,
    member_ids: Optional[List[str]] = None,
    rule_config: Optional[dict] = None,
) -> WorkloadView:
    """Compute everything a schedule screen shows for one calendar window."""
    date_range = resolve_range(anchor, range_type)
    calendar = generate_range_calendar(date_range, today)

    conflicts = detect_ledger_conflicts(ledger, date_range, rule_config)
    if member_ids is not None:
        scope = set(member_ids)
        conflicts = [c for c in conflicts if c.member_id in scope]

    snapshots = workload_snapshots(ledger, date_range, member_ids, conflicts, rule_config)
    report = aggregate(snapshots)

    logger.info(
        "Workload view %s..%s: %d members, %d conflicts, avg utilization %.1f%%",
        date_range.start, date_range.end, report.total_members, len(conflicts), report.average_utilization,
    )
    return WorkloadView(
        date_range=date_range,
        calendar=calendar,
        months=group_by_month(calendar),
        snapshots=snapshots,
        conflicts=conflicts,
        conflict_summary=summarize_conflicts(conflicts),
        report=report,
    )


def run_rebalance(
    ledger: AllocationLedger,
    options: Optional[RebalanceOptions] = None,
    commit: bool = False,
    rule_config: Optional[dict] = None,
) -> RebalanceOutcome:
    """Build a plan, apply it to a copy of the ledger and re-run detection.

    With commit=True the plan is also written to the given ledger.
    """
    plan = rebalance(ledger, options, rule_config)

    trial = ledger.snapshot()
    commit_plan(trial, plan)
    scope = None
    if options is not None and options.scope_member_ids is not None:
        scope = set(options.scope_member_ids)
    remaining = [
        c for c in detect_ledger_conflicts(trial, rule_config=rule_config)
        if scope is None or c.member_id in scope
    ]

    if commit:
        commit_plan(ledger, plan)
    return RebalanceOutcome(plan=plan, remaining_conflicts=remaining, committed=commit)


def compare_snapshots(
    before: List[WorkloadSnapshot],
    after: List[WorkloadSnapshot],
) -> List[dict]:
    """Per-member utilization differences between two sets of snapshots."""
    a_map = {s.member_id: s for s in before}
    b_map = {s.member_id: s for s in after}

    diffs = []
    for member_id in sorted(set(a_map) | set(b_map)):
        a = a_map.get(member_id)
        b = b_map.get(member_id)
        diffs.append({
            "Member ID": member_id,
            "Before %": round(a.utilization_percent, 1) if a else None,
            "After %": round(b.utilization_percent, 1) if b else None,
            "Before Status": a.status.value if a else "N/A",
            "After Status": b.status.value if b else "N/A",
            "Hours Change": (b.total_allocated_hours if b else 0) - (a.total_allocated_hours if a else 0),
        })
    return diffs
