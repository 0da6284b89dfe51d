"""Team capacity roll-ups and tabular exports."""

from typing import List, Optional

import pandas as pd

from models.calendar import DateRange
from models.conflict import Conflict
from models.rebalance import RebalancePlan
from models.workload import CapacityReport, WorkloadSnapshot, WorkloadStatus
from engine.classifier import classify
from engine.ledger import AllocationLedger
from engine.workload import member_daily_utilization


def aggregate(snapshots: List[WorkloadSnapshot]) -> CapacityReport:
    """Roll member snapshots up into team-level counts and mean utilization.

    Members with zero capacity are counted in zero_capacity_count and left
    out of the mean.
    """
    counts = {status: 0 for status in WorkloadStatus}
    for s in snapshots:
        counts[s.status] += 1

    with_capacity = [s for s in snapshots if s.total_capacity_hours > 0]
    if with_capacity:
        average = sum(s.utilization_percent for s in with_capacity) / len(with_capacity)
    else:
        average = 0.0

    return CapacityReport(
        total_members=len(snapshots),
        overallocated_count=counts[WorkloadStatus.OVERALLOCATED],
        fully_allocated_count=counts[WorkloadStatus.FULLY_ALLOCATED],
        normal_count=counts[WorkloadStatus.NORMAL],
        available_count=counts[WorkloadStatus.AVAILABLE],
        average_utilization=average,
        zero_capacity_count=len(snapshots) - len(with_capacity),
        total_capacity_hours=sum(s.total_capacity_hours for s in snapshots),
        total_allocated_hours=sum(s.total_allocated_hours for s in snapshots),
    )


def utilization_analytics(
    ledger: AllocationLedger,
    date_range: DateRange,
    member_ids: Optional[List[str]] = None,
    rule_config: Optional[dict] = None,
) -> pd.DataFrame:
    """Team utilization per day across the range.

    Returns a DataFrame with: date, capacity_hours, allocated_hours,
    logged_hours, utilization_percent, status, overallocated_members.
    Only working-day hours count toward capacity and load.
    """
    scope = set(member_ids) if member_ids is not None else None
    rows = []
    for member in ledger.members:
        if scope is not None and member.member_id not in scope:
            continue
        for d in member_daily_utilization(member, ledger, date_range, rule_config):
            rows.append({
                "date": d.date,
                "capacity_hours": d.capacity_hours,
                "allocated_hours": d.allocated_hours if d.is_working_day else 0.0,
                "logged_hours": d.logged_hours if d.is_working_day else 0.0,
                "overallocated": d.status == WorkloadStatus.OVERALLOCATED,
            })

    columns = ["date", "capacity_hours", "allocated_hours", "logged_hours",
               "utilization_percent", "status", "overallocated_members"]
    if not rows:
        return pd.DataFrame(columns=columns)

    daily = (
        pd.DataFrame(rows)
        .groupby("date", as_index=False)
        .agg(
            capacity_hours=("capacity_hours", "sum"),
            allocated_hours=("allocated_hours", "sum"),
            logged_hours=("logged_hours", "sum"),
            overallocated_members=("overallocated", "sum"),
        )
    )
    results = [
        classify(alloc, logged, cap, rule_config=rule_config)
        for alloc, logged, cap in zip(daily["allocated_hours"], daily["logged_hours"], daily["capacity_hours"])
    ]
    daily["utilization_percent"] = [r.utilization_percent for r in results]
    daily["status"] = [r.status.value for r in results]
    daily["overallocated_members"] = daily["overallocated_members"].astype(int)
    return daily[columns]


def snapshots_to_frame(snapshots: List[WorkloadSnapshot]) -> pd.DataFrame:
    """Workload table, one row per member."""
    return pd.DataFrame([{
        "Member ID": s.member_id,
        "Member": s.name,
        "Capacity (h)": s.total_capacity_hours,
        "Allocated (h)": s.total_allocated_hours,
        "Logged (h)": s.total_logged_hours,
        "Available (h)": s.available_hours,
        "Utilization (%)": round(s.utilization_percent, 1),
        "Status": s.status.value,
        "Projects": s.project_count,
        "Conflicts": len(s.conflicts),
    } for s in snapshots])


def conflicts_to_frame(conflicts: List[Conflict]) -> pd.DataFrame:
    return pd.DataFrame([{
        "Kind": c.kind.value,
        "Severity": c.severity.value,
        "Member ID": c.member_id,
        "Start": c.start,
        "End": c.end,
        "Projects": ", ".join(c.project_ids),
        "Message": c.message,
    } for c in conflicts])


def plan_to_frame(plan: RebalancePlan) -> pd.DataFrame:
    """Before/after comparison of every allocation the plan changes."""
    return pd.DataFrame([{
        "Member ID": d.member_id,
        "Project ID": d.project_id,
        "Date": d.date,
        "Before (h)": d.before_hours,
        "After (h)": d.after_hours,
        "Change (h)": d.delta,
    } for d in plan.deltas])


def report_to_dict(report: CapacityReport) -> dict:
    return {
        "totalMembers": report.total_members,
        "overallocatedCount": report.overallocated_count,
        "fullyAllocatedCount": report.fully_allocated_count,
        "normalCount": report.normal_count,
        "availableCount": report.available_count,
        "averageUtilization": report.average_utilization,
        "zeroCapacityCount": report.zero_capacity_count,
        "totalCapacityHours": report.total_capacity_hours,
        "totalAllocatedHours": report.total_allocated_hours,
    }
