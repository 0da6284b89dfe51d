"""Per-member workload: daily utilization and range snapshots over the ledger."""

import logging
from typing import Dict, Iterable, List, Optional

from models.member import Member
from models.calendar import DateRange
from models.conflict import Conflict
from models.workload import DailyUtilization, WorkloadSnapshot, WorkloadStatus
from models.errors import InvalidCapacityConfig
from engine.capacity import capacity_on, capacity_for
from engine.classifier import classify
from engine.ledger import AllocationLedger

logger = logging.getLogger(__name__)


def member_daily_utilization(
    member: Member,
    ledger: AllocationLedger,
    date_range: DateRange,
    rule_config: Optional[dict] = None,
) -> List[DailyUtilization]:
    """Classify every day of the range for one member."""
    totals = ledger.totals_by_member_day(member.member_id, date_range)
    results = []
    for day, t in totals.items():
        working = member.works_on(day)
        capacity = capacity_on(member, day)
        result = classify(t.allocated, t.logged, capacity, is_working_day=working, rule_config=rule_config)
        results.append(DailyUtilization(
            member_id=member.member_id,
            date=day,
            capacity_hours=capacity,
            allocated_hours=t.allocated,
            logged_hours=t.logged,
            utilization_percent=result.utilization_percent,
            status=result.status,
            is_working_day=working,
        ))
    return results


def workload_snapshot(
    member: Member,
    ledger: AllocationLedger,
    date_range: DateRange,
    rule_config: Optional[dict] = None,
) -> WorkloadSnapshot:
    """Aggregate workload for one member over a range.

    Reported totals are raw (hours on non-working days included); utilization
    only counts hours recorded on the member's working days.
    """
    capacity = capacity_for(member, date_range)
    totals = ledger.totals_by_member_day(member.member_id, date_range)

    raw_allocated = sum(t.allocated for t in totals.values())
    raw_logged = sum(t.logged for t in totals.values())
    working_allocated = sum(t.allocated for d, t in totals.items() if member.works_on(d))
    working_logged = sum(t.logged for d, t in totals.items() if member.works_on(d))

    result = classify(working_allocated, working_logged, capacity, rule_config=rule_config)
    projects = ledger.project_ids_for(member.member_id, date_range)

    return WorkloadSnapshot(
        member_id=member.member_id,
        name=member.name,
        total_capacity_hours=capacity,
        total_allocated_hours=raw_allocated,
        total_logged_hours=raw_logged,
        utilization_percent=result.utilization_percent,
        status=result.status,
        project_count=len(projects),
        available_hours=max(0.0, capacity - working_allocated),
    )


def unschedulable_snapshot(
    member: Member,
    ledger: AllocationLedger,
    date_range: DateRange,
) -> WorkloadSnapshot:
    """Zero-capacity snapshot for a member whose capacity settings are invalid."""
    totals = ledger.totals_by_member_day(member.member_id, date_range)
    return WorkloadSnapshot(
        member_id=member.member_id,
        name=member.name,
        total_capacity_hours=0.0,
        total_allocated_hours=sum(t.allocated for t in totals.values()),
        total_logged_hours=sum(t.logged for t in totals.values()),
        utilization_percent=0.0,
        status=WorkloadStatus.AVAILABLE,
        project_count=len(ledger.project_ids_for(member.member_id, date_range)),
        available_hours=0.0,
    )


def workload_snapshots(
    ledger: AllocationLedger,
    date_range: DateRange,
    member_ids: Optional[Iterable[str]] = None,
    conflicts: Optional[List[Conflict]] = None,
    rule_config: Optional[dict] = None,
) -> List[WorkloadSnapshot]:
    """Snapshots for every member (or the given ones), ordered by member id.

    When conflicts are supplied, each snapshot carries the ones for its member.
    A member with invalid capacity settings is reported at zero capacity
    instead of failing the whole team.
    """
    scope = set(member_ids) if member_ids is not None else None
    by_member: Dict[str, List[Conflict]] = {}
    for c in conflicts or []:
        by_member.setdefault(c.member_id, []).append(c)

    snapshots = []
    for member in ledger.members:
        if scope is not None and member.member_id not in scope:
            continue
        try:
            snap = workload_snapshot(member, ledger, date_range, rule_config)
        except InvalidCapacityConfig as exc:
            logger.warning("%s; reporting zero capacity", exc)
            snap = unschedulable_snapshot(member, ledger, date_range)
        snap.conflicts = by_member.get(member.member_id, [])
        snapshots.append(snap)
    return snapshots
