"""Conflict detection: overallocated days and overlapping range commitments.

Results are fully ordered (severity desc, date asc, then member, kind and
projects) so repeated runs on the same ledger snapshot return identical lists.
"""

import logging
from collections import Counter
from datetime import date
from itertools import combinations
from typing import Dict, Iterable, List, Optional, Tuple

from models.member import Member
from models.allocation import Allocation, Commitment
from models.conflict import Conflict, ConflictKind, ConflictSeverity
from models.workload import WorkloadStatus
from engine.capacity import capacity_on
from engine.classifier import classify
from engine.explainer import explain_overallocation, explain_overlap
from config.defaults import OVERALLOCATION_HIGH_PCT, HOURS_EPSILON

logger = logging.getLogger(__name__)


def overallocation_severity(utilization_percent: float, rule_config: Optional[dict] = None) -> ConflictSeverity:
    """100-120% is medium, anything above the high band is high."""
    cfg = rule_config or {}
    high_band = cfg.get("overallocation_high_pct", OVERALLOCATION_HIGH_PCT)
    if utilization_percent > high_band:
        return ConflictSeverity.HIGH
    return ConflictSeverity.MEDIUM


def conflict_sort_key(c: Conflict) -> Tuple:
    return (-c.severity.rank, c.start, c.member_id, c.kind.value, c.project_ids, c.end)


def detect_overallocations(
    allocations: Iterable[Allocation],
    members: Iterable[Member],
    rule_config: Optional[dict] = None,
) -> List[Conflict]:
    """One conflict per (member, day) whose classified status is overallocated."""
    member_map = {m.member_id: m for m in members}

    daily: Dict[Tuple[str, date], List[Allocation]] = {}
    for a in allocations:
        if a.member_id not in member_map:
            logger.warning("Skipping allocation for unknown member %s on %s", a.member_id, a.date)
            continue
        daily.setdefault((a.member_id, a.date), []).append(a)

    conflicts = []
    for (member_id, day) in sorted(daily):
        member = member_map[member_id]
        rows = daily[(member_id, day)]
        allocated = sum(a.allocated_hours for a in rows)
        logged = sum(a.logged_hours for a in rows)
        capacity = capacity_on(member, day)

        result = classify(allocated, logged, capacity, is_working_day=member.works_on(day), rule_config=rule_config)
        if result.status != WorkloadStatus.OVERALLOCATED:
            continue

        conflicts.append(Conflict(
            kind=ConflictKind.OVERALLOCATION,
            member_id=member_id,
            start=day,
            end=day,
            severity=overallocation_severity(result.utilization_percent, rule_config),
            message=explain_overallocation(
                member.name or member_id, day, result.utilization_percent, allocated + logged, capacity,
            ),
            utilization_percent=result.utilization_percent,
            project_ids=tuple(sorted({a.project_id for a in rows})),
        ))
    return conflicts


def detect_schedule_overlaps(
    commitments: Iterable[Commitment],
    members: Iterable[Member],
    allocations: Optional[Iterable[Allocation]] = None,
) -> List[Conflict]:
    """One conflict per intersecting pair of a member's range commitments.

    With allocations given, a day only counts while both projects still hold
    positive allocated hours on it, and those hours are what gets compared.
    Without them, each commitment's hours_per_day stands in for the rows.
    Severity is high when the combined hours exceed the member's capacity over
    the counted days, low otherwise.
    """
    member_map = {m.member_id: m for m in members}
    hours = None
    if allocations is not None:
        hours = {a.key: a.allocated_hours for a in allocations}

    by_member: Dict[str, List[Commitment]] = {}
    for c in commitments:
        if c.hours_per_day <= HOURS_EPSILON:
            continue
        if c.member_id not in member_map:
            logger.warning("Skipping commitment for unknown member %s", c.member_id)
            continue
        by_member.setdefault(c.member_id, []).append(c)

    conflicts = []
    for member_id in sorted(by_member):
        member = member_map[member_id]
        ordered = sorted(by_member[member_id], key=lambda c: (c.start, c.end, c.project_id))
        for first, second in combinations(ordered, 2):
            if first.project_id == second.project_id:
                continue
            overlap = first.overlap(second)
            if overlap is None:
                continue

            days = [d for d in overlap.days() if member.works_on(d)]
            if hours is None:
                combined = (first.hours_per_day + second.hours_per_day) * len(days)
            else:
                days = [
                    d for d in days
                    if hours.get((member_id, first.project_id, d), 0.0) > HOURS_EPSILON
                    and hours.get((member_id, second.project_id, d), 0.0) > HOURS_EPSILON
                ]
                combined = sum(
                    hours[(member_id, first.project_id, d)] + hours[(member_id, second.project_id, d)]
                    for d in days
                )
            if not days:
                continue

            capacity = sum(capacity_on(member, d) for d in days)
            severity = ConflictSeverity.HIGH if combined > capacity + HOURS_EPSILON else ConflictSeverity.LOW

            conflicts.append(Conflict(
                kind=ConflictKind.SCHEDULE_OVERLAP,
                member_id=member_id,
                start=days[0],
                end=days[-1],
                severity=severity,
                message=explain_overlap(
                    member.name or member_id, first.project_id, second.project_id,
                    days[0], days[-1], combined, capacity,
                ),
                project_ids=(first.project_id, second.project_id),
            ))
    return conflicts


def detect_conflicts(
    allocations: Iterable[Allocation],
    members: Iterable[Member],
    commitments: Iterable[Commitment] = (),
    rule_config: Optional[dict] = None,
) -> List[Conflict]:
    """All conflicts for a ledger snapshot, worst first.

    Overlaps are measured against the given allocation rows.
    """
    members = list(members)
    allocations = list(allocations)
    conflicts = detect_overallocations(allocations, members, rule_config)
    conflicts.extend(detect_schedule_overlaps(commitments, members, allocations))
    conflicts.sort(key=conflict_sort_key)

    logger.info(
        "Conflict detection complete: %d conflicts found, %d high severity",
        len(conflicts), sum(1 for c in conflicts if c.severity == ConflictSeverity.HIGH),
    )
    return conflicts


def detect_ledger_conflicts(ledger, date_range=None, rule_config: Optional[dict] = None) -> List[Conflict]:
    """Convenience wrapper running detection straight off an AllocationLedger."""
    commitments = ledger.commitments()
    if date_range is not None:
        commitments = [c for c in commitments if c.date_range.intersection(date_range)]
    return detect_conflicts(
        ledger.query(date_range=date_range), ledger.members, commitments, rule_config,
    )


def summarize_conflicts(conflicts: List[Conflict]) -> dict:
    """Counts by kind and severity plus the high-severity list."""
    by_kind = Counter(c.kind.value for c in conflicts)
    by_severity = Counter(c.severity.value for c in conflicts)
    return {
        "total_conflicts": len(conflicts),
        "by_kind": {k.value: by_kind.get(k.value, 0) for k in ConflictKind},
        "by_severity": {s.value: by_severity.get(s.value, 0) for s in ConflictSeverity},
        "high_severity": [c for c in conflicts if c.severity == ConflictSeverity.HIGH],
        "members_affected": sorted({c.member_id for c in conflicts}),
    }
