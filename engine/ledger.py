"""Allocation ledger: the source of truth for (member, project, day, hours) facts."""

import copy
import logging
import math
from dataclasses import replace
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Set, Tuple, Union

from models.member import Member
from models.project import Project
from models.allocation import Allocation, Commitment
from models.calendar import DateRange
from models.workload import DayTotals
from models.errors import InvalidAllocation, InvalidCapacityConfig
from engine.capacity import validate_member, set_working_capacity

logger = logging.getLogger(__name__)

AllocationKey = Tuple[str, str, date]


def _as_date(value: Union[date, datetime]) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def _check_hours(value, label: str, allocation_desc: str) -> float:
    try:
        hours = float(value)
    except (TypeError, ValueError):
        raise InvalidAllocation(f"{allocation_desc}: {label} must be a number, got {value!r}")
    if math.isnan(hours) or math.isinf(hours):
        raise InvalidAllocation(f"{allocation_desc}: {label} must be finite, got {value!r}")
    if hours < 0:
        raise InvalidAllocation(f"{allocation_desc}: {label} cannot be negative ({hours})")
    return hours


class AllocationLedger:
    """In-memory ledger of allocations keyed by (member, project, date).

    Upserts overwrite rows with the same key; they never accumulate. The ledger
    stores facts only: utilization and status are derived elsewhere.
    """

    def __init__(
        self,
        members: Iterable[Member] = (),
        projects: Iterable[Project] = (),
        allocations: Iterable[Allocation] = (),
        commitments: Iterable[Commitment] = (),
    ):
        self._members: Dict[str, Member] = {}
        self._projects: Dict[str, Project] = {}
        self._rows: Dict[AllocationKey, Allocation] = {}
        self._commitments: Dict[Tuple[str, str], Commitment] = {}

        for m in members:
            self.add_member(m)
        for p in projects:
            self.add_project(p)
        self.bulk_upsert(allocations)
        for c in commitments:
            self.upsert_commitment(c)

    # --- Reference data ---

    def add_member(self, member: Member):
        self._members[member.member_id] = member

    def add_project(self, project: Project):
        self._projects[project.project_id] = project

    @property
    def members(self) -> List[Member]:
        return [self._members[k] for k in sorted(self._members)]

    @property
    def projects(self) -> List[Project]:
        return [self._projects[k] for k in sorted(self._projects)]

    def get_member(self, member_id: str) -> Optional[Member]:
        return self._members.get(member_id)

    def get_project(self, project_id: str) -> Optional[Project]:
        return self._projects.get(project_id)

    def set_member_capacity(
        self,
        member_id: str,
        working_days: Iterable[Union[str, int]],
        working_hours_per_day: float,
    ) -> Member:
        """Update a member's working days and hours; the only member mutation."""
        member = self._members.get(member_id)
        if member is None:
            raise InvalidAllocation(f"Unknown member: {member_id}")
        return set_working_capacity(member, working_days, working_hours_per_day)

    # --- Validation ---

    def _validate(self, allocation: Allocation) -> Allocation:
        desc = f"Allocation {allocation.member_id}/{allocation.project_id}/{allocation.date}"

        member = self._members.get(allocation.member_id)
        if member is None:
            raise InvalidAllocation(f"{desc}: unknown member {allocation.member_id!r}")
        if allocation.project_id not in self._projects:
            raise InvalidAllocation(f"{desc}: unknown project {allocation.project_id!r}")
        if not isinstance(allocation.date, date):
            raise InvalidAllocation(f"{desc}: date must be a date, got {allocation.date!r}")
        try:
            validate_member(member)
        except InvalidCapacityConfig as exc:
            raise InvalidAllocation(f"{desc}: member cannot be allocated ({exc})") from exc

        allocated = _check_hours(allocation.allocated_hours, "allocated hours", desc)
        logged = _check_hours(allocation.logged_hours or 0.0, "logged hours", desc)

        return replace(
            allocation,
            date=_as_date(allocation.date),
            allocated_hours=allocated,
            logged_hours=logged,
        )

    # --- Mutation ---

    def upsert(self, allocation: Allocation) -> Allocation:
        """Insert or replace the row for (member, project, date)."""
        row = self._validate(allocation)
        self._rows[row.key] = row
        return row

    def bulk_upsert(self, allocations: Iterable[Allocation]) -> List[Allocation]:
        """Validate every allocation first, then apply them all (all or nothing)."""
        rows = [self._validate(a) for a in allocations]
        for row in rows:
            self._rows[row.key] = row
        return rows

    def upsert_commitment(self, commitment: Commitment) -> List[Allocation]:
        """Record a range commitment and its per-day rows on the member's working days.

        A later commitment for the same member and project replaces the stored
        record; rows outside the new range keep their hours. Logged hours already
        recorded on those days are preserved.
        """
        if commitment.start > commitment.end:
            raise InvalidAllocation(
                f"Commitment {commitment.member_id}/{commitment.project_id}: "
                f"start {commitment.start} is after end {commitment.end}"
            )
        member = self._members.get(commitment.member_id)
        if member is None:
            raise InvalidAllocation(f"Commitment: unknown member {commitment.member_id!r}")

        rows = []
        for day in commitment.date_range.days():
            if not member.works_on(day):
                continue
            existing = self._rows.get((commitment.member_id, commitment.project_id, day))
            rows.append(Allocation(
                member_id=commitment.member_id,
                project_id=commitment.project_id,
                date=day,
                allocated_hours=commitment.hours_per_day,
                logged_hours=existing.logged_hours if existing else 0.0,
            ))
        if not rows:
            # Still validates member/project/hours when the range has no working day
            self._validate(Allocation(
                commitment.member_id, commitment.project_id, commitment.start, commitment.hours_per_day,
            ))

        applied = self.bulk_upsert(rows)
        self._commitments[commitment.key] = commitment
        logger.debug("Commitment %s applied as %d daily rows", commitment.key, len(applied))
        return applied

    # --- Queries ---

    def query(
        self,
        member_id: Optional[str] = None,
        project_id: Optional[str] = None,
        date_range: Optional[DateRange] = None,
    ) -> List[Allocation]:
        """All matching allocations ordered by date, then project, then member."""
        matches = [
            a for a in self._rows.values()
            if (member_id is None or a.member_id == member_id)
            and (project_id is None or a.project_id == project_id)
            and (date_range is None or date_range.contains(a.date))
        ]
        return sorted(matches, key=lambda a: (a.date, a.project_id, a.member_id))

    def totals_by_member_day(self, member_id: str, date_range: DateRange) -> Dict[date, DayTotals]:
        """Allocated and logged hours per day across all projects, zeros included."""
        totals = {d: DayTotals() for d in date_range.days()}
        for a in self.query(member_id=member_id, date_range=date_range):
            t = totals[a.date]
            t.allocated += a.allocated_hours
            t.logged += a.logged_hours
        return totals

    def project_timeline(self, project_id: str, date_range: Optional[DateRange] = None) -> Dict[str, List[Allocation]]:
        """Allocations of one project grouped by member id."""
        timeline: Dict[str, List[Allocation]] = {}
        for a in self.query(project_id=project_id, date_range=date_range):
            timeline.setdefault(a.member_id, []).append(a)
        return {k: timeline[k] for k in sorted(timeline)}

    def project_ids_for(self, member_id: str, date_range: Optional[DateRange] = None) -> Set[str]:
        return {a.project_id for a in self.query(member_id=member_id, date_range=date_range)}

    def commitments(self, member_id: Optional[str] = None) -> List[Commitment]:
        found = [c for c in self._commitments.values() if member_id is None or c.member_id == member_id]
        return sorted(found, key=lambda c: (c.member_id, c.start, c.end, c.project_id))

    def affected_dates(self, member_ids: Optional[Iterable[str]] = None) -> List[date]:
        """Sorted distinct dates carrying allocations for the given members."""
        scope = set(member_ids) if member_ids is not None else None
        return sorted({a.date for a in self._rows.values() if scope is None or a.member_id in scope})

    @property
    def allocations(self) -> List[Allocation]:
        return self.query()

    def snapshot(self) -> "AllocationLedger":
        """Independent copy of the ledger for what-if computations."""
        return copy.deepcopy(self)

    def __len__(self) -> int:
        return len(self._rows)

    def __contains__(self, key: AllocationKey) -> bool:
        return key in self._rows

    def get(self, member_id: str, project_id: str, day: date) -> Optional[Allocation]:
        return self._rows.get((member_id, project_id, day))
