"""Workload rebalancing: move hours from overallocated members to teammates.

The "even" strategy works one day at a time: while someone is above the
utilization limit, the most overallocated member (donor) hands hours to the
least utilized teammate sharing a project with them that day (receiver). Hours
only ever move within the same (project, day), so per-project daily totals are
conserved. The plan is returned for review; nothing is written to the ledger
until commit_plan is called.
"""

import logging
from datetime import date
from typing import Dict, List, Optional, Set, Tuple

from models.allocation import Allocation
from models.member import Member
from models.errors import InvalidAllocation, InvalidCapacityConfig, RebalanceNonConvergence
from models.rebalance import (
    AllocationDelta, MemberRebalanceSummary, RebalanceOptions, RebalancePlan, UnresolvedOverallocation,
)
from engine.capacity import capacity_on, validate_member
from engine.classifier import classify
from engine.explainer import explain_move, explain_unresolved
from engine.ledger import AllocationLedger
from config.defaults import REBALANCE_STRATEGIES, HOURS_EPSILON

logger = logging.getLogger(__name__)

Key = Tuple[str, str, date]


class _DayState:
    """Mutable working copy of one day's in-scope allocations."""

    def __init__(self, day: date, members: List[Member], allocated: Dict[Key, float], logged: Dict[Key, float]):
        self.day = day
        self.members = members
        self.allocated = allocated
        self.logged = logged
        self.capacity = {m.member_id: capacity_on(m, day) for m in members}
        self.working = {m.member_id: m.works_on(day) for m in members}
        self.projects: Dict[str, List[str]] = {m.member_id: [] for m in members}
        for (member_id, project_id, d) in allocated:
            if d == day and member_id in self.projects:
                self.projects[member_id].append(project_id)

    def load(self, member_id: str) -> float:
        return sum(
            self.allocated[(member_id, p, self.day)] + self.logged[(member_id, p, self.day)]
            for p in self.projects[member_id]
        )

    def utilization(self, member_id: str, rule_config: Optional[dict] = None) -> float:
        cap = self.capacity[member_id]
        logged = sum(self.logged[(member_id, p, self.day)] for p in self.projects[member_id])
        return classify(
            self.load(member_id) - logged, logged, cap,
            is_working_day=self.working[member_id], rule_config=rule_config,
        ).utilization_percent

    def excess(self, member_id: str, limit_pct: float) -> float:
        """Hours above the limit on a working day, 0 otherwise."""
        if not self.working[member_id]:
            return 0.0
        return max(0.0, self.load(member_id) - self.capacity[member_id] * limit_pct / 100)

    def spare(self, member_id: str, limit_pct: float) -> float:
        if not self.working[member_id]:
            return 0.0
        return max(0.0, self.capacity[member_id] * limit_pct / 100 - self.load(member_id))


def _pick_donor(state: _DayState, limit_pct: float, stuck: Set[str], rule_config) -> Optional[str]:
    candidates = [
        (-state.utilization(m.member_id, rule_config), m.member_id)
        for m in state.members
        if m.member_id not in stuck and state.excess(m.member_id, limit_pct) > HOURS_EPSILON
    ]
    if not candidates:
        return None
    return min(candidates)[1]


def _pick_receiver(
    state: _DayState, donor_id: str, limit_pct: float, rule_config,
) -> Tuple[Optional[str], Optional[str]]:
    """Least utilized teammate with spare capacity on a project shared with the donor."""
    donor_projects = {
        p for p in state.projects[donor_id]
        if state.allocated[(donor_id, p, state.day)] > HOURS_EPSILON
    }
    candidates = []
    for m in state.members:
        if m.member_id == donor_id:
            continue
        shared = donor_projects.intersection(state.projects[m.member_id])
        if not shared or state.spare(m.member_id, limit_pct) <= HOURS_EPSILON:
            continue
        candidates.append((state.utilization(m.member_id, rule_config), m.member_id, shared))
    if not candidates:
        return None, None

    _, receiver_id, shared = min(candidates, key=lambda c: (c[0], c[1]))
    # Take from the shared project the donor carries the most hours on
    project_id = min(shared, key=lambda p: (-state.allocated[(donor_id, p, state.day)], p))
    return receiver_id, project_id


def _summaries(
    members: List[Member],
    days: List[date],
    before: Dict[Key, float],
    after: Dict[Key, float],
    logged: Dict[Key, float],
    rule_config,
) -> List[MemberRebalanceSummary]:
    summaries = []
    for m in members:
        cap = sum(capacity_on(m, d) for d in days)
        working = {d for d in days if m.works_on(d)}
        keys = [k for k in before if k[0] == m.member_id and k[2] in working]
        log = sum(logged[k] for k in keys)
        b = classify(sum(before[k] for k in keys), log, cap, rule_config=rule_config)
        a = classify(sum(after[k] for k in keys), log, cap, rule_config=rule_config)
        summaries.append(MemberRebalanceSummary(
            member_id=m.member_id,
            before_percent=b.utilization_percent,
            after_percent=a.utilization_percent,
            before_status=b.status,
            after_status=a.status,
        ))
    return summaries


def _resolve_scope(ledger: AllocationLedger, options: RebalanceOptions) -> List[Member]:
    """Members to rebalance.

    Without an explicit scope, members with invalid capacity settings are left
    out; naming one in the scope raises InvalidCapacityConfig.
    """
    if options.scope_member_ids is None:
        members = []
        for m in ledger.members:
            try:
                validate_member(m)
            except InvalidCapacityConfig as exc:
                logger.warning("Leaving %s out of rebalancing: %s", m.member_id, exc)
                continue
            members.append(m)
    else:
        members = []
        for member_id in sorted(set(options.scope_member_ids)):
            member = ledger.get_member(member_id)
            if member is None:
                raise InvalidAllocation(f"Rebalance scope references unknown member {member_id!r}")
            validate_member(member)
            members.append(member)
    return members


def rebalance(
    ledger: AllocationLedger,
    options: Optional[RebalanceOptions] = None,
    rule_config: Optional[dict] = None,
) -> RebalancePlan:
    """Propose a plan that brings every in-scope member under max_utilization.

    Excess that cannot be moved (no shared project with spare capacity, or the
    iteration cap was hit) is reported in plan.unresolved, never dropped.
    """
    options = options or RebalanceOptions()
    if options.strategy not in REBALANCE_STRATEGIES:
        raise ValueError(f"Unknown rebalance strategy: {options.strategy}. Use one of {REBALANCE_STRATEGIES}.")
    if options.strategy != "even":
        raise NotImplementedError(
            f"Rebalance strategy '{options.strategy}' needs skill/priority data that is not modeled"
        )
    if options.max_utilization <= 0:
        raise ValueError(f"max_utilization must be positive, got {options.max_utilization}")

    limit = options.max_utilization
    members = _resolve_scope(ledger, options)
    member_ids = [m.member_id for m in members]
    days = ledger.affected_dates(member_ids)

    scope = set(member_ids)
    rows = [a for a in ledger.query() if a.member_id in scope]
    before = {a.key: a.allocated_hours for a in rows}
    logged = {a.key: a.logged_hours for a in rows}
    allocated = dict(before)

    logger.info(
        "Rebalancing %d members over %d days (strategy=%s, max_utilization=%.0f%%)",
        len(members), len(days), options.strategy, limit,
    )

    plan = RebalancePlan(strategy=options.strategy, max_utilization=limit)
    stuck_by_day: Dict[date, Set[str]] = {}
    capped = False

    for day in days:
        state = _DayState(day, members, allocated, logged)
        stuck = stuck_by_day.setdefault(day, set())

        while True:
            donor_id = _pick_donor(state, limit, stuck, rule_config)
            if donor_id is None:
                break
            receiver_id, project_id = _pick_receiver(state, donor_id, limit, rule_config)
            if receiver_id is None:
                logger.debug("No eligible receiver for %s on %s", donor_id, day)
                stuck.add(donor_id)
                continue
            if plan.iterations >= options.max_iterations:
                capped = True
                break

            donor_key = (donor_id, project_id, day)
            hours = min(
                state.excess(donor_id, limit),
                state.spare(receiver_id, limit),
                allocated[donor_key],
            )
            allocated[donor_key] -= hours
            allocated[(receiver_id, project_id, day)] += hours
            plan.iterations += 1

            move = explain_move(
                hours, project_id, day, donor_id, receiver_id,
                state.utilization(donor_id, rule_config), state.utilization(receiver_id, rule_config),
            )
            plan.moves.append(move)
            logger.debug("%s", move)

        if capped:
            break

    for day in days:
        state = _DayState(day, members, allocated, logged)
        for m in members:
            excess = state.excess(m.member_id, limit)
            if excess <= HOURS_EPSILON:
                continue
            reason = "no_eligible_receiver" if m.member_id in stuck_by_day.get(day, set()) else "iteration_cap"
            plan.unresolved.append(UnresolvedOverallocation(m.member_id, day, excess, reason))
            logger.warning("%s", explain_unresolved(m.member_id, day, excess, reason))

    plan.deltas = [
        AllocationDelta(k[0], k[1], k[2], before[k], allocated[k])
        for k in sorted(before, key=lambda k: (k[2], k[1], k[0]))
        if abs(allocated[k] - before[k]) > HOURS_EPSILON
    ]
    plan.member_summaries = _summaries(members, days, before, allocated, logged, rule_config)
    plan.converged = not capped
    if capped:
        plan.non_convergence = RebalanceNonConvergence(plan.iterations, plan.unresolved_overallocation)
        logger.warning("%s", plan.non_convergence)

    logger.info(
        "Rebalance finished: %d moves, %d allocations changed, %.2fh unresolved",
        len(plan.moves), len(plan.deltas), plan.unresolved_overallocation,
    )
    return plan


def plan_allocations(plan: RebalancePlan, ledger: AllocationLedger) -> List[Allocation]:
    """Allocation rows that, upserted, apply the plan. Logged hours are kept."""
    rows = []
    for d in plan.deltas:
        existing = ledger.get(d.member_id, d.project_id, d.date)
        rows.append(Allocation(
            member_id=d.member_id,
            project_id=d.project_id,
            date=d.date,
            allocated_hours=d.after_hours,
            logged_hours=existing.logged_hours if existing else 0.0,
        ))
    return rows


def commit_plan(ledger: AllocationLedger, plan: RebalancePlan) -> List[Allocation]:
    """Upsert every delta of a reviewed plan into the ledger.

    The plan is not checked against changes made to the ledger since it was
    built; re-run conflict detection afterwards.
    """
    applied = ledger.bulk_upsert(plan_allocations(plan, ledger))
    logger.info("Committed rebalance plan: %d allocations updated", len(applied))
    return applied
