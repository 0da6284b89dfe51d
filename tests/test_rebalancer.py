"""Tests for the workload rebalancer."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from collections import defaultdict
from datetime import date

import pytest

from engine.conflicts import detect_ledger_conflicts
from engine.ledger import AllocationLedger
from engine.rebalancer import commit_plan, plan_allocations, rebalance
from engine.report import plan_to_frame
from models.allocation import Allocation
from models.conflict import ConflictKind
from models.errors import InvalidAllocation, RebalanceNonConvergence
from models.member import Member
from models.project import Project
from models.rebalance import RebalanceOptions
from models.workload import WorkloadStatus

MON = date(2026, 10, 5)
TUE = date(2026, 10, 6)
SAT = date(2026, 10, 10)


def make_member(member_id, hours=8.0, days=(0, 1, 2, 3, 4)):
    return Member(member_id, member_id.upper(), hours, frozenset(days))


def make_ledger(allocations, member_ids=("a", "b", "c")):
    return AllocationLedger(
        members=[make_member(m) for m in member_ids],
        projects=[Project("px", "PX"), Project("py", "PY")],
        allocations=allocations,
    )


def project_day_totals(ledger):
    totals = defaultdict(float)
    for a in ledger.allocations:
        totals[(a.project_id, a.date)] += a.allocated_hours
    return dict(totals)


class TestEvenStrategy:
    def test_moves_excess_to_teammate(self):
        ledger = make_ledger([Allocation("a", "px", MON, 12), Allocation("b", "px", MON, 2)], ("a", "b"))
        plan = rebalance(ledger, RebalanceOptions(strategy="even", max_utilization=100))

        assert len(plan.deltas) == 2
        by_member = {d.member_id: d for d in plan.deltas}
        assert by_member["a"].delta == pytest.approx(-4)
        assert by_member["b"].delta == pytest.approx(4)
        assert plan.converged
        assert plan.unresolved == []

        summaries = {s.member_id: s for s in plan.member_summaries}
        assert summaries["a"].after_percent == pytest.approx(100.0)
        assert summaries["a"].after_status == WorkloadStatus.FULLY_ALLOCATED
        assert summaries["b"].after_percent == pytest.approx(75.0)
        assert summaries["b"].after_status == WorkloadStatus.NORMAL

    def test_plan_frame(self):
        ledger = make_ledger([Allocation("a", "px", MON, 12), Allocation("b", "px", MON, 2)], ("a", "b"))
        df = plan_to_frame(rebalance(ledger))
        assert list(df["Member ID"]) == ["a", "b"]
        assert list(df["Change (h)"]) == [-4, 4]

    def test_does_not_mutate_ledger(self):
        ledger = make_ledger([Allocation("a", "px", MON, 12), Allocation("b", "px", MON, 2)], ("a", "b"))
        rebalance(ledger)
        assert ledger.get("a", "px", MON).allocated_hours == 12

    def test_project_day_totals_conserved(self):
        rows = [
            Allocation("a", "px", MON, 10), Allocation("a", "py", MON, 4),
            Allocation("b", "px", MON, 3), Allocation("c", "py", MON, 1),
            Allocation("a", "px", TUE, 9), Allocation("c", "px", TUE, 0),
            Allocation("b", "py", TUE, 11), Allocation("c", "py", TUE, 2),
        ]
        ledger = make_ledger(rows)
        before = project_day_totals(ledger)

        plan = rebalance(ledger)
        after_ledger = ledger.snapshot()
        after_ledger.bulk_upsert(plan_allocations(plan, after_ledger))

        after = project_day_totals(after_ledger)
        assert before.keys() == after.keys()
        for key in before:
            assert after[key] == pytest.approx(before[key])

    def test_receiver_must_share_project(self):
        # b works on py only, so a's px hours have nowhere to go
        ledger = make_ledger([Allocation("a", "px", MON, 12), Allocation("b", "py", MON, 1)], ("a", "b"))
        plan = rebalance(ledger)
        assert plan.is_empty
        assert len(plan.unresolved) == 1
        assert plan.unresolved[0].reason == "no_eligible_receiver"
        assert plan.unresolved_overallocation == pytest.approx(4.0)
        assert plan.converged

    def test_receiver_without_spare_capacity(self):
        ledger = make_ledger([Allocation("a", "px", MON, 12), Allocation("b", "px", MON, 8)], ("a", "b"))
        plan = rebalance(ledger)
        assert plan.is_empty
        assert plan.unresolved[0].member_id == "a"

    def test_ties_go_to_lowest_member_id(self):
        rows = [Allocation("a", "px", MON, 12), Allocation("c", "px", MON, 2), Allocation("b", "px", MON, 2)]
        plan = rebalance(make_ledger(rows))
        assert {d.member_id for d in plan.deltas} == {"a", "b"}

    def test_logged_hours_stay_put(self):
        ledger = make_ledger(
            [Allocation("a", "px", MON, 10, logged_hours=2), Allocation("b", "px", MON, 2)], ("a", "b"),
        )
        plan = rebalance(ledger)
        by_member = {d.member_id: d for d in plan.deltas}
        assert by_member["a"].after_hours == pytest.approx(6)
        rows = {r.member_id: r for r in plan_allocations(plan, ledger)}
        assert rows["a"].logged_hours == 2

    def test_lower_utilization_limit(self):
        ledger = make_ledger([Allocation("a", "px", MON, 8), Allocation("b", "px", MON, 2)], ("a", "b"))
        plan = rebalance(ledger, RebalanceOptions(max_utilization=80))
        by_member = {d.member_id: d for d in plan.deltas}
        assert by_member["a"].after_hours == pytest.approx(6.4)
        assert by_member["b"].after_hours == pytest.approx(3.6)

    def test_weekend_hours_not_rebalanced(self):
        ledger = make_ledger([Allocation("a", "px", SAT, 12), Allocation("b", "px", SAT, 2)], ("a", "b"))
        plan = rebalance(ledger)
        assert plan.is_empty
        assert plan.unresolved == []

    def test_scope_limits_members(self):
        rows = [Allocation("a", "px", MON, 12), Allocation("b", "px", MON, 2), Allocation("c", "px", MON, 2)]
        plan = rebalance(make_ledger(rows), RebalanceOptions(scope_member_ids=["a", "c"]))
        assert {d.member_id for d in plan.deltas} == {"a", "c"}
        assert [s.member_id for s in plan.member_summaries] == ["a", "c"]

    def test_unknown_scope_member(self):
        with pytest.raises(InvalidAllocation):
            rebalance(make_ledger([]), RebalanceOptions(scope_member_ids=["ghost"]))

    def test_deterministic(self):
        rows = [
            Allocation("a", "px", MON, 12), Allocation("b", "px", MON, 2),
            Allocation("c", "px", MON, 5), Allocation("b", "py", TUE, 14), Allocation("c", "py", TUE, 1),
        ]
        first = rebalance(make_ledger(rows))
        second = rebalance(make_ledger(list(reversed(rows))))
        assert first.deltas == second.deltas
        assert first.moves == second.moves


class TestIterationCap:
    def test_cap_reports_non_convergence(self):
        rows = [Allocation("a", "px", MON, 16), Allocation("b", "px", MON, 4), Allocation("c", "px", MON, 4)]
        ledger = make_ledger(rows)
        plan = rebalance(ledger, RebalanceOptions(max_iterations=1))

        assert plan.iterations == 1
        assert not plan.converged
        assert isinstance(plan.non_convergence, RebalanceNonConvergence)
        assert plan.non_convergence.residual_hours == pytest.approx(4.0)
        assert plan.unresolved[0].reason == "iteration_cap"
        assert plan.unresolved_overallocation == pytest.approx(4.0)

    def test_uncapped_run_finishes(self):
        rows = [Allocation("a", "px", MON, 16), Allocation("b", "px", MON, 4), Allocation("c", "px", MON, 4)]
        plan = rebalance(make_ledger(rows))
        assert plan.converged
        assert plan.iterations == 2
        assert {d.member_id: d.after_hours for d in plan.deltas} == {"a": 8, "b": 8, "c": 8}


class TestOptions:
    def test_unimplemented_strategies(self):
        for strategy in ("skills", "priority"):
            with pytest.raises(NotImplementedError):
                rebalance(make_ledger([]), RebalanceOptions(strategy=strategy))

    def test_unknown_strategy(self):
        with pytest.raises(ValueError):
            rebalance(make_ledger([]), RebalanceOptions(strategy="random"))

    def test_non_positive_limit(self):
        with pytest.raises(ValueError):
            rebalance(make_ledger([]), RebalanceOptions(max_utilization=0))


class TestCommitPlan:
    def test_commit_clears_overallocation(self):
        ledger = make_ledger([Allocation("a", "px", MON, 12), Allocation("b", "px", MON, 2)], ("a", "b"))
        commit_plan(ledger, rebalance(ledger))
        assert ledger.get("a", "px", MON).allocated_hours == pytest.approx(8)
        assert ledger.get("b", "px", MON).allocated_hours == pytest.approx(6)
        remaining = detect_ledger_conflicts(ledger)
        assert not any(c.kind == ConflictKind.OVERALLOCATION for c in remaining)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
