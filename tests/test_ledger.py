"""Tests for the allocation ledger."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import date, datetime

import pytest

from engine.ledger import AllocationLedger
from models.allocation import Allocation, Commitment
from models.calendar import DateRange
from models.errors import InvalidAllocation, InvalidCapacityConfig
from models.member import Member
from models.project import Project

MON = date(2026, 10, 5)
TUE = date(2026, 10, 6)
SAT = date(2026, 10, 10)
WEEK = DateRange(MON, date(2026, 10, 11), "week")


def make_member(member_id="m1", hours=8.0, days=(0, 1, 2, 3, 4)):
    return Member(member_id, member_id.upper(), hours, frozenset(days))


def make_ledger(members=None, projects=("px", "py")):
    members = members if members is not None else [make_member("m1"), make_member("m2")]
    return AllocationLedger(
        members=members,
        projects=[Project(p, p.upper()) for p in projects],
    )


class TestUpsert:
    def test_same_key_overwrites(self):
        ledger = make_ledger()
        ledger.upsert(Allocation("m1", "px", MON, 4))
        ledger.upsert(Allocation("m1", "px", MON, 6))
        assert len(ledger) == 1
        assert ledger.get("m1", "px", MON).allocated_hours == 6

    def test_idempotent(self):
        ledger = make_ledger()
        ledger.upsert(Allocation("m1", "px", MON, 4))
        first = ledger.allocations
        ledger.upsert(Allocation("m1", "px", MON, 4))
        assert ledger.allocations == first

    def test_zero_hours_allowed(self):
        ledger = make_ledger()
        ledger.upsert(Allocation("m1", "px", MON, 0))
        assert ("m1", "px", MON) in ledger

    def test_negative_hours_rejected(self):
        ledger = make_ledger()
        with pytest.raises(InvalidAllocation):
            ledger.upsert(Allocation("m1", "px", MON, -1))
        with pytest.raises(InvalidAllocation):
            ledger.upsert(Allocation("m1", "px", MON, 2, logged_hours=-0.5))
        assert len(ledger) == 0

    def test_nan_hours_rejected(self):
        ledger = make_ledger()
        with pytest.raises(InvalidAllocation):
            ledger.upsert(Allocation("m1", "px", MON, float("nan")))

    def test_unknown_references(self):
        ledger = make_ledger()
        with pytest.raises(InvalidAllocation):
            ledger.upsert(Allocation("ghost", "px", MON, 2))
        with pytest.raises(InvalidAllocation):
            ledger.upsert(Allocation("m1", "nope", MON, 2))

    def test_member_without_working_days_rejected(self):
        ledger = make_ledger(members=[make_member("m1", days=())])
        with pytest.raises(InvalidAllocation) as exc_info:
            ledger.upsert(Allocation("m1", "px", MON, 2))
        assert isinstance(exc_info.value.__cause__, InvalidCapacityConfig)
        assert len(ledger) == 0

    def test_datetime_normalized_to_date(self):
        ledger = make_ledger()
        row = ledger.upsert(Allocation("m1", "px", datetime(2026, 10, 5, 13, 30), 3))
        assert row.date == MON
        assert ledger.get("m1", "px", MON) is not None

    def test_weekend_allocation_stored(self):
        ledger = make_ledger()
        ledger.upsert(Allocation("m1", "px", SAT, 5))
        assert ledger.get("m1", "px", SAT).allocated_hours == 5

    def test_bulk_upsert_is_all_or_nothing(self):
        ledger = make_ledger()
        rows = [
            Allocation("m1", "px", MON, 4),
            Allocation("m2", "px", MON, 4),
            Allocation("m1", "px", TUE, -3),
        ]
        with pytest.raises(InvalidAllocation):
            ledger.bulk_upsert(rows)
        assert len(ledger) == 0


class TestQueries:
    def test_query_order(self):
        ledger = make_ledger()
        ledger.bulk_upsert([
            Allocation("m2", "py", TUE, 1),
            Allocation("m1", "py", MON, 1),
            Allocation("m2", "px", MON, 1),
            Allocation("m1", "px", MON, 1),
        ])
        keys = [a.key for a in ledger.query()]
        assert keys == [
            ("m1", "px", MON), ("m2", "px", MON), ("m1", "py", MON), ("m2", "py", TUE),
        ]

    def test_query_filters(self):
        ledger = make_ledger()
        ledger.bulk_upsert([
            Allocation("m1", "px", MON, 1),
            Allocation("m1", "py", TUE, 2),
            Allocation("m2", "px", MON, 3),
            Allocation("m1", "px", date(2026, 10, 20), 4),
        ])
        assert len(ledger.query(member_id="m1")) == 3
        assert len(ledger.query(member_id="m1", date_range=WEEK)) == 2
        assert [a.allocated_hours for a in ledger.query(project_id="px", date_range=WEEK)] == [1, 3]

    def test_totals_by_member_day(self):
        ledger = make_ledger()
        ledger.bulk_upsert([
            Allocation("m1", "px", MON, 3, logged_hours=1),
            Allocation("m1", "py", MON, 2),
            Allocation("m2", "px", MON, 7),
        ])
        totals = ledger.totals_by_member_day("m1", WEEK)
        assert len(totals) == 7
        assert totals[MON].allocated == 5
        assert totals[MON].logged == 1
        assert totals[TUE].allocated == 0

    def test_project_timeline(self):
        ledger = make_ledger()
        ledger.bulk_upsert([
            Allocation("m2", "px", MON, 1),
            Allocation("m1", "px", TUE, 2),
            Allocation("m1", "px", MON, 3),
            Allocation("m1", "py", MON, 4),
        ])
        timeline = ledger.project_timeline("px")
        assert list(timeline) == ["m1", "m2"]
        assert [a.date for a in timeline["m1"]] == [MON, TUE]

    def test_snapshot_is_independent(self):
        ledger = make_ledger()
        ledger.upsert(Allocation("m1", "px", MON, 4))
        copy = ledger.snapshot()
        copy.upsert(Allocation("m1", "px", MON, 8))
        assert ledger.get("m1", "px", MON).allocated_hours == 4


class TestCommitments:
    def test_expands_to_working_days(self):
        ledger = make_ledger()
        rows = ledger.upsert_commitment(Commitment("m1", "px", MON, date(2026, 10, 11), 3))
        assert len(rows) == 5
        assert ledger.get("m1", "px", SAT) is None
        assert ledger.commitments("m1")[0].hours_per_day == 3

    def test_keeps_logged_hours(self):
        ledger = make_ledger()
        ledger.upsert(Allocation("m1", "px", MON, 2, logged_hours=1.5))
        ledger.upsert_commitment(Commitment("m1", "px", MON, TUE, 4))
        row = ledger.get("m1", "px", MON)
        assert row.allocated_hours == 4
        assert row.logged_hours == 1.5

    def test_recommit_replaces_stored_range(self):
        ledger = make_ledger()
        ledger.upsert_commitment(Commitment("m1", "px", MON, date(2026, 10, 9), 4))
        ledger.upsert_commitment(Commitment("m1", "px", TUE, TUE, 6))
        stored = ledger.commitments("m1")
        assert [(c.start, c.end, c.hours_per_day) for c in stored] == [(TUE, TUE, 6)]
        assert ledger.get("m1", "px", TUE).allocated_hours == 6
        assert ledger.get("m1", "px", MON).allocated_hours == 4

    def test_reversed_range_rejected(self):
        ledger = make_ledger()
        with pytest.raises(InvalidAllocation):
            ledger.upsert_commitment(Commitment("m1", "px", TUE, MON, 4))

    def test_weekend_only_commitment_still_validated(self):
        ledger = make_ledger()
        with pytest.raises(InvalidAllocation):
            ledger.upsert_commitment(Commitment("m1", "nope", SAT, SAT, 4))


class TestMemberCapacity:
    def test_set_member_capacity(self):
        ledger = make_ledger()
        ledger.set_member_capacity("m1", ["Mon", "Tue"], 6)
        member = ledger.get_member("m1")
        assert member.working_days == frozenset({0, 1})
        assert member.working_hours_per_day == 6

    def test_unknown_member(self):
        with pytest.raises(InvalidAllocation):
            make_ledger().set_member_capacity("ghost", ["Mon"], 8)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
