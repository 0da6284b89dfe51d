"""Tests for file validation, parsing and the sample dataset."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import date

import pandas as pd
import pytest

from data.loader import _match_sheet, build_ledger, load_file, load_multi_sheet_excel, parse_members
from data.sample_data import (
    generate_allocations_df,
    generate_commitments_df,
    generate_members_df,
    generate_projects_df,
    generate_sample_excel,
)
from data.validator import (
    validate_allocations,
    validate_commitments,
    validate_cross_file,
    validate_members,
    validate_projects,
)
from models.errors import InvalidAllocation


class TestValidator:
    def test_sample_data_is_valid(self):
        members, projects = generate_members_df(), generate_projects_df()
        allocations, commitments = generate_allocations_df(), generate_commitments_df()
        for result in (
            validate_members(members),
            validate_projects(projects),
            validate_allocations(allocations),
            validate_commitments(commitments),
            validate_cross_file(members, projects, allocations, commitments),
        ):
            assert result.is_valid, result.errors

    def test_missing_columns(self):
        result = validate_allocations(pd.DataFrame({"Member ID": ["m1"], "Date": ["2026-10-05"]}))
        assert not result.is_valid
        assert "Project ID" in result.errors[0]

    def test_negative_hours(self):
        df = pd.DataFrame({
            "Member ID": ["m1"], "Project ID": ["px"], "Date": ["2026-10-05"], "Allocated Hours": [-2],
        })
        assert not validate_allocations(df).is_valid

    def test_duplicate_keys_warn(self):
        df = pd.DataFrame({
            "Member ID": ["m1", "m1"], "Project ID": ["px", "px"],
            "Date": ["2026-10-05", "2026-10-05"], "Allocated Hours": [2, 3],
        })
        result = validate_allocations(df)
        assert result.is_valid
        assert result.warnings

    def test_bad_working_days(self):
        df = pd.DataFrame({"Member ID": ["m1"], "Member Name": ["A"], "Working Days": ["Mon,Funday"]})
        assert not validate_members(df).is_valid

    def test_duplicate_members(self):
        df = pd.DataFrame({"Member ID": ["m1", "m1"], "Member Name": ["A", "B"]})
        assert not validate_members(df).is_valid

    def test_reversed_commitment(self):
        df = pd.DataFrame({
            "Member ID": ["m1"], "Project ID": ["px"], "Start Date": ["2026-10-09"],
            "End Date": ["2026-10-05"], "Hours Per Day": [4],
        })
        assert not validate_commitments(df).is_valid

    def test_cross_file_unknown_refs(self):
        members = pd.DataFrame({"Member ID": ["m1", "m2"], "Member Name": ["A", "B"]})
        projects = pd.DataFrame({"Project ID": ["px"], "Project Name": ["X"]})
        allocations = pd.DataFrame({
            "Member ID": ["m1", "m9"], "Project ID": ["px", "pz"],
            "Date": ["2026-10-05", "2026-10-05"], "Allocated Hours": [2, 3],
        })
        result = validate_cross_file(members, projects, allocations)
        assert not result.is_valid
        assert len(result.errors) == 2
        assert "m2" in result.warnings[0]


class TestLoader:
    def test_parse_members_defaults(self):
        members = parse_members(pd.DataFrame({"Member ID": [" m1 "], "Member Name": ["Avery"]}))
        assert members[0].member_id == "m1"
        assert members[0].working_hours_per_day == 8
        assert members[0].working_days == frozenset({0, 1, 2, 3, 4})

    def test_parse_members_custom_week(self):
        df = pd.DataFrame({
            "Member ID": ["m1"], "Member Name": ["Avery"], "Working Hours": [6], "Working Days": ["Tue,Sat"],
        })
        member = parse_members(df)[0]
        assert member.working_hours_per_day == 6
        assert member.working_days == frozenset({1, 5})

    def test_build_ledger_from_sample(self):
        ledger = build_ledger(
            generate_members_df(), generate_projects_df(),
            generate_allocations_df(), generate_commitments_df(),
        )
        assert len(ledger.members) == 6
        assert len(ledger.commitments("m06")) == 2
        # commitments overwrite the generated daily rows
        assert ledger.get("m06", "p-mobile", date(2026, 10, 1)).allocated_hours == 4

    def test_build_ledger_rejects_unknown_project(self):
        allocations = pd.DataFrame({
            "Member ID": ["m01"], "Project ID": ["p-nope"], "Date": ["2026-10-05"], "Allocated Hours": [2],
        })
        with pytest.raises(InvalidAllocation):
            build_ledger(generate_members_df(), generate_projects_df(), allocations)

    def test_load_file_csv(self, tmp_path):
        path = tmp_path / "members.csv"
        generate_members_df().to_csv(path, index=False)
        with open(path) as f:
            df = load_file(f)
        assert len(df) == 6

    def test_load_file_unsupported(self, tmp_path):
        path = tmp_path / "members.txt"
        path.write_text("x")
        with open(path) as f:
            with pytest.raises(ValueError):
                load_file(f)

    def test_sheet_names_ignore_separators(self):
        tabs = ["Team_Members", "project-list", "Daily Allocations"]
        assert _match_sheet(tabs, "members") == "Team_Members"
        assert _match_sheet(tabs, "projects") == "project-list"
        assert _match_sheet(tabs, "allocations") == "Daily Allocations"
        with pytest.raises(ValueError):
            _match_sheet(tabs, "commitments")

    def test_multi_sheet_excel(self, tmp_path):
        generate_sample_excel(str(tmp_path))
        members, projects, allocations, commitments = load_multi_sheet_excel(
            str(tmp_path / "sample_team.xlsx")
        )
        assert len(members) == 6
        assert len(projects) == 4
        assert commitments is not None
        assert len(commitments) == 3


class TestSampleData:
    def test_allocations_are_reproducible(self):
        first = generate_allocations_df(as_of=date(2026, 10, 15))
        second = generate_allocations_df(as_of=date(2026, 10, 15))
        assert first.equals(second)

    def test_planned_hours_do_not_depend_on_as_of(self):
        early = generate_allocations_df(as_of=date(2026, 10, 1))
        late = generate_allocations_df(as_of=date(2026, 11, 1))
        assert list(early["Allocated Hours"]) == list(late["Allocated Hours"])
        assert early["Logged Hours"].sum() == 0
        assert late["Logged Hours"].sum() > 0

    def test_logged_hours_only_before_as_of(self):
        df = generate_allocations_df(as_of=date(2026, 10, 15))
        logged_dates = pd.to_datetime(df.loc[df["Logged Hours"] > 0, "Date"])
        assert (logged_dates < pd.Timestamp(2026, 10, 15)).all()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
