"""Schedule file parsing: CSV/XLSX into typed model lists and a ledger."""

import os
import re

import pandas as pd
from typing import List, Optional, Tuple
from models.member import Member
from models.project import Project
from models.allocation import Allocation, Commitment
from engine.capacity import parse_working_days
from engine.ledger import AllocationLedger
from config.defaults import DEFAULT_WORKING_HOURS_PER_DAY, DEFAULT_WORKING_DAYS


def _to_date(value):
    return pd.to_datetime(value).date()


def parse_members(df: pd.DataFrame) -> List[Member]:
    """Convert a team members DataFrame into Member objects."""
    members = []
    for _, row in df.iterrows():
        hours = DEFAULT_WORKING_HOURS_PER_DAY
        if "Working Hours" in df.columns and pd.notna(row.get("Working Hours")):
            hours = float(row["Working Hours"])
        days = DEFAULT_WORKING_DAYS
        if "Working Days" in df.columns and pd.notna(row.get("Working Days")):
            days = parse_working_days(str(row["Working Days"]))
        members.append(Member(
            member_id=str(row["Member ID"]).strip(),
            name=str(row["Member Name"]).strip(),
            working_hours_per_day=hours,
            working_days=days,
        ))
    return members


def parse_projects(df: pd.DataFrame) -> List[Project]:
    """Convert a projects DataFrame into Project objects."""
    projects = []
    for _, row in df.iterrows():
        team = None
        if "Team ID" in df.columns and pd.notna(row.get("Team ID")):
            team = str(row["Team ID"]).strip()
        projects.append(Project(
            project_id=str(row["Project ID"]).strip(),
            name=str(row["Project Name"]).strip(),
            team_id=team,
        ))
    return projects


def parse_allocations(df: pd.DataFrame) -> List[Allocation]:
    """Convert an allocations DataFrame (one row per member/project/day) into Allocations."""
    allocations = []
    for _, row in df.iterrows():
        logged = 0.0
        if "Logged Hours" in df.columns and pd.notna(row.get("Logged Hours")):
            logged = float(row["Logged Hours"])
        allocations.append(Allocation(
            member_id=str(row["Member ID"]).strip(),
            project_id=str(row["Project ID"]).strip(),
            date=_to_date(row["Date"]),
            allocated_hours=float(row["Allocated Hours"]),
            logged_hours=logged,
        ))
    return allocations


def parse_commitments(df: pd.DataFrame) -> List[Commitment]:
    """Convert a commitments DataFrame (member/project over a date range) into Commitments."""
    commitments = []
    for _, row in df.iterrows():
        commitments.append(Commitment(
            member_id=str(row["Member ID"]).strip(),
            project_id=str(row["Project ID"]).strip(),
            start=_to_date(row["Start Date"]),
            end=_to_date(row["End Date"]),
            hours_per_day=float(row["Hours Per Day"]),
        ))
    return commitments


def build_ledger(
    members_df: pd.DataFrame,
    projects_df: pd.DataFrame,
    allocations_df: pd.DataFrame,
    commitments_df: Optional[pd.DataFrame] = None,
) -> AllocationLedger:
    """Parse all frames and load them into a fresh ledger.

    Raises InvalidAllocation on the first row the ledger rejects.
    """
    commitments = parse_commitments(commitments_df) if commitments_df is not None else []
    return AllocationLedger(
        members=parse_members(members_df),
        projects=parse_projects(projects_df),
        allocations=parse_allocations(allocations_df),
        commitments=commitments,
    )


def load_file(uploaded_file) -> pd.DataFrame:
    """Read one members, projects, allocations or commitments file (CSV or XLSX)."""
    extension = os.path.splitext(uploaded_file.name)[1].lower()
    if extension == ".csv":
        return pd.read_csv(uploaded_file)
    if extension in (".xlsx", ".xls"):
        return pd.read_excel(uploaded_file, engine="openpyxl")
    raise ValueError(f"Unsupported schedule file {uploaded_file.name!r}: expected .csv or .xlsx")


# Accepted tab names per dataset, compared after lower-casing and treating _ and - as spaces
SHEET_ALIASES = {
    "members": ["members", "team", "team members", "people", "resources"],
    "projects": ["projects", "project", "project list"],
    "allocations": ["allocations", "allocation", "schedule", "daily allocations"],
    "commitments": ["commitments", "commitment", "ranges", "range allocations"],
}


def _normalize_sheet_name(name: str) -> str:
    return " ".join(re.split(r"[\s_-]+", name.strip().lower()))


def _match_sheet(sheet_names: List[str], dataset: str) -> str:
    """Name of the workbook tab holding the given dataset."""
    by_normalized = {_normalize_sheet_name(s): s for s in sheet_names}
    for alias in SHEET_ALIASES[dataset]:
        if alias in by_normalized:
            return by_normalized[alias]
    raise ValueError(
        f"No {dataset} tab in workbook (tabs: {', '.join(sheet_names)}); "
        f"name it one of: {', '.join(SHEET_ALIASES[dataset])}"
    )


def load_multi_sheet_excel(
    uploaded_file,
) -> Tuple[pd.DataFrame, pd.DataFrame, pd.DataFrame, Optional[pd.DataFrame]]:
    """Load a single Excel file with Members, Projects, Allocations and optional Commitments tabs.

    Tab names are matched ignoring case, underscores and hyphens. Accepted names include:
    - Members: 'Members', 'Team', 'People', etc.
    - Projects: 'Projects', 'Project List'
    - Allocations: 'Allocations', 'Schedule', etc.
    - Commitments (optional): 'Commitments', 'Ranges', etc.

    Returns (members_df, projects_df, allocations_df, commitments_df or None).
    """
    xl = pd.ExcelFile(uploaded_file, engine="openpyxl")
    sheet_names = xl.sheet_names

    members_df = pd.read_excel(xl, sheet_name=_match_sheet(sheet_names, "members"))
    projects_df = pd.read_excel(xl, sheet_name=_match_sheet(sheet_names, "projects"))
    allocations_df = pd.read_excel(xl, sheet_name=_match_sheet(sheet_names, "allocations"))

    try:
        commitments_sheet = _match_sheet(sheet_names, "commitments")
    except ValueError:
        commitments_df = None
    else:
        commitments_df = pd.read_excel(xl, sheet_name=commitments_sheet)

    return members_df, projects_df, allocations_df, commitments_df
