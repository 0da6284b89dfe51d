"""Schema validation for uploaded team, project and allocation files."""

from dataclasses import dataclass, field
from typing import List, Optional
import pandas as pd

from engine.capacity import parse_working_days
from models.errors import InvalidCapacityConfig


@dataclass
class ValidationResult:
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        self.is_valid = self.is_valid and other.is_valid
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        return self


MEMBER_REQUIRED_COLUMNS = [
    "Member ID",
    "Member Name",
]

PROJECT_REQUIRED_COLUMNS = [
    "Project ID",
    "Project Name",
]

ALLOCATION_REQUIRED_COLUMNS = [
    "Member ID",
    "Project ID",
    "Date",
    "Allocated Hours",
]

COMMITMENT_REQUIRED_COLUMNS = [
    "Member ID",
    "Project ID",
    "Start Date",
    "End Date",
    "Hours Per Day",
]


def _check_required_columns(df: pd.DataFrame, required: List[str], file_label: str) -> ValidationResult:
    result = ValidationResult()
    missing = [col for col in required if col not in df.columns]
    if missing:
        result.is_valid = False
        result.errors.append(f"{file_label}: Missing required columns: {', '.join(missing)}")
    if df.empty:
        result.is_valid = False
        result.errors.append(f"{file_label}: File contains no data rows.")
    return result


def _check_non_negative(df: pd.DataFrame, column: str, file_label: str, result: ValidationResult):
    values = pd.to_numeric(df[column], errors="coerce")
    if values.isna().any():
        result.is_valid = False
        result.errors.append(f"{file_label}: {column} must be numeric.")
    elif (values < 0).any():
        result.is_valid = False
        result.errors.append(f"{file_label}: {column} cannot be negative.")


def validate_members(df: pd.DataFrame) -> ValidationResult:
    result = _check_required_columns(df, MEMBER_REQUIRED_COLUMNS, "Team Members")
    if not result.is_valid:
        return result

    if "Working Hours" in df.columns:
        hours = pd.to_numeric(df["Working Hours"], errors="coerce")
        if (hours.dropna() <= 0).any():
            result.is_valid = False
            result.errors.append("Team Members: Working Hours must be greater than zero.")

    if "Working Days" in df.columns:
        for _, row in df.iterrows():
            raw = row["Working Days"]
            if pd.isna(raw):
                continue
            try:
                days = parse_working_days(str(raw))
            except InvalidCapacityConfig as exc:
                result.is_valid = False
                result.errors.append(f"Team Members: {row['Member ID']}: {exc}")
                continue
            if not days:
                result.is_valid = False
                result.errors.append(f"Team Members: {row['Member ID']} has no working days.")

    dupes = df.duplicated(subset=["Member ID"], keep=False)
    if dupes.any():
        result.is_valid = False
        result.errors.append(f"Team Members: Duplicate member IDs: {df[dupes]['Member ID'].unique().tolist()}")

    return result


def validate_projects(df: pd.DataFrame) -> ValidationResult:
    result = _check_required_columns(df, PROJECT_REQUIRED_COLUMNS, "Projects")
    if not result.is_valid:
        return result

    dupes = df.duplicated(subset=["Project ID"], keep=False)
    if dupes.any():
        result.is_valid = False
        result.errors.append(f"Projects: Duplicate project IDs: {df[dupes]['Project ID'].unique().tolist()}")

    return result


def validate_allocations(df: pd.DataFrame) -> ValidationResult:
    result = _check_required_columns(df, ALLOCATION_REQUIRED_COLUMNS, "Allocations")
    if not result.is_valid:
        return result

    _check_non_negative(df, "Allocated Hours", "Allocations", result)
    if "Logged Hours" in df.columns:
        _check_non_negative(df.dropna(subset=["Logged Hours"]), "Logged Hours", "Allocations", result)

    if pd.to_datetime(df["Date"], errors="coerce").isna().any():
        result.is_valid = False
        result.errors.append("Allocations: Date column contains unparseable values.")

    # Later rows overwrite earlier ones for the same key; flag it
    dupes = df.duplicated(subset=["Member ID", "Project ID", "Date"], keep=False)
    if dupes.any():
        result.warnings.append(
            f"Allocations: {int(dupes.sum())} rows share a member/project/date; the last one wins."
        )

    return result


def validate_commitments(df: pd.DataFrame) -> ValidationResult:
    result = _check_required_columns(df, COMMITMENT_REQUIRED_COLUMNS, "Commitments")
    if not result.is_valid:
        return result

    _check_non_negative(df, "Hours Per Day", "Commitments", result)

    starts = pd.to_datetime(df["Start Date"], errors="coerce")
    ends = pd.to_datetime(df["End Date"], errors="coerce")
    if starts.isna().any() or ends.isna().any():
        result.is_valid = False
        result.errors.append("Commitments: Start/End Date contains unparseable values.")
    elif (starts > ends).any():
        result.is_valid = False
        result.errors.append("Commitments: Start Date must not be after End Date.")

    return result


def validate_cross_file(
    members_df: pd.DataFrame,
    projects_df: pd.DataFrame,
    allocations_df: pd.DataFrame,
    commitments_df: Optional[pd.DataFrame] = None,
) -> ValidationResult:
    """Check that allocations only reference known members and projects."""
    result = ValidationResult()
    member_ids = set(members_df["Member ID"].astype(str).str.strip())
    project_ids = set(projects_df["Project ID"].astype(str).str.strip())

    frames = [("Allocations", allocations_df)]
    if commitments_df is not None:
        frames.append(("Commitments", commitments_df))

    for label, df in frames:
        unknown_members = set(df["Member ID"].astype(str).str.strip()) - member_ids
        unknown_projects = set(df["Project ID"].astype(str).str.strip()) - project_ids
        if unknown_members:
            result.is_valid = False
            result.errors.append(f"{label} reference unknown members: {', '.join(sorted(unknown_members))}")
        if unknown_projects:
            result.is_valid = False
            result.errors.append(f"{label} reference unknown projects: {', '.join(sorted(unknown_projects))}")

    idle = member_ids - set(allocations_df["Member ID"].astype(str).str.strip())
    if idle:
        result.warnings.append(f"Members without allocations: {', '.join(sorted(idle))}.")
    return result
