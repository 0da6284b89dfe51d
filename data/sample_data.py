"""Generate synthetic team workload datasets for the Team Workload Planner."""

import pandas as pd
import random
import os
from datetime import date, timedelta
from typing import Optional

from engine.calendar_generator import resolve_range


def generate_members_df() -> pd.DataFrame:
    """Six team members; one part-timer and one on a Tue-Sat week."""
    rows = [
        {"Member ID": "m01", "Member Name": "Avery Chen",     "Working Hours": 8, "Working Days": "Mon,Tue,Wed,Thu,Fri"},
        {"Member ID": "m02", "Member Name": "Jordan Patel",   "Working Hours": 8, "Working Days": "Mon,Tue,Wed,Thu,Fri"},
        {"Member ID": "m03", "Member Name": "Sam Okafor",     "Working Hours": 8, "Working Days": "Mon,Tue,Wed,Thu,Fri"},
        {"Member ID": "m04", "Member Name": "Riley Novak",    "Working Hours": 6, "Working Days": "Mon,Tue,Wed,Thu"},
        {"Member ID": "m05", "Member Name": "Taylor Silva",   "Working Hours": 8, "Working Days": "Tue,Wed,Thu,Fri,Sat"},
        {"Member ID": "m06", "Member Name": "Morgan Ito",     "Working Hours": 7.5, "Working Days": "Mon,Tue,Wed,Thu,Fri"},
    ]
    return pd.DataFrame(rows)


def generate_projects_df() -> pd.DataFrame:
    rows = [
        {"Project ID": "p-web",    "Project Name": "Website Relaunch", "Team ID": "t-digital"},
        {"Project ID": "p-mobile", "Project Name": "Mobile App",       "Team ID": "t-digital"},
        {"Project ID": "p-crm",    "Project Name": "CRM Migration",    "Team ID": "t-ops"},
        {"Project ID": "p-data",   "Project Name": "Data Warehouse",   "Team ID": "t-ops"},
    ]
    return pd.DataFrame(rows)


# Which projects each member is staffed on
STAFFING = {
    "m01": ["p-web", "p-mobile"],
    "m02": ["p-web", "p-crm"],
    "m03": ["p-mobile", "p-data"],
    "m04": ["p-crm"],
    "m05": ["p-data", "p-web"],
    "m06": ["p-mobile", "p-crm", "p-data"],
}


def generate_allocations_df(anchor: date = date(2026, 10, 1), as_of: Optional[date] = None) -> pd.DataFrame:
    """Daily allocations for the month containing anchor, with some overallocated days.

    Days before as_of (mid-month by default) may carry logged hours.
    """
    random.seed(42)
    members = generate_members_df()
    month = resolve_range(anchor, "month")
    as_of = as_of or month.start + timedelta(days=14)
    rows = []
    for _, m in members.iterrows():
        working = {d.strip()[:3] for d in m["Working Days"].split(",")}
        for day in month.days():
            if day.strftime("%a") not in working:
                continue
            for project_id in STAFFING[m["Member ID"]]:
                share = m["Working Hours"] / len(STAFFING[m["Member ID"]])
                hours = round(share * random.choice([0.5, 0.75, 1.0, 1.0, 1.25, 1.5]) * 2) / 2
                draw = random.random()
                logged = hours if day < as_of and draw < 0.3 else 0.0
                rows.append({
                    "Member ID": m["Member ID"],
                    "Project ID": project_id,
                    "Date": day.isoformat(),
                    "Allocated Hours": hours,
                    "Logged Hours": logged,
                })
    return pd.DataFrame(rows)


def generate_commitments_df(anchor: date = date(2026, 10, 1)) -> pd.DataFrame:
    """Range commitments, including an overlapping pair for m06."""
    start = anchor.replace(day=1)
    rows = [
        {"Member ID": "m06", "Project ID": "p-mobile", "Start Date": start.isoformat(),
         "End Date": (start + timedelta(days=13)).isoformat(), "Hours Per Day": 4},
        {"Member ID": "m06", "Project ID": "p-crm", "Start Date": (start + timedelta(days=7)).isoformat(),
         "End Date": (start + timedelta(days=20)).isoformat(), "Hours Per Day": 5},
        {"Member ID": "m04", "Project ID": "p-crm", "Start Date": start.isoformat(),
         "End Date": (start + timedelta(days=27)).isoformat(), "Hours Per Day": 3},
    ]
    return pd.DataFrame(rows)


def generate_sample_csvs(output_dir: str):
    """Write sample CSV files to the given directory."""
    os.makedirs(output_dir, exist_ok=True)
    generate_members_df().to_csv(os.path.join(output_dir, "members.csv"), index=False)
    generate_projects_df().to_csv(os.path.join(output_dir, "projects.csv"), index=False)
    generate_allocations_df().to_csv(os.path.join(output_dir, "allocations.csv"), index=False)
    generate_commitments_df().to_csv(os.path.join(output_dir, "commitments.csv"), index=False)


def generate_sample_excel(output_dir: str):
    """Write a single multi-tab Excel file with all four datasets."""
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, "sample_team.xlsx")
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        generate_members_df().to_excel(writer, sheet_name="Members", index=False)
        generate_projects_df().to_excel(writer, sheet_name="Projects", index=False)
        generate_allocations_df().to_excel(writer, sheet_name="Allocations", index=False)
        generate_commitments_df().to_excel(writer, sheet_name="Commitments", index=False)


if __name__ == "__main__":
    out = os.path.join(os.path.dirname(__file__), "..", "sample_files")
    generate_sample_csvs(out)
    generate_sample_excel(out)
    print("Sample CSV and Excel files generated in sample_files/")
